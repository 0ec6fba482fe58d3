import asyncio
import logging

from echoline.core.connection.group import ConnectionGroup
from echoline.core.transport.client import Dialer
from echoline.core.transport.server import Listener


class ServerLifecycle:
    """Runs the Listener until the stop event is set, then shuts it down."""

    def __init__(self, listener: Listener, group: ConnectionGroup) -> None:
        self._listener = listener
        self._group = group
        self._logger = logging.getLogger("core.service.lifecycle")

    async def run(self, stop_event: asyncio.Event) -> None:
        await self._listener.start()
        await stop_event.wait()

        if self._listener.running:
            self._logger.info(f"Shutting down server, {len(self._group)} client(s) connected.")
            for connection in self._group:
                self._logger.debug(f"Closing {connection.remote}")
            await self._listener.shutdown()
        else:
            self._logger.info("Server is not running, skip shutting down.")


class ClientLifecycle:
    """
    Connects, greets, and keeps the connection open until either the
    server closes it or the stop event is set.
    """

    def __init__(self, dialer: Dialer) -> None:
        self._dialer = dialer
        self._logger = logging.getLogger("core.service.lifecycle")

    async def run(self, stop_event: asyncio.Event) -> None:
        connection = await self._dialer.connect()

        stop_task = asyncio.create_task(stop_event.wait())
        closed_task = asyncio.create_task(connection.wait_closed())
        try:
            await asyncio.wait(
                [stop_task, closed_task],
                return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (stop_task, closed_task):
                task.cancel()

        if stop_event.is_set():
            self._logger.info("Stop signal received, closing connection.")

        await self._dialer.close()
