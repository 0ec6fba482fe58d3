import asyncio
import logging

from echoline.core.connection.state import ConnectionState
from echoline.core.errors import ConnectFailure
from echoline.core.models.config import ClientConfig
from echoline.core.models.state import TransportState
from echoline.core.transport.protocol import Protocol, close_connections


class Dialer:
    """
    Opens exactly one outbound connection and greets the server.

    The connection is wired exactly like an accepted one: a Protocol builds
    its FrameDecoder, ConnectionState and handler, and a dedicated task
    dispatches inbound frames to the handler. Once the connection is active
    the configured greeting is written as the first frame.

    Connecting is bounded by `config.connect_timeout`. A failed or timed out
    attempt raises ConnectFailure and is not retried.
    """
    def __init__(
        self,
        config: ClientConfig,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config
        self._loop = loop or asyncio.get_event_loop()
        self.state = TransportState()
        self._logger = logging.getLogger("core.transport.client")

    def create_protocol(self) -> Protocol:
        return Protocol(
            handler_factory=self._config.handler_factory,
            framing=self._config.framing,
            state=self.state,
            loop=self._loop,
        )

    async def connect(self) -> ConnectionState:
        config = self._config
        host = config.host
        port = config.port

        try:
            _, protocol = await asyncio.wait_for(
                self._loop.create_connection(self.create_protocol, host=host, port=port),
                timeout=config.connect_timeout,
            )
        except TimeoutError as exc:
            raise ConnectFailure(host, port, f"timed out after {config.connect_timeout}s") from exc
        except OSError as exc:
            raise ConnectFailure(host, port, exc.strerror or str(exc)) from exc

        self._logger.info(f"Successfully connected to host {host}:{port}")

        connection = protocol.connection
        await connection.wait_connected()

        if config.greeting is not None:
            await connection.send(config.greeting)

        return connection

    async def close(self) -> None:
        cancelled = await close_connections(self.state, self._config.timeout_graceful_shutdown)
        if cancelled:
            self._logger.warning(f"Cancelled {cancelled} connection task(s) while closing")
