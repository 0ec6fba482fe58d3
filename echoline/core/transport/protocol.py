import asyncio
import logging

from echoline.core.connection.handler import HandlerFactory
from echoline.core.connection.state import ConnectionState
from echoline.core.framing.decoder import FrameDecoder
from echoline.core.models.config import FramingConfig
from echoline.core.models.state import TransportState
from echoline.core.transport.addr import get_local_addr, get_remote_addr
from echoline.core.transport.channel import Channel
from echoline.core.transport.flow import FlowControl


class Protocol(asyncio.Protocol):
    """
    Adapts asyncio transport callbacks to the per-connection event queue.

    When a connection is established, Protocol builds the connection's
    Channel (with its FlowControl), FrameDecoder, handler and
    ConnectionState, registers itself in the shared TransportState and
    starts the connection task running `ConnectionState.run()`.

    Transport callbacks never touch the decoder or the handler directly.
    They only enqueue events, which the connection task consumes in order:
    inbound chunks as bytes, a transport failure as the Exception passed to
    connection_lost, then None once the transport is gone.

    When `limit_concurrency` connections are already open, a new connection
    is closed immediately and no connection task is started for it.
    """
    def __init__(
        self,
        handler_factory: HandlerFactory,
        framing: FramingConfig,
        state: TransportState,
        limit_concurrency: int | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._transport: asyncio.Transport = None  # type: ignore[assignment]
        self._flow: FlowControl = None  # type: ignore[assignment]
        self.connection: ConnectionState | None = None

        self._handler_factory = handler_factory
        self._framing = framing
        self._connections = state.connections
        self._tasks = state.tasks
        self._limit_concurrency = limit_concurrency
        self._loop = loop or asyncio.get_event_loop()
        self._queue: asyncio.Queue[bytes | Exception | None] = asyncio.Queue()
        self._refused = False
        self._logger = logging.getLogger("core.transport.protocol")

    def connection_made(self, transport: asyncio.Transport) -> None:  # type: ignore[override]
        self._transport = transport
        remote = get_remote_addr(transport)

        limit = self._limit_concurrency
        if limit is not None and len(self._connections) >= limit:
            self._logger.warning(f"{remote} - Connection limit of {limit} reached, refusing")
            self._refused = True
            transport.close()
            return

        self._flow = FlowControl()
        self._connections.add(self)

        channel = Channel(
            transport=transport,
            flow=self._flow,
            local=get_local_addr(transport),
            remote=remote,
        )
        decoder = FrameDecoder(
            delimiter=self._framing.delimiter,
            max_frame_size=self._framing.max_frame_size,
        )
        self.connection = ConnectionState(
            channel=channel,
            decoder=decoder,
            handler=self._handler_factory(),
            encoding=self._framing.encoding,
        )

        task = self._loop.create_task(self.connection.run(self._queue))
        task.add_done_callback(self._tasks.discard)
        self._tasks.add(task)

        self._logger.debug(f"{remote} - Connection made")

    def connection_lost(self, exc: Exception | None) -> None:
        self._connections.discard(self)
        if self._refused:
            return

        remote = self.connection.remote if self.connection else None
        self._logger.debug(f"{remote} - Connection lost: {exc}")

        if self._flow is not None:
            self._flow.resume()

        if exc is None:
            self._transport.close()
        else:
            self._queue.put_nowait(exc)

        self._queue.put_nowait(None)

    def data_received(self, data: bytes) -> None:
        if self._refused:
            return
        self._queue.put_nowait(bytes(data))

    def pause_writing(self) -> None:
        if self._flow is not None:
            self._flow.pause()

    def resume_writing(self) -> None:
        if self._flow is not None:
            self._flow.resume()

    def shutdown(self) -> None:
        if self.connection is not None:
            self.connection.close()
        else:
            self._transport.close()


async def close_connections(state: TransportState, timeout: float) -> int:
    """
    Close every connection in `state` and wait for their tasks to finish.

    Tasks still running after `timeout` seconds are cancelled. Returns how
    many were.
    """
    for protocol in list(state.connections):
        protocol.shutdown()

    if not state.tasks:
        return 0

    _, pending = await asyncio.wait(set(state.tasks), timeout=timeout)
    for task in pending:
        task.cancel("Graceful shutdown timed out")

    if pending:
        await asyncio.wait(pending)

    return len(pending)
