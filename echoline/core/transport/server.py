import asyncio
import logging

from echoline.core.errors import BindFailure
from echoline.core.models.config import ServerConfig
from echoline.core.models.endpoint import Endpoint
from echoline.core.models.state import TransportState
from echoline.core.transport.protocol import Protocol, close_connections


class Listener:
    """
    Owns the lifecycle of the TCP server: binds the configured address,
    hands every accepted connection to its own Protocol, and coordinates
    graceful shutdown.

    Each accepted connection gets a fresh FrameDecoder, ConnectionState and
    handler (built by `config.handler_factory`) and runs in its own task,
    so a failing connection never affects the Listener or its siblings.

    Binding is bounded by `config.bind_timeout`. A bind that fails or times
    out raises BindFailure and is not retried.

    On shutdown, the Listener stops accepting, asks every open connection to
    close, and waits for the connection tasks to finish. If the graceful
    shutdown timeout is exceeded, remaining tasks are cancelled.
    """
    def __init__(
        self,
        config: ServerConfig,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._config = config
        self._loop = loop or asyncio.get_event_loop()
        self.state = TransportState()
        self._logger = logging.getLogger("core.transport.server")

        self._server: asyncio.AbstractServer | None = None

    @property
    def running(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def listen(self) -> Endpoint | None:
        if self._server is None or not self._server.sockets:
            return None
        return Endpoint.from_sockaddr(self._server.sockets[0].getsockname())

    def create_protocol(self) -> asyncio.Protocol:
        return Protocol(
            handler_factory=self._config.handler_factory,
            framing=self._config.framing,
            state=self.state,
            limit_concurrency=self._config.limit_concurrency,
            loop=self._loop,
        )

    async def start(self) -> None:
        config = self._config
        host = config.host
        port = config.port

        try:
            self._server = await asyncio.wait_for(
                self._loop.create_server(
                    self.create_protocol,
                    host=host,
                    port=port,
                    backlog=config.backlog,
                ),
                timeout=config.bind_timeout,
            )
        except TimeoutError as exc:
            raise BindFailure(host, port, f"timed out after {config.bind_timeout}s") from exc
        except OSError as exc:
            raise BindFailure(host, port, exc.strerror or str(exc)) from exc

        self._logger.info(f"Successfully bound to {self.listen}, awaiting new connections...")

    async def shutdown(self) -> None:
        if self._server is not None:
            self._server.close()

        if self.state.connections:
            self._logger.info(f"Closing {len(self.state.connections)} client connection(s).")

        cancelled = await close_connections(self.state, self._config.timeout_graceful_shutdown)
        if cancelled:
            self._logger.error(
                f"Cancelled {cancelled} connection task(s) after "
                f"{self._config.timeout_graceful_shutdown}s graceful shutdown timeout"
            )

        if self._server is not None:
            await self._server.wait_closed()
