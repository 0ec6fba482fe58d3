import asyncio
import logging

from echoline.core.connection.handler import ConnectionHandler
from echoline.core.errors import TransportError
from echoline.core.framing.codec import encode_frame
from echoline.core.framing.decoder import FrameDecoder
from echoline.core.models.endpoint import Endpoint
from echoline.core.models.state import ConnectionPhase
from echoline.core.transport.channel import Channel


class ConnectionState:
    """
    Lifecycle state machine of one connection.

    A ConnectionState owns the connection's FrameDecoder, its Channel and
    its handler, and is driven by a single task (see `run()`), so none of
    them is ever touched concurrently. Each inbound chunk goes through two
    fixed stages, in this order: the decode stage (FrameDecoder) and the
    dispatch stage (handler.on_frame, once per frame).

    Transitions:

        idle    --connected-->        active   on_connect
        active  --frame-->            active   on_frame
        active  --decode error-->     closing  on_error, then close
        active  --transport error-->  closing  on_error
        active  --transport closed--> closed   on_disconnect
        closing --transport closed--> closed   on_disconnect
        idle    --close-->            closing  (no callback)
        idle    --transport closed--> closed   (no callback)

    on_disconnect only ever follows an on_connect.

    The phase never moves backward. Events reaching a closed connection
    are ignored. Failures raised by on_connect or on_frame are handled like
    decode errors: reported once to on_error, then the connection closes.
    Nothing is retried.
    """
    def __init__(
        self,
        channel: Channel,
        decoder: FrameDecoder,
        handler: ConnectionHandler,
        encoding: str = "utf-8",
    ) -> None:
        self.phase = ConnectionPhase.idle
        self.encoding = encoding
        self._channel = channel
        self._decoder = decoder
        self._handler = handler
        self._announced = False
        self._connected = asyncio.Event()
        self._closed = asyncio.Event()
        self._logger = logging.getLogger("core.connection.state")

    def __repr__(self) -> str:
        return f"ConnectionState(remote={self.remote}, phase={self.phase.name})"

    @property
    def local(self) -> Endpoint | None:
        return self._channel.local

    @property
    def remote(self) -> Endpoint | None:
        return self._channel.remote

    async def run(self, queue: asyncio.Queue[bytes | Exception | None]) -> None:
        """
        Connection task body.

        Confirms the connection, then consumes transport events in arrival
        order until the connection is closed: a bytes chunk is inbound
        data, an Exception is a transport failure and None means the
        transport is gone.
        """
        try:
            await self.connected()
            while self.phase is not ConnectionPhase.closed:
                event = await queue.get()
                if event is None:
                    await self.transport_closed()
                elif isinstance(event, Exception):
                    await self.transport_failed(event)
                else:
                    await self.received(event)
        finally:
            self._decoder.close()
            self._connected.set()
            self._closed.set()

    async def connected(self) -> None:
        if self.phase is not ConnectionPhase.idle:
            self._connected.set()
            return

        self._advance(ConnectionPhase.active)
        self._announced = True
        try:
            await self._handler.on_connect(self)
        except Exception as exc:
            await self._fail(exc)
        finally:
            self._connected.set()

    async def received(self, chunk: bytes) -> None:
        if self.phase is not ConnectionPhase.active:
            return

        try:
            for frame in self._decoder.feed(chunk):
                await self._handler.on_frame(self, frame)
                if self.phase is not ConnectionPhase.active:
                    break
        except Exception as exc:
            await self._fail(exc)

    async def transport_failed(self, exc: Exception) -> None:
        if self.phase is not ConnectionPhase.active:
            self._logger.debug(f"{self.remote} - Transport error while {self.phase.name}: {exc}")
            return

        if not isinstance(exc, TransportError):
            cause = TransportError(str(exc) or type(exc).__name__)
            cause.__cause__ = exc
        else:
            cause = exc

        self._advance(ConnectionPhase.closing)
        await self._notify_error(cause)
        self._channel.close()

    async def transport_closed(self) -> None:
        if self.phase is ConnectionPhase.closed:
            return

        self._advance(ConnectionPhase.closed)

        if dropped := self._decoder.close():
            self._logger.debug(f"{self.remote} - Discarded {dropped} undelimited byte(s)")

        try:
            if self._announced:
                await self._handler.on_disconnect(self)
        except Exception as exc:
            self._logger.error(f"{self.remote} - Error in disconnect callback: {exc}", exc_info=exc)
        finally:
            self._connected.set()
            self._closed.set()

    async def send(self, text: str) -> bool:
        """
        Encode `text` as one frame and write it out.

        Returns False when the connection is no longer active or the write
        was abandoned because the transport went away. A message that
        cannot be framed raises MalformedPayload.
        """
        if self.phase is not ConnectionPhase.active:
            self._logger.debug(f"{self.remote} - Dropping write while {self.phase.name}")
            return False

        data = encode_frame(text, self._decoder.delimiter, self.encoding)
        return await self._channel.write(data)

    def close(self) -> None:
        """Initiate a local close. Safe to call more than once."""
        if self.phase < ConnectionPhase.closing:
            self._advance(ConnectionPhase.closing)
        self._channel.close()

    async def wait_connected(self) -> None:
        await self._connected.wait()

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def _fail(self, cause: Exception) -> None:
        if self.phase >= ConnectionPhase.closed:
            return

        if self.phase < ConnectionPhase.closing:
            self._advance(ConnectionPhase.closing)
        await self._notify_error(cause)
        self._channel.close()

    async def _notify_error(self, cause: Exception) -> None:
        try:
            await self._handler.on_error(self, cause)
        except Exception as exc:
            self._logger.error(f"{self.remote} - Error in error callback: {exc}", exc_info=exc)

    def _advance(self, phase: ConnectionPhase) -> None:
        if phase < self.phase:
            raise RuntimeError(f"Illegal transition {self.phase.name} -> {phase.name}")
        self.phase = phase
