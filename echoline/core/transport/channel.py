import asyncio
import logging

from echoline.core.models.endpoint import Endpoint
from echoline.core.transport.flow import FlowControl


class Channel:
    """
    Byte sink of a single connection: write chunks out, signal close.

    Writes honour FlowControl. If the transport has paused writing, `write()`
    waits until it resumes. A write issued after the transport started
    closing, or one that was waiting when the connection went away, is
    abandoned and reported as not written rather than raised.
    """
    def __init__(
        self,
        transport: asyncio.WriteTransport,
        flow: FlowControl,
        local: Endpoint | None = None,
        remote: Endpoint | None = None,
    ) -> None:
        self.local = local
        self.remote = remote
        self._transport = transport
        self._flow = flow
        self._logger = logging.getLogger("core.transport.channel")

    async def write(self, data: bytes) -> bool:
        if self._transport.is_closing():
            return False

        if self._flow.paused:
            await self._flow.writable()
            if self._transport.is_closing():
                self._logger.debug(f"{self.remote} - Write abandoned, connection closed")
                return False

        try:
            self._transport.write(data)
        except Exception as exc:
            self._logger.error(f"{self.remote} - Failed to write: {exc}")
            self._transport.close()
            return False

        return True

    def close(self) -> None:
        if not self._transport.is_closing():
            self._transport.close()
