import logging
import sys
from typing import TextIO

from echoline.core.connection.state import ConnectionState
from echoline.core.framing.codec import decode_text


class PrintingHandler:
    """Client-side policy: print every frame received from the server."""

    def __init__(self, out: TextIO | None = None) -> None:
        self._out = out or sys.stdout
        self._logger = logging.getLogger("core.handlers.printing")

    async def on_connect(self, connection: ConnectionState) -> None:
        self._logger.debug(f"Connected to {connection.remote} from {connection.local}")

    async def on_frame(self, connection: ConnectionState, frame: bytes) -> None:
        message = decode_text(frame, connection.encoding)
        print(f"Received a message from the server: {message}", file=self._out, flush=True)

    async def on_error(self, connection: ConnectionState, cause: Exception) -> None:
        self._logger.error(f"{connection.remote} - {cause}")

    async def on_disconnect(self, connection: ConnectionState) -> None:
        self._logger.info(f"Disconnected from {connection.remote}")
