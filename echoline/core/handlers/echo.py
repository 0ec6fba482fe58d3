import logging

from echoline.core.connection.group import ConnectionGroup
from echoline.core.connection.state import ConnectionState
from echoline.core.errors import EchoLineError
from echoline.core.framing.codec import decode_text

DEFAULT_ACK_TEMPLATE = (
    "Hello, client! Your IP is {remote}! "
    "We received your message saying: {message}"
)


class EchoHandler:
    """
    Server-side policy: acknowledge every frame.

    Each decoded frame is read as text and answered with one
    acknowledgment frame built from `template`, which receives the
    connection's remote endpoint as `remote` and the original text as
    `message`. Frames that are not valid text raise MalformedPayload and
    close the connection.

    Connections are added to `group` on connect and removed on disconnect,
    so the group always reflects the live connections.
    """
    def __init__(
        self,
        group: ConnectionGroup | None = None,
        template: str = DEFAULT_ACK_TEMPLATE,
    ) -> None:
        self._group = group
        self._template = template
        self._logger = logging.getLogger("core.handlers.echo")

    async def on_connect(self, connection: ConnectionState) -> None:
        if self._group is not None:
            self._group.add(connection)
        self._logger.info(f"{connection.remote} has connected!")

    async def on_frame(self, connection: ConnectionState, frame: bytes) -> None:
        message = decode_text(frame, connection.encoding)
        self._logger.info(f"{connection.remote} - Received a new message saying: {message}")

        remote = str(connection.remote) if connection.remote is not None else "unknown"
        await connection.send(self._template.format(remote=remote, message=message))

    async def on_error(self, connection: ConnectionState, cause: Exception) -> None:
        if isinstance(cause, EchoLineError):
            self._logger.error(f"{connection.remote} - {cause}")
        else:
            self._logger.error(f"{connection.remote} - Unexpected error: {cause}", exc_info=cause)

    async def on_disconnect(self, connection: ConnectionState) -> None:
        if self._group is not None:
            self._group.discard(connection)
        self._logger.info(f"{connection.remote} has disconnected from the server.")
