class EchoLineError(Exception):
    """Base class for every error raised by the echoline core."""


class DecodeError(EchoLineError):
    """The inbound byte stream cannot be turned into frames."""


class FrameTooLarge(DecodeError):
    """
    Raised when the decode buffer grows past the configured maximum
    without a delimiter, or when a delimited frame is itself longer
    than the maximum. Fatal to the connection, never to the process.
    """

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Frame of {size} bytes exceeds the {limit} bytes limit")


class MalformedPayload(EchoLineError):
    """A frame payload is not valid text or embeds the frame delimiter."""


class TransportError(EchoLineError):
    """The underlying connection failed (reset, abort, timeout)."""


class BindFailure(EchoLineError):
    """The Listener could not bind its address."""

    def __init__(self, host: str, port: int, reason: str) -> None:
        self.host = host
        self.port = port
        self.reason = reason
        super().__init__(f"Unable to bind to {host}:{port}: {reason}")


class ConnectFailure(EchoLineError):
    """The Dialer could not reach its target."""

    def __init__(self, host: str, port: int, reason: str) -> None:
        self.host = host
        self.port = port
        self.reason = reason
        super().__init__(f"Unable to connect to host {host}:{port}: {reason}")
