from typing import Callable, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from echoline.core.connection.state import ConnectionState


class ConnectionHandler(Protocol):
    """
    Application policy bound to one ConnectionState.

    The ConnectionState invokes these callbacks from the connection's own
    task, one at a time and in event order. Each callback is a terminal
    contract: there is no base implementation to chain to.

    - on_connect fires exactly once, before any on_frame.
    - on_frame fires once per decoded frame, in arrival order. The
      connection is active, so connection.send() may be used.
    - on_error fires when decoding, a callback, or the transport fails.
      The connection is already closing and must not be written to.
    - on_disconnect fires exactly once, last.

    An exception raised by on_connect or on_frame is routed to on_error
    and closes the connection.
    """

    async def on_connect(self, connection: "ConnectionState") -> None:
        ...

    async def on_frame(self, connection: "ConnectionState", frame: bytes) -> None:
        ...

    async def on_error(self, connection: "ConnectionState", cause: Exception) -> None:
        ...

    async def on_disconnect(self, connection: "ConnectionState") -> None:
        ...


HandlerFactory = Callable[[], ConnectionHandler]
"""
Builds the handler for one new connection.
"""
