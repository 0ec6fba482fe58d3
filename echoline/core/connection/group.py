from typing import Iterator, TYPE_CHECKING

if TYPE_CHECKING:
    from echoline.core.connection.state import ConnectionState


class ConnectionGroup:
    """
    Membership collection of live connections, shared across handlers.

    The group is owned by the event loop thread: handlers add and remove
    members from their callbacks, which all run on that loop, so no
    further locking is needed.
    """
    def __init__(self) -> None:
        self._members: set[ConnectionState] = set()

    def add(self, connection: "ConnectionState") -> None:
        self._members.add(connection)

    def discard(self, connection: "ConnectionState") -> None:
        self._members.discard(connection)

    def __contains__(self, connection: object) -> bool:
        return connection in self._members

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator["ConnectionState"]:
        return iter(list(self._members))
