from dataclasses import dataclass
from typing import Any, Self


@dataclass(frozen=True)
class Endpoint:
    """
    Address/port descriptor identifying one side of a connection.

    The text form is "host:port", with IPv6 hosts wrapped in brackets
    ("[::1]:53233"), and is the form used in acknowledgments and logs.
    """
    host: str
    port: int

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    @classmethod
    def from_sockaddr(cls, info: Any) -> Self | None:
        """
        Build an Endpoint from a socket address as returned by
        getpeername()/getsockname(). IPv6 addresses carry two extra
        fields (flowinfo, scope_id) which are ignored.
        """
        if not isinstance(info, (tuple, list)) or len(info) < 2:
            return None

        host, port = info[0], info[1]
        if not isinstance(host, str) or not isinstance(port, int):
            return None

        return cls(host=host, port=port)
