import asyncio

from echoline.core.models.endpoint import Endpoint


def get_remote_addr(transport: asyncio.BaseTransport) -> Endpoint | None:
    sock = transport.get_extra_info("socket")
    if sock is not None:
        try:
            info = sock.getpeername()
        except OSError:
            return None
        return Endpoint.from_sockaddr(info)

    return Endpoint.from_sockaddr(transport.get_extra_info("peername"))


def get_local_addr(transport: asyncio.BaseTransport) -> Endpoint | None:
    sock = transport.get_extra_info("socket")
    if sock is not None:
        try:
            info = sock.getsockname()
        except OSError:
            return None
        return Endpoint.from_sockaddr(info)

    return Endpoint.from_sockaddr(transport.get_extra_info("sockname"))
