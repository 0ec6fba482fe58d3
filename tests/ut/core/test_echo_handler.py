import asyncio
import io
import pytest

from echoline.core.connection.group import ConnectionGroup
from echoline.core.connection.state import ConnectionState
from echoline.core.errors import MalformedPayload
from echoline.core.framing.decoder import FrameDecoder
from echoline.core.handlers.echo import EchoHandler
from echoline.core.handlers.printing import PrintingHandler
from echoline.core.models.endpoint import Endpoint
from echoline.core.models.state import ConnectionPhase
from echoline.core.transport.channel import Channel
from echoline.core.transport.flow import FlowControl


def make_connection(transport, handler):
    channel = Channel(transport, FlowControl(), remote=Endpoint("10.1.2.3", 4567))
    return ConnectionState(channel, FrameDecoder(), handler)


@pytest.mark.ut
@pytest.mark.asyncio
async def test_acknowledges_each_frame(transport):
    conn = make_connection(transport, EchoHandler())
    await conn.connected()

    await conn.received(b"Hello, Server!\n")

    assert transport.buffer == (
        b"Hello, client! Your IP is 10.1.2.3:4567! "
        b"We received your message saying: Hello, Server!\n"
    )


@pytest.mark.ut
@pytest.mark.asyncio
async def test_custom_template(transport):
    conn = make_connection(transport, EchoHandler(template="{message}@{remote}"))
    await conn.connected()

    await conn.received(b"a\nb\n")

    assert transport.buffer == b"a@10.1.2.3:4567\nb@10.1.2.3:4567\n"


@pytest.mark.ut
@pytest.mark.asyncio
async def test_invalid_utf8_closes_without_reply(transport, caplog):
    conn = make_connection(transport, EchoHandler())
    await conn.connected()

    with caplog.at_level("ERROR", logger="core.handlers.echo"):
        await conn.received(b"\xff\xfe\n")

    assert transport.buffer == b""
    assert transport.is_closing()
    assert conn.phase is ConnectionPhase.closing
    assert "not valid utf-8" in caplog.text


@pytest.mark.ut
@pytest.mark.asyncio
async def test_group_tracks_membership(transport):
    group = ConnectionGroup()
    conn = make_connection(transport, EchoHandler(group=group))

    await conn.connected()
    assert conn in group
    assert len(group) == 1
    assert list(group) == [conn]

    await conn.transport_closed()
    assert conn not in group
    assert len(group) == 0


@pytest.mark.ut
@pytest.mark.asyncio
async def test_on_error_does_not_write(transport):
    handler = EchoHandler()
    conn = make_connection(transport, handler)
    await conn.connected()

    await handler.on_error(conn, MalformedPayload("bad"))
    await handler.on_error(conn, RuntimeError("unexpected"))

    assert transport.buffer == b""


@pytest.mark.ut
@pytest.mark.asyncio
async def test_printing_handler_prints_frames(transport):
    out = io.StringIO()
    conn = make_connection(transport, PrintingHandler(out=out))
    await conn.connected()

    await conn.received(b"first\nsecond\n")
    await conn.transport_closed()

    assert out.getvalue().splitlines() == [
        "Received a message from the server: first",
        "Received a message from the server: second",
    ]
    assert transport.buffer == b""
