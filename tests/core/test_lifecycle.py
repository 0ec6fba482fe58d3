import asyncio
import io
import pytest

from tests.helpers import wait_until
from echoline.core.connection.group import ConnectionGroup
from echoline.core.errors import BindFailure
from echoline.core.handlers.echo import EchoHandler
from echoline.core.handlers.printing import PrintingHandler
from echoline.core.models.config import ClientConfig, ServerConfig
from echoline.core.service.lifecycle import ClientLifecycle, ServerLifecycle
from echoline.core.transport.client import Dialer
from echoline.core.transport.server import Listener


def make_listener(group=None, port=0):
    config = ServerConfig(
        handler_factory=lambda: EchoHandler(group=group),
        host="127.0.0.1",
        port=port,
        timeout_graceful_shutdown=1.0,
    )
    return Listener(config=config, loop=asyncio.get_running_loop())


def make_dialer(port, out):
    config = ClientConfig(
        handler_factory=lambda: PrintingHandler(out=out),
        host="127.0.0.1",
        port=port,
        timeout_graceful_shutdown=1.0,
    )
    return Dialer(config=config, loop=asyncio.get_running_loop())


@pytest.mark.it
@pytest.mark.asyncio
async def test_server_lifecycle_runs_until_stop():
    group = ConnectionGroup()
    listener = make_listener(group)
    lifecycle = ServerLifecycle(listener=listener, group=group)
    stop_event = asyncio.Event()

    task = asyncio.create_task(lifecycle.run(stop_event))
    await wait_until(lambda: listener.running)

    reader, writer = await asyncio.open_connection("127.0.0.1", listener.listen.port)
    writer.write(b"ping\n")
    line = await reader.readline()
    assert line.endswith(b"We received your message saying: ping\n")
    assert len(group) == 1

    stop_event.set()
    await asyncio.wait_for(task, timeout=2)

    assert not listener.running
    assert len(group) == 0
    writer.close()


@pytest.mark.it
@pytest.mark.asyncio
async def test_server_lifecycle_reports_bind_failure():
    first = make_listener()
    await first.start()

    lifecycle = ServerLifecycle(listener=make_listener(port=first.listen.port), group=ConnectionGroup())

    with pytest.raises(BindFailure):
        await lifecycle.run(asyncio.Event())

    await first.shutdown()


@pytest.mark.it
@pytest.mark.asyncio
async def test_client_lifecycle_prints_ack_and_ends_when_server_closes():
    listener = make_listener()
    await listener.start()

    out = io.StringIO()
    lifecycle = ClientLifecycle(dialer=make_dialer(listener.listen.port, out))
    stop_event = asyncio.Event()

    task = asyncio.create_task(lifecycle.run(stop_event))
    await wait_until(lambda: out.getvalue())

    await listener.shutdown()
    await asyncio.wait_for(task, timeout=2)

    printed = out.getvalue()
    assert printed.startswith("Received a message from the server: Hello, client! Your IP is 127.0.0.1:")
    assert printed.endswith("We received your message saying: Hello, Server!\n")
    assert not stop_event.is_set()


@pytest.mark.it
@pytest.mark.asyncio
async def test_client_lifecycle_stops_on_stop_event():
    listener = make_listener()
    await listener.start()

    out = io.StringIO()
    dialer = make_dialer(listener.listen.port, out)
    lifecycle = ClientLifecycle(dialer=dialer)
    stop_event = asyncio.Event()

    task = asyncio.create_task(lifecycle.run(stop_event))
    await wait_until(lambda: out.getvalue())

    stop_event.set()
    await asyncio.wait_for(task, timeout=2)

    assert len(dialer.state.tasks) == 0
    await listener.shutdown()
