import asyncio
import os
import signal
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")


async def spawn(*args: str, cwd: Path) -> asyncio.subprocess.Process:
    env = {k: v for k, v in os.environ.items() if not k.startswith("ECHOLINE")}
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT), env.get("PYTHONPATH")]))

    return await asyncio.create_subprocess_exec(
        sys.executable, "-m", "echoline.bootstrap.boot", *args,
        cwd=cwd,
        env=env,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.PIPE,
    )


async def read_until(stream: asyncio.StreamReader, marker: bytes, timeout: float = 10.0) -> bytes:
    seen = b""

    async def scan():
        nonlocal seen
        while marker not in seen:
            line = await stream.readline()
            if not line:
                raise AssertionError(f"process exited before logging {marker!r}: {seen!r}")
            seen += line

    await asyncio.wait_for(scan(), timeout=timeout)
    return seen


async def stop(proc: asyncio.subprocess.Process, sig: signal.Signals) -> tuple[int, bytes]:
    try:
        proc.send_signal(sig)
        rest = await asyncio.wait_for(proc.stderr.read(), timeout=10)
        code = await asyncio.wait_for(proc.wait(), timeout=10)
    finally:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
    return code, rest


@pytest.mark.it
@pytest.mark.asyncio
@pytest.mark.parametrize("sig", [signal.SIGTERM, signal.SIGINT])
async def test_idle_server_stops_on_signal(tmp_path, sig):
    proc = await spawn("serve", "--host", "127.0.0.1", "--port", "0", cwd=tmp_path)
    await read_until(proc.stderr, b"Successfully bound to")

    code, rest = await stop(proc, sig)

    assert code == 0
    assert f"{sig.name} received".encode() in rest
    assert b"Shutting down server, 0 client(s) connected." in rest


@pytest.mark.it
@pytest.mark.asyncio
async def test_client_waiting_on_silent_server_stops_on_sigterm(tmp_path):
    peers = []

    async def accept(reader, writer):
        peers.append(writer)

    server = await asyncio.start_server(accept, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]

    try:
        proc = await spawn("connect", "--host", "127.0.0.1", "--port", str(port), cwd=tmp_path)
        await read_until(proc.stderr, b"Successfully connected")

        code, rest = await stop(proc, signal.SIGTERM)

        assert code == 0
        assert b"Stop signal received, closing connection." in rest
    finally:
        for writer in peers:
            writer.close()
        server.close()
        await server.wait_closed()
