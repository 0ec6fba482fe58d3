import asyncio
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from echoline.core.transport.protocol import Protocol


class ConnectionPhase(IntEnum):
    """
    Lifecycle phase of a single connection.

    Phases are ordered and a connection only ever moves forward:
    idle -> active -> closing -> closed.
    """
    idle = 0
    """Constructed, transport not yet confirmed."""

    active = 1
    """Transport open, frames may arrive and responses may be written."""

    closing = 2
    """Close initiated, no further frames are accepted."""

    closed = 3
    """Terminal."""


@dataclass
class TransportState:
    """
    Shared runtime state of a Listener or a Dialer.

    This object is mutated by:
    - Protocol: adds/removes active connections, registers connection tasks
    - Listener.shutdown() / Dialer.close(): wait for connections and tasks
    """
    connections: set["Protocol"] = field(default_factory=set)
    """
    Set of active Protocol instances. Each TCP connection corresponds
    to one Protocol.
    """

    tasks: set[asyncio.Task[None]] = field(default_factory=set)
    """
    Set of per-connection tasks. Each task removes itself through
    task.add_done_callback(tasks.discard) once the connection is done.
    """
