import asyncio
import contextlib
import logging
import signal
import sys
import threading
from typing import Any, Generator

STOP_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)

if sys.platform == "win32":
    STOP_SIGNALS += (signal.SIGBREAK,)


@contextlib.contextmanager
def setup_signal_handler(loop: asyncio.AbstractEventLoop) -> Generator[asyncio.Event, None, None]:
    """
    Yield an event that is set when the process is asked to stop.

    Stop signals are delivered through `loop`, so a loop idling in its
    selector wakes up to run the callback. Event loops without
    `add_signal_handler()` (Windows) fall back to `signal.signal()` and
    hand the event over with `call_soon_threadsafe()`. Outside the main
    thread no handler can be installed and the event is only set by the
    caller.
    """
    stop_event = asyncio.Event()
    logger = logging.getLogger("core.helpers.signals")

    if threading.current_thread() is not threading.main_thread():
        yield stop_event
        return

    def request_stop(sig: signal.Signals) -> None:
        if stop_event.is_set():
            logger.info(f"{sig.name} received again, still stopping...")
            return
        logger.info(f"{sig.name} received, stopping...")
        stop_event.set()

    via_loop: list[signal.Signals] = []
    previous: dict[signal.Signals, Any] = {}

    for sig in STOP_SIGNALS:
        try:
            loop.add_signal_handler(sig, request_stop, sig)
            via_loop.append(sig)
        except NotImplementedError:
            previous[sig] = signal.signal(
                sig,
                lambda signum, _: loop.call_soon_threadsafe(request_stop, signal.Signals(signum)),
            )

    try:
        yield stop_event
    finally:
        for sig in via_loop:
            loop.remove_signal_handler(sig)
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s] : %(message)s",
        stream=sys.stderr,
    )
