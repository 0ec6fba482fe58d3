import asyncio


class FlowControl:
    """
    Whether the transport currently accepts writes.

    The Protocol calls `pause()`/`resume()` from the transport's
    pause_writing()/resume_writing() notifications and the Channel waits on
    `writable()` before handing it more bytes.
    """

    def __init__(self) -> None:
        self._resumed = asyncio.Event()
        self._resumed.set()

    @property
    def paused(self) -> bool:
        return not self._resumed.is_set()

    def pause(self) -> None:
        self._resumed.clear()

    def resume(self) -> None:
        self._resumed.set()

    async def writable(self) -> None:
        await self._resumed.wait()
