import logging
from typing import Iterator

from echoline.core.errors import FrameTooLarge


class FrameDecoder:
    """
    Stateful per-connection accumulator that splits an arbitrarily
    chunked byte stream into delimiter-terminated frames.

    `feed()` appends the chunk to the decode buffer immediately, so bytes
    are never dropped or reordered, and returns a lazy iterator over the
    frames that became complete. The iterator scans from the buffer head,
    yields the bytes before each delimiter (the delimiter itself is
    stripped) and stops at the first undelimited remainder, which stays
    buffered for the next call. A chunk carrying several delimiters
    yields several frames.

    When the undelimited remainder grows past `max_frame_size`, or a
    delimited frame is longer than `max_frame_size`, the iterator raises
    FrameTooLarge. The decoder is then failed: the buffer is released and
    any further `feed()` raises FrameTooLarge again. The owner is expected
    to close the connection and discard the decoder.

    `close()` drops an unfinished tail without emitting it. A dangling,
    non-delimited tail is not a protocol violation, it simply never
    becomes a message.
    """
    def __init__(self, delimiter: bytes = b"\n", max_frame_size: int = 8192) -> None:
        if not delimiter:
            raise ValueError("Frame delimiter must not be empty")
        if max_frame_size <= 0:
            raise ValueError("max_frame_size must be positive")

        self._delimiter = bytes(delimiter)
        self._max_frame_size = max_frame_size
        self._buffer = bytearray()
        self._scan_from = 0
        self._failed = False
        self._logger = logging.getLogger("core.framing.decoder")

    @property
    def delimiter(self) -> bytes:
        return self._delimiter

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet resolved into a frame."""
        return len(self._buffer)

    def feed(self, chunk: bytes) -> Iterator[bytes]:
        if self._failed:
            raise FrameTooLarge(len(self._buffer) + len(chunk), self._max_frame_size)

        self._buffer.extend(chunk)
        return self._frames()

    def close(self) -> int:
        """Discard the buffered tail and return how many bytes were dropped."""
        dropped = len(self._buffer)
        self._buffer.clear()
        self._scan_from = 0
        return dropped

    def _frames(self) -> Iterator[bytes]:
        delimiter = self._delimiter
        while not self._failed:
            index = self._buffer.find(delimiter, self._scan_from)

            if index < 0:
                if len(self._buffer) > self._max_frame_size:
                    self._fail(len(self._buffer))
                # a multi-byte delimiter may straddle the next chunk
                self._scan_from = max(0, len(self._buffer) - len(delimiter) + 1)
                return

            if index > self._max_frame_size:
                self._fail(index)

            frame = bytes(self._buffer[:index])
            del self._buffer[:index + len(delimiter)]
            self._scan_from = 0
            yield frame

    def _fail(self, size: int) -> None:
        self._failed = True
        self._buffer.clear()
        self._scan_from = 0
        self._logger.debug(
            f"Frame of {size} bytes exceeds limit of {self._max_frame_size} bytes"
        )
        raise FrameTooLarge(size, self._max_frame_size)
