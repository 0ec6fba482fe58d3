from enum import StrEnum


class Delimiter(StrEnum):
    """
    Byte sequences accepted as frame boundaries.

    Exactly one is active per connection: a stream framed with `crlf`
    keeps bare "\\n" bytes inside its frames, and a stream framed with
    `lf` keeps a trailing "\\r" in each frame.
    """
    lf = "lf"
    crlf = "crlf"

    @property
    def sequence(self) -> bytes:
        return b"\r\n" if self is Delimiter.crlf else b"\n"
