from echoline.core.errors import MalformedPayload


def encode_frame(text: str, delimiter: bytes, encoding: str = "utf-8") -> bytes:
    """
    Encode one outbound message and terminate it with the delimiter.

    A message embedding the delimiter would reach the peer as two
    frames, so it is refused with MalformedPayload.
    """
    try:
        data = text.encode(encoding)
    except UnicodeEncodeError as exc:
        raise MalformedPayload(f"Cannot encode message as {encoding}: {exc}") from exc

    if delimiter in data:
        raise MalformedPayload("Message contains the frame delimiter")

    return data + delimiter


def decode_text(frame: bytes, encoding: str = "utf-8") -> str:
    """Decode a frame payload into text, raising MalformedPayload on invalid bytes."""
    try:
        return frame.decode(encoding)
    except UnicodeDecodeError as exc:
        raise MalformedPayload(f"Frame is not valid {encoding}: {exc}") from exc
