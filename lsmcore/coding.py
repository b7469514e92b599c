"""Variable-length integer and length-prefixed byte string encoding."""

from __future__ import annotations

_MAX_VARINT_BYTES = 10


class DecodeError(ValueError):
    """Raised when encoded data is truncated or malformed."""


def put_varint(buf: bytearray, value: int) -> None:
    """Append ``value`` to ``buf`` as a little-endian base-128 varint."""
    if value < 0:
        raise ValueError("varint value must be non-negative")
    while value >= 0x80:
        buf.append((value & 0x7F) | 0x80)
        value >>= 7
    buf.append(value)


def get_varint(data: bytes | bytearray | memoryview, offset: int = 0) -> tuple[int, int]:
    """Decode a varint at ``offset``; return the value and the offset after it."""
    result = 0
    shift = 0
    window = data[offset:offset + _MAX_VARINT_BYTES]
    for pos, byte in enumerate(window, start=offset):
        result |= (byte & 0x7F) << shift
        if byte < 0x80:
            return result, pos + 1
        shift += 7
    raise DecodeError("truncated or overlong varint")


def put_length_prefixed(buf: bytearray, data: bytes | bytearray) -> None:
    """Append ``data`` to ``buf`` preceded by its length as a varint."""
    put_varint(buf, len(data))
    buf.extend(data)


def get_length_prefixed(
    data: bytes | bytearray | memoryview, offset: int = 0
) -> tuple[bytes, int]:
    """Decode a length-prefixed byte string at ``offset``."""
    length, start = get_varint(data, offset)
    end = start + length
    if end > len(data):
        raise DecodeError("length-prefixed slice runs past the end of the data")
    return bytes(data[start:end]), end