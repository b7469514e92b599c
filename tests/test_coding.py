import pytest

from lsmcore.coding import (
    DecodeError,
    get_length_prefixed,
    get_varint,
    put_length_prefixed,
    put_varint,
)


def test_single_byte_varint():
    buf = bytearray()
    put_varint(buf, 127)
    assert bytes(buf) == b"\x7f"


def test_two_byte_varint():
    buf = bytearray()
    put_varint(buf, 300)
    assert bytes(buf) == b"\xac\x02"


@pytest.mark.parametrize("value", [0, 1, 127, 128, 16383, 16384, 2**32 - 1, 2**63, 2**64 - 1])
def test_varint_round_trip(value):
    buf = bytearray()
    put_varint(buf, value)
    decoded, end = get_varint(buf, 0)
    assert decoded == value
    assert end == len(buf)


def test_varints_in_sequence():
    values = [5, 1000, 70000, 0, 2**40]
    buf = bytearray()
    for v in values:
        put_varint(buf, v)
    offset = 0
    decoded = []
    while offset < len(buf):
        value, offset = get_varint(buf, offset)
        decoded.append(value)
    assert decoded == values


def test_negative_varint_rejected():
    with pytest.raises(ValueError):
        put_varint(bytearray(), -1)


def test_truncated_varint():
    buf = bytearray()
    put_varint(buf, 2**20)
    with pytest.raises(DecodeError):
        get_varint(buf[:-1], 0)


def test_varint_at_end_of_data():
    with pytest.raises(DecodeError):
        get_varint(b"", 0)


def test_length_prefixed_round_trip():
    buf = bytearray()
    put_length_prefixed(buf, b"hello")
    put_length_prefixed(buf, b"")
    put_length_prefixed(buf, b"x" * 200)
    first, offset = get_length_prefixed(buf, 0)
    second, offset = get_length_prefixed(buf, offset)
    third, offset = get_length_prefixed(buf, offset)
    assert (first, second, third) == (b"hello", b"", b"x" * 200)
    assert offset == len(buf)


def test_length_prefixed_truncated():
    buf = bytearray()
    put_length_prefixed(buf, b"hello")
    with pytest.raises(DecodeError):
        get_length_prefixed(buf[:-2], 0)