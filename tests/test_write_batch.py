import pytest

from lsmcore.coding import DecodeError
from lsmcore.write_batch import (
    HEADER_SIZE,
    Delete,
    Put,
    ReadOnlyWriteBatch,
    ValueType,
    WriteBatch,
)


def _sample_batch():
    wb = WriteBatch()
    wb.put(b"a", b"1")
    wb.put_cf(3, b"b", b"22")
    wb.delete(b"c")
    wb.delete_cf(7, b"d")
    return wb


def test_wire_format_of_single_put():
    wb = WriteBatch()
    wb.put(b"k", b"v")
    raw = wb.to_raw()
    assert raw.data == bytes(8) + b"\x01\x00\x00\x00" + b"\x01\x01k\x01v"


def test_iteration_round_trip():
    raw = _sample_batch().to_raw()
    assert list(raw) == [
        Put(0, b"a", b"1"),
        Put(3, b"b", b"22"),
        Delete(0, b"c"),
        Delete(7, b"d"),
    ]
    assert raw.count == 4


def test_column_family_tags():
    wb = WriteBatch()
    wb.put_cf(9, b"k", b"v")
    raw = wb.to_raw()
    assert raw.data[HEADER_SIZE] == ValueType.COLUMN_FAMILY_VALUE
    wb2 = WriteBatch()
    wb2.delete_cf(9, b"k")
    assert wb2.to_raw().data[HEADER_SIZE] == ValueType.COLUMN_FAMILY_DELETION


def test_set_sequence_and_from_bytes():
    raw = _sample_batch().to_raw()
    raw.set_sequence(42)
    assert raw.sequence == 42
    restored = ReadOnlyWriteBatch.from_bytes(raw.data)
    assert restored.sequence == 42
    assert restored.count == raw.count
    assert list(restored) == list(raw)


def test_from_bytes_too_short():
    with pytest.raises(DecodeError):
        ReadOnlyWriteBatch.from_bytes(b"\x00" * (HEADER_SIZE - 1))


def test_append_to_merges_batches():
    first = _sample_batch().to_raw()
    second_builder = WriteBatch()
    second_builder.put(b"z", b"last")
    second = second_builder.to_raw()
    buf = bytearray()
    first.append_to(buf)
    second.append_to(buf)
    combined = ReadOnlyWriteBatch.from_bytes(bytes(buf))
    assert combined.count == first.count + second.count
    assert list(combined) == list(first) + list(second)


def test_truncated_batch_stops_iteration():
    raw = _sample_batch().to_raw()
    truncated = ReadOnlyWriteBatch.from_bytes(raw.data[:-1])
    assert list(truncated) == list(raw)[:-1]


def test_clear_resets_batch():
    wb = _sample_batch()
    wb.clear()
    assert wb.count == 0
    wb.put(b"x", b"y")
    assert list(wb.to_raw()) == [Put(0, b"x", b"y")]


def test_to_raw_twice_fails_and_recycle_restores():
    wb = WriteBatch()
    wb.put(b"k", b"v")
    raw = wb.to_raw()
    with pytest.raises(RuntimeError):
        wb.to_raw()
    wb.recycle(raw)
    wb.clear()
    wb.delete(b"k")
    assert list(wb.to_raw()) == [Delete(0, b"k")]


def test_empty_batch_iterates_nothing():
    raw = WriteBatch().to_raw()
    assert list(raw) == []
    assert len(raw.data) == HEADER_SIZE