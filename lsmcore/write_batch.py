"""Write batches: an encoded list of puts and deletes across column families."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator, Union

from lsmcore.coding import (
    DecodeError,
    get_length_prefixed,
    get_varint,
    put_length_prefixed,
    put_varint,
)

HEADER_SIZE = 12
_MAX_UINT32 = 0xFFFFFFFF


class ValueType(IntEnum):
    """Record tags stored in a write batch."""

    DELETION = 0x0
    VALUE = 0x1
    COLUMN_FAMILY_DELETION = 0x4
    COLUMN_FAMILY_VALUE = 0x5


@dataclass(frozen=True)
class Put:
    """A key/value insertion into a column family."""

    cf: int
    key: bytes
    value: bytes


@dataclass(frozen=True)
class Delete:
    """A key deletion from a column family."""

    cf: int
    key: bytes


WriteBatchItem = Union[Put, Delete]


class WriteBatch:
    """Mutable builder of an encoded batch of writes."""

    def __init__(self) -> None:
        self._data = bytearray(HEADER_SIZE)
        self.count = 0
        self.flag = 0

    def clear(self) -> None:
        """Drop all records and reset counters."""
        del self._data[HEADER_SIZE:]
        self._data.extend(bytes(HEADER_SIZE - len(self._data)))
        self.count = 0
        self.flag = 0

    def _append_tag(self, cf: int, plain: ValueType, with_cf: ValueType) -> None:
        self.count += 1
        if cf == 0:
            self._data.append(plain)
        else:
            self._data.append(with_cf)
            put_varint(self._data, cf)

    def put_cf(self, cf: int, key: bytes, value: bytes) -> None:
        self._append_tag(cf, ValueType.VALUE, ValueType.COLUMN_FAMILY_VALUE)
        put_length_prefixed(self._data, key)
        put_length_prefixed(self._data, value)

    def put(self, key: bytes, value: bytes) -> None:
        self.put_cf(0, key, value)

    def delete_cf(self, cf: int, key: bytes) -> None:
        self._append_tag(cf, ValueType.DELETION, ValueType.COLUMN_FAMILY_DELETION)
        put_length_prefixed(self._data, key)

    def delete(self, key: bytes) -> None:
        self.delete_cf(0, key)

    def to_raw(self) -> ReadOnlyWriteBatch:
        """Seal the batch, handing its buffer to a read-only batch."""
        if len(self._data) < HEADER_SIZE:
            raise RuntimeError("write batch buffer has already been handed out")
        self._data[8:12] = struct.pack("<I", self.count)
        data, self._data = self._data, bytearray()
        return ReadOnlyWriteBatch(data, flag=self.flag, sequence=0, count=self.count)

    def recycle(self, batch: ReadOnlyWriteBatch) -> None:
        """Take back the buffer of a read-only batch for reuse."""
        self._data = batch._data


class ReadOnlyWriteBatch:
    """A sealed write batch with an assigned sequence number."""

    def __init__(
        self, data: bytes | bytearray, *, flag: int = 0, sequence: int = 0, count: int = 0
    ) -> None:
        self._data = bytearray(data)
        self.flag = flag
        self.sequence = sequence
        self.count = count

    @classmethod
    def from_bytes(cls, data: bytes | bytearray) -> ReadOnlyWriteBatch:
        if len(data) < HEADER_SIZE:
            raise DecodeError("can not decode write batch")
        sequence, count = struct.unpack_from("<QI", data, 0)
        return cls(data, flag=0, sequence=sequence, count=count)

    @property
    def data(self) -> bytes:
        return bytes(self._data)

    def set_sequence(self, sequence: int) -> None:
        self._data[0:8] = struct.pack("<Q", sequence)
        self.sequence = sequence

    def append_to(self, buf: bytearray) -> None:
        """Append this batch's records to ``buf``, merging the record count."""
        if not buf:
            buf.extend(self._data)
            return
        buf.extend(self._data[HEADER_SIZE:])
        (existing,) = struct.unpack_from("<I", buf, 8)
        buf[8:12] = struct.pack("<I", existing + self.count)

    def __iter__(self) -> Iterator[WriteBatchItem]:
        data = bytes(self._data)
        offset = HEADER_SIZE
        while offset < len(data):
            try:
                item, offset = _read_record(data, offset)
            except DecodeError:
                return
            yield item


def _get_u32(data: bytes, offset: int) -> tuple[int, int]:
    value, offset = get_varint(data, offset)
    if value > _MAX_UINT32:
        raise DecodeError("varint exceeds 32 bits")
    return value, offset


def _read_record(data: bytes, offset: int) -> tuple[WriteBatchItem, int]:
    tag = data[offset]
    offset += 1
    cf = 0
    if tag in (ValueType.COLUMN_FAMILY_VALUE, ValueType.COLUMN_FAMILY_DELETION):
        cf, offset = _get_u32(data, offset)
    if tag in (ValueType.VALUE, ValueType.COLUMN_FAMILY_VALUE):
        key, offset = get_length_prefixed(data, offset)
        value, offset = get_length_prefixed(data, offset)
        return Put(cf, key, value), offset
    if tag in (ValueType.DELETION, ValueType.COLUMN_FAMILY_DELETION):
        key, offset = get_length_prefixed(data, offset)
        return Delete(cf, key), offset
    raise DecodeError(f"unknown write batch tag {tag}")