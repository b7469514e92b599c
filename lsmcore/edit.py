"""Version edits: the records that describe changes to the set of table files."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, TypeVar

from lsmcore.coding import (
    DecodeError,
    get_length_prefixed,
    get_varint,
    put_length_prefixed,
    put_varint,
)
from lsmcore.table import FileMetaData

_MAX_UINT32 = 0xFFFFFFFF
_MAX_UINT64 = 0xFFFFFFFFFFFFFFFF

_T = TypeVar("_T")


class Tag(IntEnum):
    """Field tags of a serialized version edit; these values are on disk."""

    COMPARATOR = 1
    LOG_NUMBER = 2
    NEXT_FILE_NUMBER = 3
    LAST_SEQUENCE = 4
    COMPACT_POINTER = 5
    DELETED_FILE = 6
    NEW_FILE = 7
    # 8 was used for large value refs
    PREV_LOG_NUMBER = 9
    MIN_LOG_NUMBER_TO_KEEP = 10
    NEW_FILE2 = 100
    NEW_FILE3 = 102
    NEW_FILE4 = 103
    COLUMN_FAMILY = 200
    COLUMN_FAMILY_ADD = 201
    COLUMN_FAMILY_DROP = 202
    MAX_COLUMN_FAMILY = 203
    IN_ATOMIC_GROUP = 300
    UNKNOWN = 65535

    @classmethod
    def from_value(cls, value: int) -> Tag:
        """Map a decoded number to its tag, or UNKNOWN if it names none."""
        if value == 0 or 10 < value < 100 or 103 < value < 200 or value > 203:
            return cls.UNKNOWN
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


def _read(reader: Callable[[], _T], message: str) -> _T:
    try:
        return reader()
    except DecodeError:
        raise DecodeError(message) from None


def _get_u32(data: bytes, offset: int) -> tuple[int, int]:
    value, offset = get_varint(data, offset)
    if value > _MAX_UINT32:
        raise DecodeError("varint exceeds 32 bits")
    return value, offset


def _get_u64(data: bytes, offset: int) -> tuple[int, int]:
    value, offset = get_varint(data, offset)
    if value > _MAX_UINT64:
        raise DecodeError("varint exceeds 64 bits")
    return value, offset


@dataclass
class VersionEdit:
    """A change to a column family's files and the engine's counters."""

    add_files: list[FileMetaData] = field(default_factory=list)
    deleted_files: list[FileMetaData] = field(default_factory=list)

    # only set when a column family is created by hand
    cf_options: Any = field(default=None, repr=False)

    max_level: int = 0
    comparator_name: str = ""
    log_number: int = 0
    prev_log_number: int = 0
    next_file_number: int = 0
    max_column_family: int = 0
    min_log_number_to_keep: int = 0
    last_sequence: int = 0

    has_comparator: bool = False
    has_log_number: bool = False
    has_prev_log_number: bool = False
    has_next_file_number: bool = False
    has_last_sequence: bool = False
    has_max_column_family: bool = False
    has_min_log_number_to_keep: bool = False

    is_column_family_drop: bool = False
    is_column_family_add: bool = False
    column_family: int = 0
    column_family_name: str = ""

    def encode(self) -> bytes:
        """Serialize the edit to its on-disk form."""
        buf = bytearray()
        if self.has_comparator:
            put_varint(buf, Tag.COMPARATOR)
            put_length_prefixed(buf, self.comparator_name.encode("utf-8"))
        if self.has_log_number:
            put_varint(buf, Tag.LOG_NUMBER)
            put_varint(buf, self.log_number)
        if self.has_prev_log_number:
            put_varint(buf, Tag.PREV_LOG_NUMBER)
            put_varint(buf, self.prev_log_number)
        if self.has_next_file_number:
            put_varint(buf, Tag.NEXT_FILE_NUMBER)
            put_varint(buf, self.next_file_number)
        if self.has_last_sequence:
            put_varint(buf, Tag.LAST_SEQUENCE)
            put_varint(buf, self.last_sequence)
        if self.has_max_column_family:
            put_varint(buf, Tag.MAX_COLUMN_FAMILY)
            put_varint(buf, self.max_column_family)
        for f in self.deleted_files:
            put_varint(buf, Tag.DELETED_FILE)
            put_varint(buf, f.level)
            put_varint(buf, f.id)
        for f in self.add_files:
            customized = False
            if f.marked_for_compaction or self.has_min_log_number_to_keep:
                put_varint(buf, Tag.NEW_FILE4)
                customized = True
            elif f.fd.path_id == 0:
                put_varint(buf, Tag.NEW_FILE2)
            else:
                put_varint(buf, Tag.NEW_FILE3)
            put_varint(buf, f.level)
            put_varint(buf, f.fd.number)
            if f.fd.path_id != 0 and not customized:
                put_varint(buf, f.fd.path_id)
            put_varint(buf, f.fd.file_size)
            put_length_prefixed(buf, f.smallest)
            put_length_prefixed(buf, f.largest)
            put_varint(buf, f.fd.smallest_seqno)
            put_varint(buf, f.fd.largest_seqno)
        if self.column_family != 0:
            put_varint(buf, Tag.COLUMN_FAMILY)
            put_varint(buf, self.column_family)
        if self.is_column_family_add:
            put_varint(buf, Tag.COLUMN_FAMILY_ADD)
            put_length_prefixed(buf, self.column_family_name.encode("utf-8"))
        if self.is_column_family_drop:
            put_varint(buf, Tag.COLUMN_FAMILY_DROP)
        return bytes(buf)

    @classmethod
    def decode(cls, data: bytes | bytearray) -> VersionEdit:
        """Parse an encoded edit; raise DecodeError on malformed input."""
        data = bytes(data)
        edit = cls()
        offset = 0
        while offset < len(data):
            try:
                tag_value, offset = _get_u32(data, offset)
            except DecodeError:
                break
            offset = edit._decode_field(Tag.from_value(tag_value), data, offset)
        return edit

    def _note_level(self, level: int) -> None:
        if level > self.max_level:
            self.max_level = level

    def _decode_field(self, tag: Tag, data: bytes, offset: int) -> int:
        def u32(msg: str) -> int:
            nonlocal offset
            value, offset = _read(lambda: _get_u32(data, offset), msg)
            return value

        def u64(msg: str) -> int:
            nonlocal offset
            value, offset = _read(lambda: _get_u64(data, offset), msg)
            return value

        def slice_(msg: str) -> bytes:
            nonlocal offset
            value, offset = _read(lambda: get_length_prefixed(data, offset), msg)
            return value

        def text(msg_missing: str, msg_utf8: str) -> str:
            raw = slice_(msg_missing)
            try:
                return raw.decode("utf-8")
            except UnicodeDecodeError:
                raise DecodeError(msg_utf8) from None

        if tag is Tag.COMPARATOR:
            self.comparator_name = text("comparator name", "decode comparator error")
        elif tag is Tag.LOG_NUMBER:
            self.log_number = u64("log number")
            self.has_log_number = True
        elif tag is Tag.NEXT_FILE_NUMBER:
            self.next_file_number = u64("next file number")
            self.has_next_file_number = True
        elif tag is Tag.LAST_SEQUENCE:
            self.last_sequence = u64("last sequence")
            self.has_last_sequence = True
        elif tag is Tag.COMPACT_POINTER:
            raise DecodeError("do not support upgrade from compact pointer")
        elif tag is Tag.DELETED_FILE:
            level = u32("deleted file")
            self._note_level(level)
            number = u64("deleted file")
            self.deleted_files.append(FileMetaData.create(number, level))
        elif tag in (Tag.NEW_FILE, Tag.NEW_FILE2):
            msg = "new file" if tag is Tag.NEW_FILE else "new file3"
            level = u32(msg)
            self._note_level(level)
            number = u64(msg)
            file_size = u64(msg)
            smallest = slice_(msg)
            largest = slice_(msg)
            f = FileMetaData.create(number, level, smallest, largest)
            f.fd.file_size = file_size
            if tag is Tag.NEW_FILE2:
                f.fd.smallest_seqno = u64(msg)
                f.fd.largest_seqno = u64(msg)
            self.add_files.append(f)
        elif tag is Tag.PREV_LOG_NUMBER:
            self.prev_log_number = u64("prev log number")
            self.has_prev_log_number = True
        elif tag is Tag.MIN_LOG_NUMBER_TO_KEEP:
            self.min_log_number_to_keep = u64("min log number to keep")
            self.has_prev_log_number = True
        elif tag is Tag.NEW_FILE3:
            raise DecodeError("do not support NewFiles3 sst")
        elif tag is Tag.NEW_FILE4:
            raise DecodeError("do not support NewFiles4 sst")
        elif tag is Tag.COLUMN_FAMILY:
            self.column_family = u32("column family")
        elif tag is Tag.COLUMN_FAMILY_ADD:
            self.column_family_name = text("column family add", "column family add")
            self.is_column_family_add = True
        elif tag is Tag.COLUMN_FAMILY_DROP:
            self.is_column_family_drop = True
        elif tag is Tag.MAX_COLUMN_FAMILY:
            self.max_column_family = u32("column family")
            self.has_max_column_family = True
        elif tag is Tag.IN_ATOMIC_GROUP:
            raise DecodeError("do not support atomic group")
        else:
            raise DecodeError("unknown tag, manifest may be corrupted")
        return offset

    def set_log_number(self, log_number: int) -> None:
        self.log_number = log_number
        self.has_log_number = True

    def add_column_family(self, name: str) -> None:
        self.is_column_family_add = True
        self.column_family_name = name

    def set_comparator_name(self, name: str) -> None:
        self.has_comparator = True
        self.comparator_name = name

    def set_next_file(self, file_number: int) -> None:
        self.next_file_number = file_number
        self.has_next_file_number = True

    def set_last_sequence(self, seq: int) -> None:
        self.last_sequence = seq
        self.has_last_sequence = True

    def set_max_column_family(self, value: int) -> None:
        self.has_max_column_family = True
        self.max_column_family = value

    def add_file(
        self,
        level: int,
        file_number: int,
        file_size: int,
        smallest: bytes,
        largest: bytes,
        smallest_seqno: int,
        largest_seqno: int,
    ) -> None:
        f = FileMetaData.create(file_number, level, smallest, largest)
        f.fd.file_size = file_size
        f.fd.smallest_seqno = smallest_seqno
        f.fd.largest_seqno = largest_seqno
        self.add_files.append(f)

    def delete_file(self, level: int, file_number: int) -> None:
        self.deleted_files.append(FileMetaData.create(file_number, level))