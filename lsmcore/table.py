"""Table file metadata and handles on table files."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

FILE_NUMBER_MASK = 0x3FFFFFFFFFFFFFFF
MAX_SEQUENCE_NUMBER = (1 << 56) - 1


def pack_file_number_and_path_id(number: int, path_id: int) -> int:
    return number | (path_id * (FILE_NUMBER_MASK + 1))


def extract_user_key(key: bytes) -> bytes:
    """Strip the 8-byte sequence/type trailer from an internal key."""
    if len(key) < 8:
        raise ValueError("internal key is shorter than its 8-byte trailer")
    return bytes(key[:-8])


@dataclass
class FileDescriptor:
    """Location, size and sequence range of a table file."""

    packed_number_and_path_id: int = 0
    file_size: int = 0
    smallest_seqno: int = MAX_SEQUENCE_NUMBER
    largest_seqno: int = 0

    @classmethod
    def create(cls, number: int, path_id: int = 0) -> FileDescriptor:
        return cls(packed_number_and_path_id=pack_file_number_and_path_id(number, path_id))

    @property
    def number(self) -> int:
        return self.packed_number_and_path_id & FILE_NUMBER_MASK

    @property
    def path_id(self) -> int:
        return self.packed_number_and_path_id // (FILE_NUMBER_MASK + 1)


@dataclass
class FileMetaData:
    """Metadata recorded for one table file."""

    fd: FileDescriptor = field(default_factory=FileDescriptor)
    level: int = 0
    smallest: bytes = b""
    largest: bytes = b""
    marked_for_compaction: bool = False
    num_entries: int = 0

    @classmethod
    def create(
        cls, number: int, level: int, smallest: bytes = b"", largest: bytes = b""
    ) -> FileMetaData:
        return cls(
            fd=FileDescriptor.create(number, 0),
            level=level,
            smallest=bytes(smallest),
            largest=bytes(largest),
        )

    @property
    def id(self) -> int:
        return self.fd.number

    def update_boundary(self, key: bytes, seqno: int) -> None:
        """Extend the key and sequence range with a newly written key."""
        if not self.smallest:
            self.smallest = bytes(key)
        self.largest = bytes(key)
        self.fd.smallest_seqno = min(self.fd.smallest_seqno, seqno)
        self.fd.largest_seqno = max(self.fd.largest_seqno, seqno)


class TableFile:
    """An open table file; removed from disk on close once marked removed."""

    def __init__(
        self,
        meta: FileMetaData,
        reader: Any,
        path: str | os.PathLike[str],
        fs: Any = None,
    ) -> None:
        self.meta = meta
        self.reader = reader
        self.path = Path(path)
        self._fs = fs
        self._smallest = extract_user_key(meta.smallest)
        self._largest = extract_user_key(meta.largest)
        self._lock = threading.Lock()
        self._deleted = False
        self._being_compacted = False
        self._closed = False

    @property
    def smallest(self) -> bytes:
        """Smallest user key in the file."""
        return self._smallest

    @property
    def largest(self) -> bytes:
        """Largest user key in the file."""
        return self._largest

    @property
    def id(self) -> int:
        return self.meta.id

    def mark_removed(self) -> None:
        with self._lock:
            self._deleted = True

    def mark_compaction(self) -> None:
        with self._lock:
            self._being_compacted = True

    def is_pending_compaction(self) -> bool:
        with self._lock:
            return self._being_compacted

    def close(self) -> None:
        """Release the file, deleting it from disk if it was marked removed."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            deleted = self._deleted
        if not deleted:
            return
        log.info("delete file %s", self.path)
        try:
            if self._fs is not None:
                self._fs.remove(self.path)
            else:
                os.remove(self.path)
        except OSError as exc:
            log.warning("failed to delete %s: %s", self.path, exc)

    def __enter__(self) -> TableFile:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()