"""Shared counters for file numbers, sequences and column family ids."""

from __future__ import annotations

import threading


class KernelNumberContext:
    """Thread-safe monotonic counters shared by the engine."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_file_number = 0
        self._next_mem_number = 0
        self._last_sequence = 0
        self._max_column_family = 0

    def current_next_file_number(self) -> int:
        with self._lock:
            return self._next_file_number

    def new_file_number(self) -> int:
        """Allocate a file number, returning the one allocated."""
        return self.fetch_add_file_number(1)

    def new_memtable_number(self) -> int:
        with self._lock:
            number = self._next_mem_number
            self._next_mem_number += 1
            return number

    def last_sequence(self) -> int:
        with self._lock:
            return self._last_sequence

    def fetch_add_file_number(self, n: int) -> int:
        """Reserve ``n`` file numbers, returning the first one."""
        with self._lock:
            number = self._next_file_number
            self._next_file_number += n
            return number

    def set_last_sequence(self, value: int) -> None:
        with self._lock:
            self._last_sequence = value

    def set_max_column_family(self, value: int) -> None:
        with self._lock:
            self._max_column_family = value

    def get_max_column_family(self) -> int:
        with self._lock:
            return self._max_column_family

    def next_column_family_id(self) -> int:
        """Allocate and return a new column family id."""
        with self._lock:
            self._max_column_family += 1
            return self._max_column_family

    def mark_file_number_used(self, value: int) -> None:
        """Ensure future file numbers are greater than ``value``."""
        with self._lock:
            if self._next_file_number <= value:
                self._next_file_number = value + 1