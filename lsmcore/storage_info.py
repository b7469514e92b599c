"""Per-level layout of table files within one version of a column family."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from itertools import dropwhile, islice
from typing import Any, Iterable, Iterator

from sortedcontainers import SortedKeyList

from lsmcore.table import TableFile, extract_user_key

MAX_UINT64 = 0xFFFFFFFFFFFFFFFF


def _table_key(table: TableFile) -> tuple[bytes, int]:
    return (table.smallest, table.id)


def _round(value: float) -> int:
    """Round half away from zero for non-negative values."""
    return math.floor(value + 0.5)


class LevelTables:
    """An immutable, key-ordered collection of non-overlapping table files."""

    def __init__(self, tables: Iterable[TableFile] = ()) -> None:
        self._tables = SortedKeyList(tables, key=_table_key)

    def __len__(self) -> int:
        return len(self._tables)

    def __iter__(self) -> Iterator[TableFile]:
        return iter(self._tables)

    def _position(self, key: bytes) -> int:
        return self._tables.bisect_key_right((bytes(key), math.inf))

    def get(self, key: bytes) -> TableFile | None:
        """Return the table whose user-key range holds ``key``, if any."""
        pos = self._position(key)
        if pos == 0:
            return None
        table = self._tables[pos - 1]
        return table if table.largest >= key else None

    def seek(self, key: bytes) -> Iterator[TableFile]:
        """Iterate tables in order starting from the first that may hold ``key``."""
        start = max(self._position(key) - 1, 0)
        return dropwhile(lambda t: t.largest < key, islice(self._tables, start, None))

    def replace(
        self, to_delete: Iterable[TableFile], to_add: Iterable[TableFile]
    ) -> LevelTables:
        """Return a new collection without ``to_delete`` and with ``to_add``."""
        deleted_ids = {t.id for t in to_delete}
        kept = [t for t in self._tables if t.id not in deleted_ids]
        return LevelTables([*kept, *to_add])


@dataclass
class LevelInfo:
    """Tables and size accounting of one level above level 0."""

    tables: LevelTables = field(default_factory=LevelTables)
    total_file_size: int = 0
    level_max_bytes: int = 0


@dataclass
class Level0Info:
    """Level 0 tables, oldest first, which may overlap each other."""

    tables: list[TableFile] = field(default_factory=list)
    total_file_size: int = 0


class VersionStorageInfo:
    """The table files of a version, arranged by level."""

    def __init__(self, to_add: Iterable[TableFile], max_level: int) -> None:
        if max_level < 1:
            raise ValueError("max_level must be at least 1")
        self.max_level = max_level
        self.level0 = Level0Info()
        self.levels = [LevelInfo() for _ in range(max_level - 1)]
        self.base_level = 0
        self.level_multiplier = 0.0
        to_add = list(to_add)
        if to_add:
            applied = self.apply(to_add, [])
            self.level0 = applied.level0
            self.levels = applied.levels
            self.level_multiplier = applied.level_multiplier

    def size(self) -> int:
        """Number of levels above level 0."""
        return len(self.levels)

    def get_level0_file_num(self) -> int:
        return len(self.level0.tables)

    def scan(self, level: int) -> Iterator[TableFile]:
        """Iterate the tables of ``level`` in order."""
        if level == 0:
            yield from list(self.level0.tables)
        elif level <= len(self.levels):
            yield from self.levels[level - 1].tables

    def _check_level(self, table: TableFile) -> int:
        level = table.meta.level
        if not 0 <= level < self.max_level:
            raise ValueError(
                f"table {table.id} has level {level}, beyond max level {self.max_level}"
            )
        return level

    def apply(
        self, to_add: Iterable[TableFile], to_delete: Iterable[TableFile]
    ) -> VersionStorageInfo:
        """Return new storage with ``to_add`` added and ``to_delete`` removed.

        Deleted tables are marked removed so they are deleted once closed.
        """
        to_add = list(to_add)
        to_delete = list(to_delete)
        upper = self.max_level - 1
        add_by_level: list[list[TableFile]] = [[] for _ in range(upper)]
        delete_by_level: list[list[TableFile]] = [[] for _ in range(upper)]
        add_size = [0] * self.max_level
        delete_size = [0] * self.max_level
        level0_deleted: set[int] = set()

        for table in to_delete:
            level = self._check_level(table)
            table.mark_removed()
            delete_size[level] += table.meta.fd.file_size
            if level == 0:
                level0_deleted.add(table.id)
            else:
                delete_by_level[level - 1].append(table)

        level0_tables = [t for t in self.level0.tables if t.id not in level0_deleted]
        for table in to_add:
            level = self._check_level(table)
            add_size[level] += table.meta.fd.file_size
            if level == 0:
                level0_tables.append(table)
            else:
                add_by_level[level - 1].append(table)

        levels = []
        for i, info in enumerate(self.levels):
            add = add_by_level[i]
            delete = delete_by_level[i] if i + 1 < len(delete_by_level) else []
            if not add and not delete:
                levels.append(dataclasses.replace(info))
            else:
                levels.append(
                    LevelInfo(
                        tables=info.tables.replace(delete, add),
                        total_file_size=info.total_file_size
                        + add_size[i + 1]
                        - delete_size[i + 1],
                        level_max_bytes=info.level_max_bytes,
                    )
                )

        result = VersionStorageInfo((), self.max_level)
        result.level0 = Level0Info(
            tables=level0_tables,
            total_file_size=self.level0.total_file_size + add_size[0] - delete_size[0],
        )
        result.levels = levels
        result.base_level = self.base_level
        result.level_multiplier = 1.0
        return result

    def update_base_bytes(
        self,
        max_bytes_for_level_base: int,
        level0_file_num_compaction_trigger: int,
        max_bytes_for_level_multiplier: float,
    ) -> None:
        """Recompute the base level and the byte limit of every level."""
        max_level_size = 0
        first_non_empty_level: int | None = None
        for number, info in enumerate(self.levels, start=1):
            if info.total_file_size > 0 and first_non_empty_level is None:
                first_non_empty_level = number
            max_level_size = max(max_level_size, info.total_file_size)
            info.level_max_bytes = MAX_UINT64

        if max_level_size == 0:
            self.base_level = self.max_level - 1
            return

        assert first_non_empty_level is not None
        l0_size = self.level0.total_file_size
        base_bytes_max = max(l0_size, max_bytes_for_level_base)
        base_bytes_min = _round(base_bytes_max / max_bytes_for_level_multiplier)
        cur_level_size = max_level_size
        for _ in range(first_non_empty_level, self.max_level - 1):
            cur_level_size = _round(cur_level_size / max_bytes_for_level_multiplier)

        self.base_level = first_non_empty_level
        if cur_level_size <= base_bytes_min:
            base_level_size = base_bytes_min + 1
        else:
            while self.base_level > 1 and cur_level_size > base_bytes_max:
                self.base_level -= 1
                cur_level_size = _round(cur_level_size / max_bytes_for_level_multiplier)
            base_level_size = min(base_bytes_max, cur_level_size)

        self.level_multiplier = max_bytes_for_level_multiplier
        if l0_size > base_level_size and (
            l0_size > max_bytes_for_level_base
            or len(self.level0.tables) // 2 > level0_file_num_compaction_trigger
        ):
            base_level_size = l0_size

        if self.base_level == self.max_level - 1:
            self.level_multiplier = 1.0
        else:
            ratio = max_level_size / base_level_size
            self.level_multiplier = ratio ** (
                1.0 / (self.max_level - self.base_level - 1)
            )

        level_size = base_level_size
        for i in range(self.base_level, self.max_level):
            if i > self.base_level and float(MAX_UINT64 // level_size) > self.level_multiplier:
                level_size = _round(level_size * self.level_multiplier)
            self.levels[i - 1].level_max_bytes = max(level_size, base_bytes_max)

    async def get(self, opts: Any, key: bytes) -> bytes | None:
        """Look up an internal key, newest level 0 table first, then each level."""
        for table in reversed(self.level0.tables):
            value = await table.reader.get(opts, key)
            if value is not None:
                return value
        user_key = extract_user_key(key)
        for info in self.levels:
            if not len(info.tables):
                continue
            table = info.tables.get(user_key)
            if table is not None:
                value = await table.reader.get(opts, key)
                if value is not None:
                    return value
        return None

    def get_overlap_with_compaction(
        self, level: int, smallest: bytes, largest: bytes
    ) -> list[TableFile]:
        """Tables of ``level`` whose user-key range overlaps ``[smallest, largest]``."""
        if level == 0:
            return [
                t
                for t in self.level0.tables
                if t.largest >= smallest and t.smallest <= largest
            ]
        overlapping = []
        for table in self.levels[level - 1].tables.seek(smallest):
            if table.smallest > largest:
                break
            overlapping.append(table)
        return overlapping