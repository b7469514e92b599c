"""A version: an immutable snapshot of one column family's table files."""

from __future__ import annotations

from typing import Iterable, Iterator

from lsmcore.storage_info import VersionStorageInfo
from lsmcore.table import TableFile


class Version:
    """The table files of one column family at one point in time."""

    def __init__(
        self,
        cf_id: int,
        cf_name: str,
        comparator: str,
        tables: Iterable[TableFile],
        log_number: int,
        max_level: int,
        *,
        storage: VersionStorageInfo | None = None,
    ) -> None:
        self.cf_id = cf_id
        self.cf_name = cf_name
        self.comparator_name = comparator
        self.log_number = log_number
        self.storage_info = (
            storage if storage is not None else VersionStorageInfo(tables, max_level)
        )

    @property
    def level_num(self) -> int:
        """Number of levels above level 0."""
        return self.storage_info.size()

    def apply(
        self,
        to_add: Iterable[TableFile],
        to_delete: Iterable[TableFile],
        log_number: int,
    ) -> Version:
        """Return the version that results from adding and deleting tables."""
        storage = self.storage_info.apply(to_add, to_delete)
        return Version(
            self.cf_id,
            self.cf_name,
            self.comparator_name,
            (),
            max(self.log_number, log_number),
            storage.max_level,
            storage=storage,
        )

    def scan(self, level: int) -> Iterator[TableFile]:
        return self.storage_info.scan(level)

    def update_base_bytes(
        self,
        max_bytes_for_level_base: int,
        level0_file_num_compaction_trigger: int,
        max_bytes_for_level_multiplier: float,
    ) -> None:
        self.storage_info.update_base_bytes(
            max_bytes_for_level_base,
            level0_file_num_compaction_trigger,
            max_bytes_for_level_multiplier,
        )