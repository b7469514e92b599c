"""Tracking of live read snapshots."""

from __future__ import annotations


class Snapshot:
    """A handle on a point-in-time sequence number."""

    __slots__ = ("sequence",)

    def __init__(self, sequence: int) -> None:
        self.sequence = sequence

    def __repr__(self) -> str:
        return f"Snapshot(sequence={self.sequence})"


class SnapshotList:
    """The live snapshots, in the order they were taken."""

    def __init__(self) -> None:
        self._snapshots: dict[Snapshot, None] = {}

    def new_snapshot(self, sequence: int) -> Snapshot:
        snapshot = Snapshot(sequence)
        self._snapshots[snapshot] = None
        return snapshot

    def release_snapshot(self, snapshot: Snapshot) -> None:
        """Drop a snapshot taken from this list."""
        if snapshot not in self._snapshots:
            raise ValueError("snapshot is not held by this list")
        self._snapshots.pop(snapshot)

    @property
    def count(self) -> int:
        return len(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def collect_snapshots(self) -> list[int]:
        """Sequence numbers of live snapshots, oldest first."""
        return [s.sequence for s in self._snapshots]