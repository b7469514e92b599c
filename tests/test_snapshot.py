import pytest

from lsmcore.snapshot import SnapshotList


def test_new_snapshot_counts():
    snapshots = SnapshotList()
    s = snapshots.new_snapshot(10)
    assert s.sequence == 10
    assert snapshots.count == 1
    assert len(snapshots) == 1


def test_collect_in_insertion_order():
    snapshots = SnapshotList()
    for seq in (5, 9, 3):
        snapshots.new_snapshot(seq)
    assert snapshots.collect_snapshots() == [5, 9, 3]


def test_release_removes_only_that_snapshot():
    snapshots = SnapshotList()
    a = snapshots.new_snapshot(1)
    snapshots.new_snapshot(2)
    c = snapshots.new_snapshot(1)
    snapshots.release_snapshot(a)
    assert snapshots.collect_snapshots() == [2, 1]
    snapshots.release_snapshot(c)
    assert snapshots.collect_snapshots() == [2]
    assert snapshots.count == 1


def test_release_twice_raises():
    snapshots = SnapshotList()
    s = snapshots.new_snapshot(4)
    snapshots.release_snapshot(s)
    with pytest.raises(ValueError):
        snapshots.release_snapshot(s)


def test_empty_list():
    assert SnapshotList().collect_snapshots() == []