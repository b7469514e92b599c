# lsmcore

`lsmcore` provides the building blocks of a log-structured merge-tree
storage engine. Its only dependency is `sortedcontainers`.

## What is in it

- **`lsmcore.coding`** handles variable-length integers and length-prefixed
  byte strings. It provides `put_varint`, `get_varint`,
  `put_length_prefixed` and `get_length_prefixed`. Each decoder returns the
  decoded value together with the offset after it. Truncated or malformed
  input raises `DecodeError`, which is a subclass of `ValueError`.
- **`lsmcore.write_batch`** holds write batches.
  - `WriteBatch` collects records with `put`, `put_cf`, `delete` and
    `delete_cf`. It stores them after a 12-byte header. The header holds an
    8-byte sequence number and a 4-byte record count, both little-endian.
  - `to_raw()` seals a batch into a `ReadOnlyWriteBatch`.
    `recycle()` hands the buffer back to the `WriteBatch` for reuse.
  - `ReadOnlyWriteBatch.from_bytes()` parses an encoded batch.
  - `set_sequence()` writes the sequence number into the header.
  - `append_to()` merges the batch's records into another buffer and adds
    its record count to that buffer's count.
  - Iterating a `ReadOnlyWriteBatch` yields `Put` and `Delete` records.
    Iteration stops at the first record that cannot be decoded.
- **`lsmcore.edit`** covers manifest records.
  - `VersionEdit.encode()` serializes an edit to bytes.
    `VersionEdit.decode()` parses one back. An edit records added and deleted
    table files, the log number, the next file number, the last sequence
    number, the maximum column family, and column-family add and drop.
  - Tags that are unknown or unsupported raise `DecodeError`. These
    include compact pointers, the newer file formats and atomic groups.
- **`lsmcore.table`** holds table file metadata.
  - `FileDescriptor` packs a file number and a path id into one integer.
  - `FileMetaData` records a file's key range, sequence range, size and
    level.
  - `TableFile` wraps a reader object you supply. When it is closed, it
    deletes its file from disk if it was marked removed. It also works as a
    context manager.
- **`lsmcore.snapshot`** tracks read snapshots.
  - `SnapshotList` keeps the live `Snapshot` objects in creation order.
  - `collect_snapshots()` returns their sequence numbers, oldest first.
  - Releasing a snapshot the list does not hold raises `ValueError`.
- **`lsmcore.kernel`** provides `KernelNumberContext`. It holds thread-safe
  counters for file numbers, memtable numbers, the last sequence number and
  column-family ids.
- **`lsmcore.storage_info`** and **`lsmcore.version`** describe which
  tables live on which level.
  - `VersionStorageInfo` keeps level 0 as a list. Each higher level is kept
    as a key-ordered `LevelTables`.
  - `apply()` returns new storage with tables added and removed. It marks
    the removed tables as removed.
  - `update_base_bytes()` computes the base level and the byte limit of
    each level.
  - `get_overlap_with_compaction()` finds the tables of a level whose key
    range overlaps a given range.
  - The async `get()` looks a key up through the table readers. Each
    reader must have an awaitable `get(opts, key)`.
  - `Version` wraps a `VersionStorageInfo` together with its column family
    id, name, comparator name and log number.

## Installation

```
pip install .
```

## Example

This example builds a write batch and reads its records back:

```python
from lsmcore.write_batch import WriteBatch, ReadOnlyWriteBatch

wb = WriteBatch()
wb.put(b"k1", b"v1")
wb.delete_cf(3, b"k2")
raw = wb.to_raw()
raw.set_sequence(100)

for record in ReadOnlyWriteBatch.from_bytes(raw.data):
    print(record)
# Put(cf=0, key=b'k1', value=b'v1')
# Delete(cf=3, key=b'k2')
```

This example writes a manifest record and decodes it again:

```python
from lsmcore.edit import VersionEdit

edit = VersionEdit()
edit.set_log_number(15)
edit.add_file(0, 7, 4096, b"a" * 8, b"z" * 8, 1, 50)
assert VersionEdit.decode(edit.encode()) == edit
```

## What it does not do

This is a set of components, not a working database. It has no
memtable and no write-ahead log. It has no table file format or table
reader, and it does not write or replay a manifest file. It has no
compaction or flush scheduling, no column-family registry, and no
command-line tool. Table readers and the file system used for lookups and
deletion are supplied by the caller.

## Running the tests

```
pip install .[test]
pytest
```