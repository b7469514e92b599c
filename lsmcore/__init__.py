"""Building blocks of an LSM-tree storage engine: coding, write batches, version edits, table metadata, snapshots, counters and level layout."""

__version__ = "0.1.0"