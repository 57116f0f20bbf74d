"""LSM-tree database building blocks: manifest log, compaction planning and SQL parsing."""

__version__ = "0.1.0"