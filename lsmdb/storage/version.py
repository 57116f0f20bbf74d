"""SSTable metadata and the per-level set of live tables."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SSTableMetadata:
    """Describes one SSTable file and the key range it covers."""

    table_id: int
    level: int
    file_name: str
    smallest_key: bytes
    largest_key: bytes
    file_size_bytes: int


@dataclass
class VersionSet:
    """The live SSTables grouped by level, each level ordered by table id."""

    _levels: dict[int, list[SSTableMetadata]] = field(default_factory=dict)

    def add_table(self, table: SSTableMetadata) -> None:
        tables = self._levels.setdefault(table.level, [])
        tables.append(table)
        tables.sort(key=lambda entry: entry.table_id)

    def remove_table(self, level: int, table_id: int) -> SSTableMetadata | None:
        """Remove a table and return it, or None when it is not present."""
        tables = self._levels.get(level)
        if tables is None:
            return None
        for index, table in enumerate(tables):
            if table.table_id == table_id:
                removed = tables.pop(index)
                if not tables:
                    del self._levels[level]
                return removed
        return None

    def level_tables(self, level: int) -> tuple[SSTableMetadata, ...]:
        return tuple(self._levels.get(level, ()))

    def _iter_tables(self):
        for level in sorted(self._levels):
            yield from self._levels[level]

    def all_tables_newest_first(self) -> list[SSTableMetadata]:
        return sorted(self._iter_tables(), key=lambda table: table.table_id, reverse=True)

    def max_table_id(self) -> int | None:
        return max((table.table_id for table in self._iter_tables()), default=None)

    def total_table_count(self) -> int:
        return sum(len(tables) for tables in self._levels.values())

    def clear(self) -> None:
        self._levels.clear()