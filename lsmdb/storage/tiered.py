"""Size-tiered compaction planning."""

from __future__ import annotations

from dataclasses import dataclass, field

from lsmdb.storage.version import SSTableMetadata, VersionSet

_SCORE_SIZE_UNIT = 64.0 * 1024.0 * 1024.0


@dataclass(frozen=True)
class TieredCompactionConfig:
    max_components_per_tier: int = 4
    min_tier_size_bytes: int = 1
    output_level: int = 0


@dataclass
class TieredCompactionPlan:
    tier_id: int
    input_tables: list[SSTableMetadata] = field(default_factory=list)
    output_level: int = 0
    score: float = 0.0

    def input_table_ids(self) -> list[int]:
        return sorted(table.table_id for table in self.input_tables)

    def estimated_output_size_bytes(self) -> int:
        return sum(table.file_size_bytes for table in self.input_tables)


def pick_compaction(
    version_set: VersionSet, config: TieredCompactionConfig
) -> TieredCompactionPlan | None:
    """Pick the highest-scoring full tier, or None when no tier is full."""
    best: TieredCompactionPlan | None = None
    for tier_id, tables in group_tables_into_tiers(version_set, config).items():
        if len(tables) < config.max_components_per_tier:
            continue

        tables = sorted(tables, key=lambda table: table.table_id)
        total_size = sum(table.file_size_bytes for table in tables)
        plan = TieredCompactionPlan(
            tier_id=tier_id,
            input_tables=tables,
            output_level=config.output_level,
            score=len(tables) + total_size / _SCORE_SIZE_UNIT,
        )
        if best is None or plan.score > best.score:
            best = plan
    return best


def group_tables_into_tiers(
    version_set: VersionSet, config: TieredCompactionConfig
) -> dict[int, list[SSTableMetadata]]:
    """Group every table by size tier; keys are in ascending tier order."""
    tiers: dict[int, list[SSTableMetadata]] = {}
    for table in version_set.all_tables_newest_first():
        tier_id = tier_id_for_size(table.file_size_bytes, config.min_tier_size_bytes)
        tiers.setdefault(tier_id, []).append(table)
    return {tier_id: tiers[tier_id] for tier_id in sorted(tiers)}


def tier_id_for_size(size_bytes: int, min_tier_size_bytes: int) -> int:
    """Index of the highest set bit of the size, clamped below by the minimum."""
    normalized = max(size_bytes, max(min_tier_size_bytes, 1))
    return max(normalized.bit_length() - 1, 0)