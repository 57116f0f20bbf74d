"""Leveled compaction planning."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from itertools import chain

from lsmdb.storage.version import SSTableMetadata, VersionSet

_U64_MAX = 2**64 - 1


@dataclass(frozen=True)
class LeveledCompactionConfig:
    level0_file_limit: int = 4
    level_size_base_bytes: int = 64 * 1024 * 1024
    level_size_multiplier: int = 10
    max_levels: int = 7


class LeveledTrigger(enum.Enum):
    LEVEL0_OVERFLOW = "level0_overflow"
    LEVEL_SIZE_EXCEEDED = "level_size_exceeded"


@dataclass
class LeveledCompactionPlan:
    trigger: LeveledTrigger
    source_level: int
    target_level: int
    source_inputs: list[SSTableMetadata] = field(default_factory=list)
    target_inputs: list[SSTableMetadata] = field(default_factory=list)
    score: float = 0.0

    def _all_inputs(self):
        return chain(self.source_inputs, self.target_inputs)

    def input_table_ids(self) -> list[int]:
        return sorted({table.table_id for table in self._all_inputs()})

    def estimated_output_size_bytes(self) -> int:
        return sum(table.file_size_bytes for table in self._all_inputs())


def pick_compaction(
    version_set: VersionSet, config: LeveledCompactionConfig
) -> LeveledCompactionPlan | None:
    """Pick the highest-scoring compaction, or None when nothing qualifies."""
    if config.max_levels < 2:
        return None

    best: LeveledCompactionPlan | None = None

    level0 = version_set.level_tables(0)
    if level0:
        target_level = 1
        target_tables = version_set.level_tables(target_level)
        source = _pick_smallest_overlap_source(level0, target_tables)
        overlaps = _overlapping_tables(source, target_tables)

        l0_pressure = len(level0) / max(config.level0_file_limit, 1)
        overflow_bonus = 10.0 if len(level0) >= config.level0_file_limit else 1.0
        best = LeveledCompactionPlan(
            trigger=LeveledTrigger.LEVEL0_OVERFLOW,
            source_level=0,
            target_level=target_level,
            source_inputs=[source],
            target_inputs=overlaps,
            score=l0_pressure + len(overlaps) * 0.01 + overflow_bonus,
        )

    for level in range(1, max(config.max_levels - 1, 0)):
        source_tables = version_set.level_tables(level)
        if not source_tables:
            continue

        level_size = sum(table.file_size_bytes for table in source_tables)
        target = target_size_bytes(config, level)
        if level_size <= target:
            continue

        target_level = level + 1
        target_tables = version_set.level_tables(target_level)
        source = _pick_smallest_overlap_source(source_tables, target_tables)
        if source is None:
            continue
        overlaps = _overlapping_tables(source, target_tables)

        plan = LeveledCompactionPlan(
            trigger=LeveledTrigger.LEVEL_SIZE_EXCEEDED,
            source_level=level,
            target_level=target_level,
            source_inputs=[source],
            target_inputs=overlaps,
            score=level_size / max(target, 1) + len(overlaps) * 0.01,
        )
        if best is None or plan.score > best.score:
            best = plan

    return best


def target_size_bytes(config: LeveledCompactionConfig, level: int) -> int:
    """Size limit of a level; grows by the multiplier per level above 1."""
    if level <= 1:
        return config.level_size_base_bytes

    multiplier = max(config.level_size_multiplier, 1)
    target = config.level_size_base_bytes
    for _ in range(level - 1):
        target = min(target * multiplier, _U64_MAX)
    return target


def _pick_smallest_overlap_source(source_tables, target_tables) -> SSTableMetadata | None:
    if not source_tables:
        return None
    return min(
        source_tables,
        key=lambda candidate: (
            sum(1 for target in target_tables if ranges_overlap(candidate, target)),
            candidate.table_id,
        ),
    )


def _overlapping_tables(source, target_tables) -> list[SSTableMetadata]:
    return [target for target in target_tables if ranges_overlap(source, target)]


def ranges_overlap(left: SSTableMetadata, right: SSTableMetadata) -> bool:
    return not (left.largest_key < right.smallest_key or right.largest_key < left.smallest_key)