import pytest

from lsmdb.storage.tiered import (
    TieredCompactionConfig,
    TieredCompactionPlan,
    group_tables_into_tiers,
    pick_compaction,
    tier_id_for_size,
)
from lsmdb.storage.version import SSTableMetadata, VersionSet


def table(level, table_id, size):
    return SSTableMetadata(
        table_id=table_id,
        level=level,
        file_name=f"sst-{table_id:020}.sst",
        smallest_key=b"a",
        largest_key=b"z",
        file_size_bytes=size,
    )


def test_groups_similar_sizes_into_same_tier():
    versions = VersionSet()
    versions.add_table(table(0, 1, 1024))
    versions.add_table(table(1, 2, 1500))
    versions.add_table(table(2, 3, 2 * 1024 * 1024))

    tiers = group_tables_into_tiers(versions, TieredCompactionConfig())
    tier_sizes = [len(tables) for tables in tiers.values()]

    assert 2 in tier_sizes
    assert 1 in tier_sizes


def test_tiers_are_ordered_ascending():
    versions = VersionSet()
    versions.add_table(table(0, 1, 2 * 1024 * 1024))
    versions.add_table(table(0, 2, 1024))
    tiers = group_tables_into_tiers(versions, TieredCompactionConfig())
    assert list(tiers) == [10, 21]


def test_triggers_when_tier_has_enough_components():
    versions = VersionSet()
    versions.add_table(table(0, 1, 1024))
    versions.add_table(table(0, 2, 1200))
    versions.add_table(table(0, 3, 1300))
    versions.add_table(table(0, 4, 1250))

    plan = pick_compaction(versions, TieredCompactionConfig())
    assert plan is not None
    assert len(plan.input_tables) == 4
    assert plan.output_level == 0
    assert [t.table_id for t in plan.input_tables] == [1, 2, 3, 4]
    assert 4.0 < plan.score < 5.0


def test_no_plan_when_tier_is_small():
    versions = VersionSet()
    versions.add_table(table(0, 1, 1024))
    versions.add_table(table(0, 2, 1100))
    assert pick_compaction(versions, TieredCompactionConfig()) is None


def test_no_plan_for_empty_version_set():
    assert pick_compaction(VersionSet(), TieredCompactionConfig()) is None


def test_output_level_comes_from_config():
    versions = VersionSet()
    for table_id in range(1, 4):
        versions.add_table(table(0, table_id, 1024))
    config = TieredCompactionConfig(max_components_per_tier=3, output_level=2)
    plan = pick_compaction(versions, config)
    assert plan is not None
    assert plan.output_level == 2
    assert plan.tier_id == 10


@pytest.mark.parametrize(
    "size, minimum, expected",
    [(1024, 1, 10), (1023, 1, 9), (0, 1, 0), (0, 0, 0), (5, 64, 6), (2**64 - 1, 1, 63)],
)
def test_tier_id_for_size(size, minimum, expected):
    assert tier_id_for_size(size, minimum) == expected


def test_plan_helpers():
    plan = TieredCompactionPlan(
        tier_id=3, input_tables=[table(0, 9, 10), table(0, 4, 20)], output_level=0, score=1.0
    )
    assert plan.input_table_ids() == [4, 9]
    assert plan.estimated_output_size_bytes() == 30