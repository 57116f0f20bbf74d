from dataclasses import replace

from lsmdb.storage.leveled import (
    LeveledCompactionConfig,
    LeveledCompactionPlan,
    LeveledTrigger,
    pick_compaction,
    ranges_overlap,
    target_size_bytes,
)
from lsmdb.storage.version import SSTableMetadata, VersionSet


def table(level, table_id, start, end, size):
    return SSTableMetadata(
        table_id=table_id,
        level=level,
        file_name=f"sst-{table_id:020}.sst",
        smallest_key=start.encode(),
        largest_key=end.encode(),
        file_size_bytes=size,
    )


def test_triggers_on_l0_file_count():
    versions = VersionSet()
    versions.add_table(table(0, 1, "a", "f", 10))
    versions.add_table(table(0, 2, "g", "h", 10))
    versions.add_table(table(0, 3, "i", "k", 10))
    versions.add_table(table(0, 4, "l", "z", 10))

    plan = pick_compaction(versions, LeveledCompactionConfig())
    assert plan is not None
    assert plan.trigger == LeveledTrigger.LEVEL0_OVERFLOW
    assert plan.source_level == 0
    assert plan.target_level == 1
    assert len(plan.source_inputs) == 1


def test_picks_source_with_smallest_overlap():
    versions = VersionSet()
    versions.add_table(table(0, 10, "a", "d", 10))
    versions.add_table(table(0, 11, "x", "z", 10))
    versions.add_table(table(1, 20, "a", "m", 100))
    versions.add_table(table(1, 21, "n", "w", 100))

    config = replace(LeveledCompactionConfig(), level0_file_limit=2)
    plan = pick_compaction(versions, config)
    assert plan is not None
    assert plan.source_inputs[0].table_id == 11


def test_triggers_on_level_size():
    versions = VersionSet()
    versions.add_table(table(1, 1, "a", "h", 80))
    versions.add_table(table(1, 2, "i", "z", 80))

    config = replace(
        LeveledCompactionConfig(), level0_file_limit=99, level_size_base_bytes=100
    )
    plan = pick_compaction(versions, config)
    assert plan is not None
    assert plan.trigger == LeveledTrigger.LEVEL_SIZE_EXCEEDED
    assert plan.source_level == 1
    assert plan.target_level == 2


def test_no_plan_for_empty_version_set():
    assert pick_compaction(VersionSet(), LeveledCompactionConfig()) is None


def test_no_plan_when_max_levels_below_two():
    versions = VersionSet()
    versions.add_table(table(0, 1, "a", "z", 10))
    config = replace(LeveledCompactionConfig(), max_levels=1)
    assert pick_compaction(versions, config) is None


def test_no_plan_when_level_under_target():
    versions = VersionSet()
    versions.add_table(table(1, 1, "a", "z", 50))
    config = replace(LeveledCompactionConfig(), level_size_base_bytes=100)
    assert pick_compaction(versions, config) is None


def test_l0_plan_includes_overlapping_targets():
    versions = VersionSet()
    versions.add_table(table(0, 5, "c", "p", 10))
    versions.add_table(table(1, 1, "a", "d", 10))
    versions.add_table(table(1, 2, "e", "h", 10))
    versions.add_table(table(1, 3, "q", "z", 10))
    plan = pick_compaction(versions, LeveledCompactionConfig())
    assert [t.table_id for t in plan.target_inputs] == [1, 2]
    assert plan.input_table_ids() == [1, 2, 5]


def test_target_size_bytes_growth():
    config = LeveledCompactionConfig(level_size_base_bytes=100, level_size_multiplier=10)
    assert target_size_bytes(config, 0) == 100
    assert target_size_bytes(config, 1) == 100
    assert target_size_bytes(config, 2) == 1000
    assert target_size_bytes(config, 4) == 100000


def test_target_size_bytes_zero_multiplier_treated_as_one():
    config = LeveledCompactionConfig(level_size_base_bytes=100, level_size_multiplier=0)
    assert target_size_bytes(config, 5) == 100


def test_target_size_bytes_saturates():
    config = LeveledCompactionConfig(level_size_base_bytes=2**63, level_size_multiplier=10)
    assert target_size_bytes(config, 3) == 2**64 - 1


def test_ranges_overlap():
    assert ranges_overlap(table(0, 1, "a", "f", 1), table(0, 2, "f", "k", 1))
    assert ranges_overlap(table(0, 1, "c", "d", 1), table(0, 2, "a", "z", 1))
    assert not ranges_overlap(table(0, 1, "a", "e", 1), table(0, 2, "f", "k", 1))


def test_plan_ids_deduplicated_and_size_summed():
    shared = table(1, 7, "a", "b", 30)
    plan = LeveledCompactionPlan(
        trigger=LeveledTrigger.LEVEL0_OVERFLOW,
        source_level=0,
        target_level=1,
        source_inputs=[table(0, 9, "a", "b", 20), shared],
        target_inputs=[shared, table(1, 3, "a", "b", 5)],
        score=1.0,
    )
    assert plan.input_table_ids() == [3, 7, 9]
    assert plan.estimated_output_size_bytes() == 85