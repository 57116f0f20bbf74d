"""Priority scheduling of compaction tasks and amplification metrics."""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import Union

from lsmdb.storage import leveled, tiered
from lsmdb.storage.leveled import LeveledCompactionConfig, LeveledCompactionPlan
from lsmdb.storage.tiered import TieredCompactionConfig, TieredCompactionPlan
from lsmdb.storage.version import VersionSet

_U64_MAX = 2**64 - 1

CompactionStrategy = Union[LeveledCompactionConfig, TieredCompactionConfig]
CompactionPlan = Union[LeveledCompactionPlan, TieredCompactionPlan]


def _saturating_add(left: int, right: int) -> int:
    return min(left + right, _U64_MAX)


def plan_signature(plan: CompactionPlan) -> str:
    """Identity of a plan used to avoid queueing the same work twice."""
    ids = sorted(plan.input_table_ids())
    if isinstance(plan, LeveledCompactionPlan):
        prefix = f"L{plan.source_level}->{plan.target_level}"
    elif isinstance(plan, TieredCompactionPlan):
        prefix = f"T{plan.tier_id}->{plan.output_level}"
    else:
        raise TypeError(f"unsupported compaction plan: {plan!r}")
    return f"{prefix}:[{', '.join(str(table_id) for table_id in ids)}]"


def pick_plan(versions: VersionSet, strategy: CompactionStrategy) -> CompactionPlan | None:
    """Pick a compaction plan with the picker that matches the strategy."""
    if isinstance(strategy, LeveledCompactionConfig):
        return leveled.pick_compaction(versions, strategy)
    if isinstance(strategy, TieredCompactionConfig):
        return tiered.pick_compaction(versions, strategy)
    raise TypeError(f"unsupported compaction strategy: {strategy!r}")


@dataclass
class CompactionMetrics:
    user_bytes_written: int = 0
    compaction_bytes_written: int = 0
    point_lookup_checks: int = 0
    point_lookup_requests: int = 0
    live_bytes: int = 0
    total_bytes_on_disk: int = 0
    completed_compactions: int = 0

    def record_user_write(self, bytes_written: int) -> None:
        self.user_bytes_written = _saturating_add(self.user_bytes_written, bytes_written)

    def record_compaction_write(self, bytes_written: int) -> None:
        self.compaction_bytes_written = _saturating_add(
            self.compaction_bytes_written, bytes_written
        )

    def record_point_lookup(self, files_checked: int) -> None:
        self.point_lookup_requests = _saturating_add(self.point_lookup_requests, 1)
        self.point_lookup_checks = _saturating_add(self.point_lookup_checks, files_checked)

    def set_space_bytes(self, live_bytes: int, total_bytes_on_disk: int) -> None:
        self.live_bytes = live_bytes
        self.total_bytes_on_disk = total_bytes_on_disk

    def mark_compaction_complete(self) -> None:
        self.completed_compactions = _saturating_add(self.completed_compactions, 1)

    def write_amplification(self) -> float | None:
        if self.user_bytes_written == 0:
            return None
        return self.compaction_bytes_written / self.user_bytes_written

    def read_amplification(self) -> float | None:
        if self.point_lookup_requests == 0:
            return None
        return self.point_lookup_checks / self.point_lookup_requests

    def space_amplification(self) -> float | None:
        if self.total_bytes_on_disk == 0:
            return None
        return self.live_bytes / self.total_bytes_on_disk


@dataclass
class ScheduledCompaction:
    task_id: int
    priority: float
    plan: CompactionPlan


@dataclass
class CompactionScheduler:
    """Queue of compaction plans popped highest priority first, FIFO on ties."""

    metrics: CompactionMetrics = field(default_factory=CompactionMetrics)
    _next_task_id: int = 0
    _next_insertion_order: int = 0
    _pending: list = field(default_factory=list)
    _in_flight: set = field(default_factory=set)
    _signatures: set = field(default_factory=set)

    def schedule_from_versions(
        self, versions: VersionSet, strategy: CompactionStrategy
    ) -> int | None:
        plan = pick_plan(versions, strategy)
        if plan is None:
            return None
        return self.enqueue(plan)

    def enqueue(self, plan: CompactionPlan) -> int | None:
        """Queue a plan and return its task id, or None if already queued."""
        signature = plan_signature(plan)
        if signature in self._signatures:
            return None

        self._next_task_id = _saturating_add(self._next_task_id, 1)
        self._next_insertion_order = _saturating_add(self._next_insertion_order, 1)
        task_id = self._next_task_id
        heapq.heappush(
            self._pending, (-plan.score, self._next_insertion_order, task_id, plan)
        )
        self._signatures.add(signature)
        return task_id

    def pop_next(self) -> ScheduledCompaction | None:
        if not self._pending:
            return None
        negative_priority, _, task_id, plan = heapq.heappop(self._pending)
        self._in_flight.add(task_id)
        self._signatures.discard(plan_signature(plan))
        return ScheduledCompaction(task_id=task_id, priority=-negative_priority, plan=plan)

    def mark_completed(self, task_id: int) -> None:
        self._in_flight.discard(task_id)
        self.metrics.mark_compaction_complete()

    def pending_count(self) -> int:
        return len(self._pending)

    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def metrics_snapshot(self) -> CompactionMetrics:
        return CompactionMetrics(**vars(self.metrics))