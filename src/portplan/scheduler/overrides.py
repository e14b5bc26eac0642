"""Manual pins layered over the base schedule, and the rebalance solver."""

from __future__ import annotations

import math
from collections.abc import Mapping

from portplan.logger import get_logger
from portplan.models import Override

from .algorithms.list_schedule import ListScheduler
from .compiler import sort_tasks
from .config import SchedulingConfig
from .core import Placement, ScheduledTask, Task

logger = get_logger()


def normalize_start(start_month: float) -> int:
    """Whole, non-negative start month."""
    if not math.isfinite(start_month):
        return 0
    return max(0, math.floor(start_month))


def clone_overrides(overrides: Mapping[int, Override]) -> dict[int, Override]:
    return dict(overrides)


def overrides_differ(left: Mapping[int, Override], right: Mapping[int, Override]) -> bool:
    return dict(left) != dict(right)


def apply_overrides(
    tasks: list[Task],
    base: Mapping[int, Placement],
    overrides: Mapping[int, Override],
) -> list[ScheduledTask]:
    """Merge manual pins over the base placement.

    No feasibility check is made: a pin may overbook a discipline or start
    before a dependency ends. Such violations surface through utilization.

    Args:
        tasks: All tasks
        base: Base scheduler placements for every task
        overrides: Task id -> pin; entries for unknown ids are ignored

    Returns:
        Final placements in scheduling order
    """
    result: list[ScheduledTask] = []
    for task in sort_tasks(tasks):
        override = overrides.get(task.id)
        if override is not None:
            start = normalize_start(override.start_month)
            result.append(ScheduledTask(task, start, start + task.duration, override.frozen))
        else:
            placement = base[task.id]
            result.append(ScheduledTask(task, placement.start_month, placement.end_month, False))
    return result


def rebalance(
    tasks: list[Task],
    capacities: Mapping[str, float],
    overrides: Mapping[int, Override],
    config: SchedulingConfig | None = None,
) -> dict[int, Override]:
    """Hold frozen tasks fixed and re-pack everything else around them.

    Frozen tasks are committed first at their pinned months, even when that
    overbooks a discipline. The rest are list-scheduled into the remaining
    capacity. Every task receives an entry in the result; unfrozen entries
    are soft pins (``frozen=False``) so a later rebalance can still move them.

    Args:
        tasks: All tasks
        capacities: Discipline -> capacity in FTE/month
        overrides: Current pin set
        config: Optional scheduling configuration

    Returns:
        The complete replacement pin set
    """
    task_ids = {task.id for task in tasks}
    pinned = {
        task_id: normalize_start(override.start_month)
        for task_id, override in overrides.items()
        if override.frozen and task_id in task_ids
    }
    logger.changes(f"Rebalancing {len(tasks)} tasks around {len(pinned)} frozen")

    placements = ListScheduler(tasks, capacities, pinned=pinned, config=config).schedule()

    result: dict[int, Override] = {}
    for task in sort_tasks(tasks):
        frozen = task.id in pinned
        result[task.id] = Override(placements[task.id].start_month, frozen)
    return result
