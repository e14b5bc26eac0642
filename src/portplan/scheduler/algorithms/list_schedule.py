"""Greedy list scheduling under monthly capacity with an optional pinned subset."""

from __future__ import annotations

from collections.abc import Mapping

from portplan.logger import get_logger

from ..compiler import sort_tasks
from ..config import SchedulingConfig
from ..core import Placement, Task
from ..resources import CapacityLedger

logger = get_logger()


class ListScheduler:
    """Places tasks one at a time in priority order.

    This scheduler:
    1. Commits pinned tasks at their given start month, ignoring capacity
    2. Sorts the remaining tasks by priority descending, then authored order
    3. Starts each task no earlier than the end of every dependency placed so far
    4. Probes month by month for the first start that fits remaining capacity

    A dependency that has not been placed yet contributes nothing. This is a
    forward-only heuristic, not a topological schedule.
    """

    def __init__(
        self,
        tasks: list[Task],
        capacities: Mapping[str, float],
        *,
        pinned: Mapping[int, int] | None = None,
        config: SchedulingConfig | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            tasks: Tasks to place
            capacities: Discipline -> capacity in FTE/month
            pinned: Task id -> fixed start month for tasks that must not move
            config: Optional scheduling configuration
        """
        self.tasks = tasks
        self.capacities = dict(capacities)
        self.pinned = dict(pinned or {})
        self.config = config or SchedulingConfig()

    def schedule(self) -> dict[int, Placement]:
        """Place every task.

        Returns:
            Task id -> placement, for every task
        """
        ledger = CapacityLedger(self.capacities, self.config)
        placed: dict[int, Placement] = {}

        for task in self.tasks:
            if task.id not in self.pinned:
                continue
            start = max(0, self.pinned[task.id])
            ledger.allocate(task.requirements, start, task.duration)
            placed[task.id] = Placement(start, start + task.duration)
            logger.changes(f"Pinned task {task.id} at month {start}")

        for task in sort_tasks([t for t in self.tasks if t.id not in self.pinned]):
            logger.checks(
                f"  Considering task {task.id} (priority={task.priority}, order={task.order})"
            )
            earliest = max(
                (placed[dep_id].end_month for dep_id in task.dependency_ids if dep_id in placed),
                default=0,
            )
            start, capped = ledger.find_start(task.requirements, earliest, task.duration)
            ledger.allocate(task.requirements, start, task.duration)
            placed[task.id] = Placement(start, start + task.duration, capped)

            if capped:
                logger.warning(
                    f"Task {task.id} has no room within {self.config.probe_limit} months "
                    f"of month {earliest}; placed at month {start}"
                )
            else:
                logger.changes(f"Scheduled task {task.id} at months {start}-{start + task.duration}")

        return placed


def base_schedule(
    tasks: list[Task],
    capacities: Mapping[str, float],
    config: SchedulingConfig | None = None,
) -> dict[int, Placement]:
    """Capacity- and dependency-aware placement of all tasks, ignoring overrides."""
    return ListScheduler(tasks, capacities, config=config).schedule()
