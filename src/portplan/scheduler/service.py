"""High-level scheduling service."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from .algorithms.list_schedule import base_schedule
from .compiler import compile_tasks
from .config import SchedulingConfig
from .core import SchedulingResult
from .drag import solve_drag
from .overrides import apply_overrides, rebalance
from .utilization import compute_utilization

if TYPE_CHECKING:
    from portplan.models import Override, PortfolioState


class SchedulingService:
    """Runs the scheduling pipeline over one portfolio snapshot.

    This service coordinates:
    - Task compilation (hierarchy flattening)
    - The base list scheduler (capacity and dependencies, no pins)
    - The override layer (manual pins over the base placement)
    - Utilization aggregation

    Every method is a pure function of the snapshot and its arguments.
    """

    def __init__(self, state: PortfolioState, config: SchedulingConfig | None = None) -> None:
        """Initialize scheduling service.

        Args:
            state: Portfolio snapshot to schedule
            config: Optional scheduling configuration
        """
        self.state = state
        self.config = config or SchedulingConfig()
        self.tasks = compile_tasks(state, self.config)

    def _capacities(self) -> dict[str, float]:
        return {d: self.state.capacity(d) for d in self.state.disciplines}

    def schedule(self, overrides: Mapping[int, Override] | None = None) -> SchedulingResult:
        """Compute the final schedule and its utilization.

        Args:
            overrides: Pin set to apply instead of the snapshot's own, used for
                drag previews that shadow the committed pins

        Returns:
            SchedulingResult with tasks in scheduling order, utilization and warnings
        """
        effective_overrides = self.state.overrides if overrides is None else overrides
        base = base_schedule(self.tasks, self._capacities(), self.config)
        scheduled = apply_overrides(self.tasks, base, effective_overrides)
        utilization = compute_utilization(
            scheduled, self.state.disciplines, self.state.capacities, self.config
        )

        warnings: list[str] = []
        for task in scheduled:
            placement = base[task.id]
            if placement.capped and task.id not in effective_overrides:
                warnings.append(
                    f"Task {task.id} ('{task.task.name}') found no capacity within "
                    f"{self.config.probe_limit} months; placed at month {task.start_month}"
                )
        for discipline, month, percentage in utilization.overbooked(self.config.capacity_epsilon):
            warnings.append(f"Discipline '{discipline}' at {percentage:.0f}% in month {month}")

        return SchedulingResult(tasks=scheduled, utilization=utilization, warnings=warnings)

    def rebalance(self) -> dict[int, Override]:
        """Replacement pin set holding frozen tasks and re-packing the rest."""
        return rebalance(self.tasks, self._capacities(), self.state.overrides, self.config)

    def drag(
        self,
        task_id: int,
        proposed_start: float,
        overrides: Mapping[int, Override] | None = None,
    ) -> dict[int, Override]:
        """Pin set reflecting a drag of ``task_id`` against the current schedule.

        Args:
            task_id: Task, or project owning phases, being dragged
            proposed_start: Month the pointer is over
            overrides: Pin set the drag starts from; the snapshot's by default
        """
        base_overrides = self.state.overrides if overrides is None else overrides
        current = self.schedule(base_overrides).tasks
        return solve_drag(current, base_overrides, task_id, proposed_start)
