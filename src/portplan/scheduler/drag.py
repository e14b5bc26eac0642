"""Interactive drag constraint solver.

Given one task's proposed new start, computes the pin set that reflects the
move plus the smallest forced ripple through the dependency graph:

- dependents that would now start before the moved task ends are pushed
  right to that end,
- dependencies that would now end after the moved task starts are pulled
  left so they end exactly at its start,

each displaced task being pinned and frozen. Tasks frozen by an earlier action
are walls: a candidate that needs to move one is rejected and a smaller move
is tried instead.

The same pure function serves the live preview and the committed release.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping

from portplan.exceptions import FrozenConflictError
from portplan.logger import get_logger
from portplan.models import Override

from .core import ScheduledTask
from .overrides import clone_overrides

logger = get_logger()


def _candidates(start: int, original: int) -> Iterator[int]:
    """From ``start`` one step at a time toward ``original``, inclusive."""
    step = -1 if start > original else 1
    yield from range(start, original + step, step)


class DragSolver:
    """Propagates one manual move through the dependency graph."""

    def __init__(
        self,
        schedule: list[ScheduledTask],
        overrides: Mapping[int, Override],
    ) -> None:
        """Initialize the solver.

        Args:
            schedule: Current final schedule (after overrides)
            overrides: Current committed pin set
        """
        self.schedule = schedule
        self.overrides = dict(overrides)
        self.by_id = {task.id: task for task in schedule}
        self.dependents: dict[int, list[int]] = {task.id: [] for task in schedule}
        for task in schedule:
            for dep_id in task.dependency_ids:
                if dep_id in self.dependents:
                    self.dependents[dep_id].append(task.id)

    def solve(self, task_id: int, proposed_start: float) -> dict[int, Override]:
        """Compute the full pin set for moving ``task_id`` to ``proposed_start``.

        ``task_id`` may be a task, or a project that owns phases, in which case
        all of its phases move by one shared delta.

        Returns:
            A superset of the input overrides; the input unchanged when the
            move is impossible or ``task_id`` is unknown
        """
        proposed = math.floor(proposed_start) if math.isfinite(proposed_start) else 0

        if task_id in self.by_id:
            return self._solve_single(task_id, proposed)

        phase_ids = [
            task.id
            for task in self.schedule
            if task.project_id == task_id and not task.task.is_standalone
        ]
        if phase_ids:
            return self._solve_group(task_id, phase_ids, proposed)

        logger.debug(f"Drag of unknown task {task_id} ignored")
        return clone_overrides(self.overrides)

    def _solve_single(self, task_id: int, proposed: int) -> dict[int, Override]:
        task = self.by_id[task_id]
        original = task.start_month
        dependency_end = max(
            (
                self.by_id[dep_id].end_month
                for dep_id in task.dependency_ids
                if dep_id in self.by_id and dep_id != task_id
            ),
            default=0,
        )
        clamped = max(0, proposed, dependency_end)
        logger.checks(
            f"Drag task {task_id}: proposed={proposed}, clamped={clamped}, original={original}"
        )

        for candidate in _candidates(clamped, original):
            starts = self._try({task_id: candidate})
            if starts is not None:
                return self._build(starts, {task_id})
            logger.checks(f"  Candidate month {candidate} blocked by a frozen task")

        return clone_overrides(self.overrides)

    def _solve_group(self, project_id: int, phase_ids: list[int], proposed: int) -> dict[int, Override]:
        originals = {phase_id: self.by_id[phase_id].start_month for phase_id in phase_ids}
        project_start = min(originals.values())
        delta = proposed - project_start

        # A phase may not move left past the length of its predecessor chain
        if delta < 0:
            for phase_id in phase_ids:
                floor = self._chain_length(phase_id) - originals[phase_id]
                delta = max(delta, min(0, floor))

        logger.checks(f"Drag project {project_id}: {len(phase_ids)} phases, delta={delta}")

        for candidate in _candidates(delta, 0):
            fixed = {
                phase_id: max(0, originals[phase_id] + candidate) for phase_id in phase_ids
            }
            starts = self._try(fixed)
            if starts is not None:
                return self._build(starts, set(phase_ids))
            logger.checks(f"  Delta {candidate} blocked by a frozen task")

        return clone_overrides(self.overrides)

    def _chain_length(self, task_id: int) -> int:
        """Total duration of the longest predecessor chain ending before ``task_id``."""
        memo: dict[int, int] = {}
        on_path: set[int] = set()

        def length(current: int) -> int:
            if current in memo:
                return memo[current]
            if current in on_path:
                return 0
            on_path.add(current)
            best = 0
            for dep_id in self.by_id[current].dependency_ids:
                if dep_id in self.by_id:
                    best = max(best, self.by_id[dep_id].duration + length(dep_id))
            on_path.discard(current)
            memo[current] = best
            return best

        return length(task_id)

    def _is_wall(self, task_id: int) -> bool:
        override = self.overrides.get(task_id)
        return override is not None and override.frozen

    def _try(self, fixed: dict[int, int]) -> dict[int, int] | None:
        """Propagate a set of forced starts; None if a frozen task would have to move.

        Dependents are pushed forward first, then dependencies of every forced
        or pushed task are pulled back. Each pass skips tasks on its active
        path, so cycles end where they close, and never undoes the other pass.
        """
        starts = {task.id: task.start_month for task in self.schedule}
        starts.update(fixed)
        roots = [task.id for task in self.schedule if task.id in fixed]
        pushed: set[int] = set()
        pulled: set[int] = set()

        try:
            for task_id in roots:
                self._push_dependents(task_id, starts, fixed, pushed, pulled, {task_id})
            for task_id in roots + [task.id for task in self.schedule if task.id in pushed]:
                self._pull_dependencies(task_id, starts, fixed, pushed, pulled, {task_id})
        except FrozenConflictError as e:
            logger.debug(f"    Frozen task {e.task_id} would have to move")
            return None
        return starts

    def _move(self, task_id: int, start: int, starts: dict[int, int]) -> None:
        if self._is_wall(task_id):
            raise FrozenConflictError(task_id)
        logger.debug(f"    Task {task_id}: {starts[task_id]} -> {start}")
        starts[task_id] = start

    def _push_dependents(  # noqa: PLR0913
        self,
        task_id: int,
        starts: dict[int, int],
        fixed: dict[int, int],
        pushed: set[int],
        pulled: set[int],
        on_path: set[int],
    ) -> None:
        end = starts[task_id] + self.by_id[task_id].duration
        for dependent_id in self.dependents[task_id]:
            if dependent_id in fixed or dependent_id in on_path or dependent_id in pulled:
                continue
            if starts[dependent_id] >= end:
                continue
            self._move(dependent_id, end, starts)
            pushed.add(dependent_id)
            on_path.add(dependent_id)
            self._push_dependents(dependent_id, starts, fixed, pushed, pulled, on_path)
            on_path.discard(dependent_id)

    def _pull_dependencies(  # noqa: PLR0913
        self,
        task_id: int,
        starts: dict[int, int],
        fixed: dict[int, int],
        pushed: set[int],
        pulled: set[int],
        on_path: set[int],
    ) -> None:
        start = starts[task_id]
        for dep_id in self.by_id[task_id].dependency_ids:
            if dep_id not in self.by_id or dep_id in fixed or dep_id in on_path:
                continue
            if dep_id in pushed:
                continue
            dependency = self.by_id[dep_id]
            if starts[dep_id] + dependency.duration <= start:
                continue
            self._move(dep_id, max(0, start - dependency.duration), starts)
            pulled.add(dep_id)
            on_path.add(dep_id)
            self._pull_dependencies(dep_id, starts, fixed, pushed, pulled, on_path)
            on_path.discard(dep_id)

    def _build(self, starts: dict[int, int], dragged: set[int]) -> dict[int, Override]:
        result = clone_overrides(self.overrides)
        for task in self.schedule:
            new_start = starts[task.id]
            if task.id in dragged or new_start != task.start_month:
                result[task.id] = Override(new_start, True)
        return result


def solve_drag(
    schedule: list[ScheduledTask],
    overrides: Mapping[int, Override],
    task_id: int,
    proposed_start: float,
) -> dict[int, Override]:
    """Pin set reflecting a drag of ``task_id`` to ``proposed_start``.

    Pure: the inputs are never modified, and identical inputs give identical
    output. Used both for the live preview and for the committed release.
    """
    return DragSolver(schedule, overrides).solve(task_id, proposed_start)
