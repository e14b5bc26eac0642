"""Project duration derived from the critical path through its phases."""

from __future__ import annotations

import math
from collections.abc import Iterable

from portplan.logger import get_logger
from portplan.models import LineItem

logger = get_logger()


def clamp_duration(duration_months: float | None) -> int:
    """Whole-month duration of a schedulable row, never below one month."""
    if duration_months is None or not math.isfinite(duration_months):
        return 1
    return max(1, math.ceil(duration_months))


def project_duration(line_items: Iterable[LineItem], project_id: int) -> int:
    """Length of the longest duration-weighted chain through a project's phases.

    Only dependency edges with both ends inside the project count. A phase
    reached again while it is still on the traversal path contributes just its
    own duration, so a cyclic phase graph still yields a finite number.

    Args:
        line_items: All rows of the portfolio
        project_id: Project whose duration to derive

    Returns:
        Project duration in months, or 0 when the project has no phases
    """
    phases = [item for item in line_items if item.parent_id == project_id]
    if not phases:
        return 0

    phase_ids = {phase.id for phase in phases}
    durations = {phase.id: clamp_duration(phase.duration_months) for phase in phases}
    dependencies = {
        phase.id: [dep_id for dep_id in phase.dependency_ids if dep_id in phase_ids]
        for phase in phases
    }

    finish: dict[int, int] = {}
    on_path: set[int] = set()

    def get_finish(phase_id: int) -> int:
        if phase_id in finish:
            return finish[phase_id]
        if phase_id in on_path:
            logger.debug(f"  Cycle through phase {phase_id} in project {project_id}")
            return durations[phase_id]

        on_path.add(phase_id)
        earliest_start = max((get_finish(dep_id) for dep_id in dependencies[phase_id]), default=0)
        on_path.discard(phase_id)

        finish[phase_id] = earliest_start + durations[phase_id]
        return finish[phase_id]

    return max(get_finish(phase.id) for phase in phases)


def project_durations(line_items: Iterable[LineItem]) -> dict[int, int]:
    """Derived duration of every project, 0 for projects without phases."""
    items = list(line_items)
    return {item.id: project_duration(items, item.id) for item in items if item.is_project}
