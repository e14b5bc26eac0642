"""Flatten the project/phase hierarchy into schedulable tasks."""

from __future__ import annotations

from portplan.models import LineItem, PortfolioState

from .config import SchedulingConfig
from .core import Task
from .hierarchy import clamp_duration


def _requirements(item: LineItem, disciplines: tuple[str, ...]) -> dict[str, float]:
    result: dict[str, float] = {}
    for discipline in disciplines:
        value = item.requirements.get(discipline)
        result[discipline] = value if value is not None and value > 0 else 0.0
    return result


def compile_tasks(state: PortfolioState, config: SchedulingConfig | None = None) -> list[Task]:
    """Convert line items into tasks, in row order.

    A project with no phases becomes one standalone task. A project with
    phases contributes only its phases, each inheriting the project's priority.

    Args:
        state: Portfolio snapshot
        config: Optional scheduling configuration (order stride)

    Returns:
        Tasks in authored order; use ``sort_tasks`` for scheduling order
    """
    stride = (config or SchedulingConfig()).order_stride
    existing_ids = state.item_ids()
    tasks: list[Task] = []

    for project_sequence, project in enumerate(state.projects()):
        project_name = project.name or f"Project {project.id}"
        priority = project.priority if project.priority is not None else 0.0
        phases = state.phases_of(project.id)

        if not phases:
            tasks.append(
                Task(
                    id=project.id,
                    name=project_name,
                    project_id=project.id,
                    project_name=project_name,
                    priority=priority,
                    duration=clamp_duration(project.duration_months),
                    dependency_ids=tuple(d for d in project.dependency_ids if d in existing_ids),
                    requirements=_requirements(project, state.disciplines),
                    order=project_sequence * stride,
                    is_standalone=True,
                )
            )
            continue

        for phase_sequence, phase in enumerate(phases):
            tasks.append(
                Task(
                    id=phase.id,
                    name=phase.name or f"Phase {phase.id}",
                    project_id=project.id,
                    project_name=project_name,
                    priority=priority,
                    duration=clamp_duration(phase.duration_months),
                    dependency_ids=tuple(d for d in phase.dependency_ids if d in existing_ids),
                    requirements=_requirements(phase, state.disciplines),
                    order=project_sequence * stride + phase_sequence,
                    is_standalone=False,
                )
            )

    return tasks


def sort_tasks(tasks: list[Task]) -> list[Task]:
    """Scheduling order: priority descending, then authored order ascending."""
    return sorted(tasks, key=lambda task: (-task.priority, task.order))
