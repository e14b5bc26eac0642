"""Core dataclasses for the scheduling system."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _default_str_list() -> list[str]:
    return []


@dataclass(frozen=True)
class Task:
    """A schedulable unit: a phase, or a project that owns no phases."""

    id: int
    name: str
    project_id: int
    project_name: str
    priority: float
    duration: int  # whole months, >= 1
    dependency_ids: tuple[int, ...]
    requirements: dict[str, float]  # discipline -> FTE, one entry per discipline
    order: int  # unique tie-break key
    is_standalone: bool


@dataclass(frozen=True)
class Placement:
    """Start/end month chosen by the list scheduler."""

    start_month: int
    end_month: int
    capped: bool = False  # placed at the probe limit without a feasible fit


@dataclass(frozen=True)
class ScheduledTask:
    """A task with its final position after overrides are applied."""

    task: Task
    start_month: int
    end_month: int
    frozen: bool

    @property
    def id(self) -> int:
        return self.task.id

    @property
    def duration(self) -> int:
        return self.task.duration

    @property
    def dependency_ids(self) -> tuple[int, ...]:
        return self.task.dependency_ids

    @property
    def requirements(self) -> dict[str, float]:
        return self.task.requirements

    @property
    def project_id(self) -> int:
        return self.task.project_id

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping for rendering and serialization."""
        return {
            "id": self.task.id,
            "name": self.task.name,
            "projectId": self.task.project_id,
            "projectName": self.task.project_name,
            "priority": self.task.priority,
            "duration": self.task.duration,
            "dependencyIds": list(self.task.dependency_ids),
            "requirements": dict(self.task.requirements),
            "order": self.task.order,
            "isStandaloneProject": self.task.is_standalone,
            "startMonth": self.start_month,
            "endMonth": self.end_month,
            "frozen": self.frozen,
        }


@dataclass
class UtilizationReport:
    """Per-discipline, per-month load derived from a final schedule."""

    horizon: int
    capacities: dict[str, float]
    usage: dict[str, list[float]]  # FTE committed per month
    percentages: dict[str, list[float]]  # usage / capacity * 100

    def overbooked(self, epsilon: float = 1e-9) -> list[tuple[str, int, float]]:
        """(discipline, month, percentage) for every month where usage exceeds capacity.

        A discipline without capacity reports 100% for any usage, so the check
        compares raw FTE rather than the percentage.
        """
        result: list[tuple[str, int, float]] = []
        for discipline, values in self.usage.items():
            capacity = self.capacities.get(discipline, 0.0)
            for month, used in enumerate(values):
                if used > capacity + epsilon:
                    result.append((discipline, month, self.percentages[discipline][month]))
        return result


@dataclass
class SchedulingResult:
    """Output of the full scheduling pipeline."""

    tasks: list[ScheduledTask]
    utilization: UtilizationReport
    warnings: list[str] = field(default_factory=_default_str_list)

    def by_id(self) -> dict[int, ScheduledTask]:
        return {scheduled.id: scheduled for scheduled in self.tasks}
