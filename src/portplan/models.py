"""Data models for portplan.

A portfolio is a flat, ordered list of line items. Rows with no parent are
projects; rows with a parent are that project's phases. The hierarchy is
exactly two levels deep.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

DEFAULT_DISCIPLINES = ("PjM", "SE", "ME", "EE", "FW", "SW", "CV", "Test")
DEFAULT_CAPACITY = 1.0


def _default_requirements() -> dict[str, float | None]:
    return {}


@dataclass(frozen=True)
class LineItem:
    """A project (``parent_id is None``) or one of its phases.

    ``priority`` is only meaningful on projects. ``duration_months`` on a
    project that owns phases is ignored; its duration is derived from the
    phases' critical path.
    """

    id: int
    name: str = ""
    parent_id: int | None = None
    dependency_ids: tuple[int, ...] = ()
    priority: float | None = None
    duration_months: float | None = None
    requirements: dict[str, float | None] = field(default_factory=_default_requirements)

    @property
    def is_project(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True)
class Override:
    """A manual pin of a task's start month.

    ``frozen=True`` makes the task immovable to the rebalance and drag solvers;
    ``frozen=False`` is a soft pin that keeps a solver result in place.
    """

    start_month: int
    frozen: bool = False

    def to_dict(self) -> dict[str, int | bool]:
        return {"startMonth": self.start_month, "frozen": self.frozen}


def _default_capacities() -> dict[str, float | None]:
    return dict.fromkeys(DEFAULT_DISCIPLINES, DEFAULT_CAPACITY)


def _default_overrides() -> dict[int, Override]:
    return {}


@dataclass(frozen=True)
class PortfolioState:
    """Immutable snapshot of everything the scheduler consumes.

    Transitions never mutate a snapshot; see ``portplan.edits``.
    """

    line_items: tuple[LineItem, ...] = ()
    disciplines: tuple[str, ...] = DEFAULT_DISCIPLINES
    capacities: dict[str, float | None] = field(default_factory=_default_capacities)
    overrides: dict[int, Override] = field(default_factory=_default_overrides)
    next_id: int = 1

    def item(self, item_id: int) -> LineItem | None:
        for line_item in self.line_items:
            if line_item.id == item_id:
                return line_item
        return None

    def index_of(self, item_id: int) -> int:
        """Row index of an item, or -1."""
        for index, line_item in enumerate(self.line_items):
            if line_item.id == item_id:
                return index
        return -1

    def projects(self) -> Iterator[LineItem]:
        return (line_item for line_item in self.line_items if line_item.is_project)

    def phases_of(self, project_id: int) -> list[LineItem]:
        return [line_item for line_item in self.line_items if line_item.parent_id == project_id]

    def item_ids(self) -> set[int]:
        return {line_item.id for line_item in self.line_items}

    def capacity(self, discipline: str) -> float:
        """Capacity in FTE/month; unset or missing counts as 0."""
        value = self.capacities.get(discipline)
        return value if value is not None else 0.0
