"""Pytest configuration and fixtures for portplan tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from portplan import context
from portplan.logger import reset_logger
from portplan.models import LineItem, Override, PortfolioState
from portplan.scheduler import ScheduledTask, SchedulingService


@pytest.fixture(autouse=True)
def isolate_globals() -> Iterator[None]:
    """Reset logger and CLI context between tests."""
    reset_logger()
    context.set_config_path(None)
    context.set_reference_date(None)
    yield
    reset_logger()
    context.set_config_path(None)
    context.set_reference_date(None)


def project(
    item_id: int,
    name: str = "",
    *,
    priority: float | None = None,
    duration: float | None = None,
    deps: tuple[int, ...] = (),
    **requirements: float | None,
) -> LineItem:
    """Build a project row.

    Example:
        project(1, "Radar", priority=5, duration=2, X=1.0)
    """
    return LineItem(
        id=item_id,
        name=name,
        dependency_ids=deps,
        priority=priority,
        duration_months=duration,
        requirements=dict(requirements),
    )


def phase(
    item_id: int,
    parent_id: int,
    name: str = "",
    *,
    duration: float | None = None,
    deps: tuple[int, ...] = (),
    **requirements: float | None,
) -> LineItem:
    """Build a phase row belonging to ``parent_id``."""
    return LineItem(
        id=item_id,
        name=name,
        parent_id=parent_id,
        dependency_ids=deps,
        duration_months=duration,
        requirements=dict(requirements),
    )


def make_state(
    *items: LineItem,
    disciplines: tuple[str, ...] = ("X",),
    capacities: dict[str, float | None] | None = None,
    overrides: dict[int, Override] | None = None,
) -> PortfolioState:
    """Build a snapshot; every discipline defaults to capacity 1."""
    return PortfolioState(
        line_items=tuple(items),
        disciplines=disciplines,
        capacities=capacities if capacities is not None else dict.fromkeys(disciplines, 1.0),
        overrides=overrides or {},
        next_id=max((item.id for item in items), default=0) + 1,
    )


def starts(state: PortfolioState, overrides: dict[int, Override] | None = None) -> dict[int, int]:
    """Final start month of every task."""
    return {task.id: task.start_month for task in schedule_of(state, overrides)}


def schedule_of(
    state: PortfolioState, overrides: dict[int, Override] | None = None
) -> list[ScheduledTask]:
    return SchedulingService(state).schedule(overrides).tasks
