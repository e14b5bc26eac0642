"""Per-discipline, per-month load percentages of a final schedule."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from .config import SchedulingConfig
from .core import ScheduledTask, UtilizationReport


def compute_horizon(scheduled: Iterable[ScheduledTask], config: SchedulingConfig | None = None) -> int:
    """Number of months to report: at least the minimum, and past the last end."""
    effective = config or SchedulingConfig()
    latest_end = max((task.end_month for task in scheduled), default=0)
    return max(effective.min_horizon_months, latest_end + effective.horizon_padding_months)


def compute_utilization(
    scheduled: list[ScheduledTask],
    disciplines: Iterable[str],
    capacities: Mapping[str, float | None],
    config: SchedulingConfig | None = None,
) -> UtilizationReport:
    """Accumulate requirements into monthly usage and express it against capacity.

    Percentage is ``usage / capacity * 100``; a discipline with no capacity
    reads 100 when anything uses it and 0 otherwise.
    """
    horizon = compute_horizon(scheduled, config)
    effective_capacities = {d: max(0.0, capacities.get(d) or 0.0) for d in disciplines}

    usage: dict[str, list[float]] = {d: [0.0] * horizon for d in effective_capacities}
    for task in scheduled:
        for discipline, by_month in usage.items():
            required = task.requirements.get(discipline, 0.0)
            if required <= 0:
                continue
            for month in range(task.start_month, task.end_month):
                by_month[month] += required

    percentages: dict[str, list[float]] = {}
    for discipline, by_month in usage.items():
        capacity = effective_capacities[discipline]
        if capacity > 0:
            percentages[discipline] = [used / capacity * 100 for used in by_month]
        else:
            percentages[discipline] = [100.0 if used > 0 else 0.0 for used in by_month]

    return UtilizationReport(
        horizon=horizon,
        capacities=effective_capacities,
        usage=usage,
        percentages=percentages,
    )
