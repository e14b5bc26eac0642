"""Per-discipline, per-month capacity ledger."""

from __future__ import annotations

from collections.abc import Mapping

from portplan.logger import get_logger

from .config import SchedulingConfig

logger = get_logger()


class CapacityLedger:
    """Tracks committed FTE per discipline and month against fixed capacities.

    Months are non-negative integers counted from the start of the plan.
    Usage may exceed capacity when allocations are forced (pinned tasks); the
    ledger records them anyway and ``fits`` simply reports no room.
    """

    def __init__(
        self,
        capacities: Mapping[str, float],
        config: SchedulingConfig | None = None,
    ) -> None:
        """Initialize an empty ledger.

        Args:
            capacities: Discipline -> capacity in FTE/month
            config: Optional scheduling configuration (epsilon, probe limit)
        """
        self.capacities = dict(capacities)
        self.config = config or SchedulingConfig()
        self.usage: dict[str, dict[int, float]] = {d: {} for d in self.capacities}

    def usage_at(self, discipline: str, month: int) -> float:
        return self.usage.get(discipline, {}).get(month, 0.0)

    def fits(self, requirements: Mapping[str, float], start: int, duration: int) -> bool:
        """Check whether a task fits in remaining capacity for its whole duration.

        A discipline with capacity <= 0 can never host a positive requirement.
        """
        epsilon = self.config.capacity_epsilon
        for offset in range(duration):
            month = start + offset
            for discipline, capacity in self.capacities.items():
                required = requirements.get(discipline, 0.0)
                if required <= 0:
                    continue
                if capacity <= 0:
                    return False
                if self.usage_at(discipline, month) + required > capacity + epsilon:
                    return False
        return True

    def allocate(self, requirements: Mapping[str, float], start: int, duration: int) -> None:
        """Commit a task's requirements for every month it occupies."""
        for offset in range(duration):
            month = start + offset
            for discipline, required in requirements.items():
                if required <= 0 or discipline not in self.usage:
                    continue
                by_month = self.usage[discipline]
                by_month[month] = by_month.get(month, 0.0) + required
        logger.debug(f"      Allocated months {start}..{start + duration - 1}")

    def find_start(
        self, requirements: Mapping[str, float], earliest: int, duration: int
    ) -> tuple[int, bool]:
        """Find the first month at or after ``earliest`` where the task fits.

        Probing stops ``probe_limit`` months past ``earliest``; the task is then
        placed at that bound regardless of fit.

        Returns:
            Tuple of (start_month, capped) where capped is True when no
            feasible month was found within the probe window
        """
        start = earliest
        probes = 0
        while not self.fits(requirements, start, duration):
            if probes >= self.config.probe_limit:
                return (start, True)
            logger.checks(f"    Month {start} rejected: insufficient capacity")
            start += 1
            probes += 1
        return (start, False)
