"""Scheduler package - month-granular, capacity-constrained portfolio scheduling.

Pipeline, leaves first:
- project_duration: critical-path duration of a project's phases
- compile_tasks: flatten projects/phases into schedulable tasks
- base_schedule: greedy list scheduling under capacity, ignoring pins
- apply_overrides: manual pins over the base placement
- compute_utilization: per-discipline monthly load

Interactive solvers:
- solve_drag: pin set for one manual move plus its forced ripple
- rebalance: re-pack everything around frozen tasks

SchedulingService runs the pipeline over a PortfolioState snapshot.
"""

from .algorithms import ListScheduler, base_schedule
from .compiler import compile_tasks, sort_tasks
from .config import SchedulingConfig
from .core import Placement, ScheduledTask, SchedulingResult, Task, UtilizationReport
from .drag import DragSolver, solve_drag
from .hierarchy import clamp_duration, project_duration, project_durations
from .overrides import apply_overrides, clone_overrides, normalize_start, overrides_differ, rebalance
from .resources import CapacityLedger
from .service import SchedulingService
from .utilization import compute_horizon, compute_utilization

__all__ = [
    # Core dataclasses
    "Task",
    "Placement",
    "ScheduledTask",
    "SchedulingResult",
    "UtilizationReport",
    # Configuration
    "SchedulingConfig",
    # Components
    "clamp_duration",
    "project_duration",
    "project_durations",
    "compile_tasks",
    "sort_tasks",
    "CapacityLedger",
    "ListScheduler",
    "base_schedule",
    "apply_overrides",
    "clone_overrides",
    "overrides_differ",
    "normalize_start",
    "rebalance",
    "compute_horizon",
    "compute_utilization",
    "DragSolver",
    "solve_drag",
    # High-level service
    "SchedulingService",
]
