"""Scheduling algorithm exports."""

from .list_schedule import ListScheduler, base_schedule

__all__ = [
    "ListScheduler",
    "base_schedule",
]
