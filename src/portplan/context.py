"""Process-wide CLI context: config location and the "today" reference."""

from __future__ import annotations

from datetime import date
from pathlib import Path


class _Context:
    """Values set once by the CLI callback and read by commands."""

    def __init__(self) -> None:
        self.config_path: Path | None = None
        self.reference_date: date | None = None


_context = _Context()


def get_config_path() -> Path | None:
    """Get the config path given with --config, if any."""
    return _context.config_path


def set_config_path(path: Path | None) -> None:
    _context.config_path = path


def get_reference_date() -> date:
    """Date used for the timeline origin and the today marker.

    Never used in scheduling math; month 0 is always the first month of the plan.
    """
    return _context.reference_date or date.today()  # noqa: DTZ011


def set_reference_date(value: date | None) -> None:
    _context.reference_date = value
