"""Storage abstraction for portfolio snapshots.

The planning session never reaches for a global storage location; it is
handed a repository and only calls ``get`` and ``put``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .logger import get_logger
from .models import PortfolioState
from .parser import load_state, write_state

logger = get_logger()


class StateRepository(Protocol):
    """Protocol for anything that can hold one portfolio snapshot."""

    def get(self) -> PortfolioState | None:
        """Return the stored snapshot, or None when nothing is stored."""
        ...

    def put(self, state: PortfolioState) -> None:
        """Replace the stored snapshot."""
        ...


class FileStateRepository:
    """Snapshot stored in a JSON or YAML file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def get(self) -> PortfolioState | None:
        if not self.path.exists():
            return None
        return load_state(self.path)

    def put(self, state: PortfolioState) -> None:
        write_state(self.path, state)
        logger.changes(f"Saved {len(state.line_items)} line items to {self.path}")


class MemoryStateRepository:
    """Snapshot kept in memory; for tests and embedding."""

    def __init__(self, state: PortfolioState | None = None) -> None:
        self.state = state
        self.writes = 0

    def get(self) -> PortfolioState | None:
        return self.state

    def put(self, state: PortfolioState) -> None:
        self.state = state
        self.writes += 1
