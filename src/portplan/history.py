"""Linear undo/redo histories.

Two independent histories exist: one of full snapshots for structural edits
(bounded) and one of pin sets for scheduler actions (unbounded). Recording a
new action after an undo discards whatever could have been redone.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Generic, TypeVar

from .models import Override, PortfolioState

T = TypeVar("T")

DEFAULT_MAX_UNDO_STEPS = 50


class History(Generic[T]):
    """Undo and redo stacks of opaque snapshots."""

    def __init__(self, max_steps: int | None = None) -> None:
        """Initialize empty stacks.

        Args:
            max_steps: Oldest undo entries are dropped past this many; None is unbounded
        """
        self.max_steps = max_steps
        self.undo_stack: list[T] = []
        self.redo_stack: list[T] = []

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    def record(self, current: T) -> None:
        """Remember ``current`` before it is replaced by a new action."""
        self.undo_stack.append(current)
        if self.max_steps is not None and len(self.undo_stack) > self.max_steps:
            del self.undo_stack[: len(self.undo_stack) - self.max_steps]
        self.redo_stack.clear()

    def undo(self, current: T) -> T | None:
        """Step back; returns the snapshot to restore, or None if there is none."""
        if not self.undo_stack:
            return None
        self.redo_stack.append(current)
        return self.undo_stack.pop()

    def redo(self, current: T) -> T | None:
        """Step forward again; returns the snapshot to restore, or None."""
        if not self.redo_stack:
            return None
        self.undo_stack.append(current)
        return self.redo_stack.pop()

    def clear(self) -> None:
        self.undo_stack.clear()
        self.redo_stack.clear()


class StructuralHistory(History[PortfolioState]):
    """Bounded history of whole snapshots for structural edits."""

    def __init__(self, max_steps: int = DEFAULT_MAX_UNDO_STEPS) -> None:
        super().__init__(max_steps)


class OverrideHistory(History[dict[int, Override]]):
    """Unbounded history of pin sets for drag commits, rebalances and resets."""

    def __init__(self) -> None:
        super().__init__(None)

    def record(self, current: Mapping[int, Override]) -> None:  # type: ignore[override]
        super().record(dict(current))
