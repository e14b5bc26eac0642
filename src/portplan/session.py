"""The single owner of mutable planning state.

A ``PlanningSession`` holds the current immutable snapshot, both undo
histories, and the transient drag preview. Every change goes through one of
its methods, and every derived view comes from one pipeline
(``SchedulingService``).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .config import UnifiedConfig
from .edits import set_overrides
from .history import OverrideHistory, StructuralHistory
from .logger import get_logger
from .models import Override, PortfolioState
from .repository import StateRepository
from .scheduler import ScheduledTask, SchedulingResult, SchedulingService, solve_drag

logger = get_logger()


@dataclass
class _DragState:
    """What a drag started from, and its latest preview."""

    task_id: int
    base_tasks: list[ScheduledTask]
    base_overrides: dict[int, Override]
    preview: dict[int, Override] | None = None


class PlanningSession:
    """Holds the current snapshot and applies transitions to it.

    Structural edits are recorded in a bounded snapshot history. Scheduler
    actions (drag commit, rebalance, reset, freeze) are recorded in a separate
    pin-set history. A drag only ever writes a preview until it is released.
    """

    def __init__(
        self,
        state: PortfolioState | None = None,
        *,
        repository: StateRepository | None = None,
        config: UnifiedConfig | None = None,
        autosave: bool = False,
    ) -> None:
        """Initialize the session.

        Args:
            state: Starting snapshot; read from ``repository`` when omitted
            repository: Where ``save`` writes (and the default source)
            config: Optional unified configuration
            autosave: Write to the repository after every committed change
        """
        self.config = config or UnifiedConfig()
        self.repository = repository
        self.autosave = autosave
        if state is None and repository is not None:
            state = repository.get()
        self.state = state if state is not None else self.config.initial_state()
        self.history = StructuralHistory(self.config.history.max_undo_steps)
        self.override_history = OverrideHistory()
        self._drag: _DragState | None = None

    # Derived views

    def service(self) -> SchedulingService:
        return SchedulingService(self.state, self.config.scheduler)

    def schedule(self) -> SchedulingResult:
        """Current schedule; shows the drag preview while a drag is active."""
        preview = self._drag.preview if self._drag is not None else None
        return self.service().schedule(preview)

    @property
    def dragging(self) -> bool:
        return self._drag is not None

    # Structural edits

    def apply(self, edit: Callable[..., PortfolioState], *args: Any, **kwargs: Any) -> bool:
        """Run a transition from ``portplan.edits`` against the current snapshot.

        Returns:
            True if the snapshot changed
        """
        new_state = edit(self.state, *args, **kwargs)
        if new_state == self.state:
            return False
        self.cancel_drag()
        self.history.record(self.state)
        self._commit(new_state)
        return True

    def load(self, state: PortfolioState) -> None:
        """Replace everything with a loaded snapshot (undoable)."""
        self.cancel_drag()
        self.history.record(self.state)
        self.override_history.clear()
        self._commit(state)

    def undo(self) -> bool:
        """Restore the snapshot before the last structural edit."""
        restored = self.history.undo(self.state)
        if restored is None:
            return False
        self._restore(restored)
        return True

    def redo(self) -> bool:
        restored = self.history.redo(self.state)
        if restored is None:
            return False
        self._restore(restored)
        return True

    def _restore(self, state: PortfolioState) -> None:
        # A restored snapshot carries its own pins; pin history no longer applies
        self.cancel_drag()
        self.override_history.clear()
        self._commit(state)

    # Scheduler actions

    def begin_drag(self, task_id: int) -> None:
        """Start dragging a task, or a project that owns phases."""
        self._drag = _DragState(
            task_id=task_id,
            base_tasks=self.service().schedule().tasks,
            base_overrides=dict(self.state.overrides),
        )
        logger.checks(f"Drag started on {task_id}")

    def drag_to(self, proposed_start: float) -> dict[int, Override]:
        """Update the preview for the pointer's month; committed pins are untouched."""
        if self._drag is None:
            raise RuntimeError("No drag in progress")
        self._drag.preview = solve_drag(
            self._drag.base_tasks, self._drag.base_overrides, self._drag.task_id, proposed_start
        )
        return self._drag.preview

    def release_drag(self) -> bool:
        """Finish the drag, committing the preview if anything actually moved.

        Returns:
            True if the preview was committed
        """
        drag = self._drag
        self._drag = None
        if drag is None or drag.preview is None:
            return False

        before = {task.id: task.start_month for task in drag.base_tasks}
        after = {task.id: task.start_month for task in self.service().schedule(drag.preview).tasks}
        if before == after:
            logger.checks(f"Drag on {drag.task_id} released without displacement")
            return False

        self._commit_overrides(drag.preview)
        logger.changes(f"Task {drag.task_id} manually moved and frozen")
        return True

    def cancel_drag(self) -> None:
        self._drag = None

    def rebalance(self) -> None:
        """Replace the pin set with one that re-packs every unfrozen task."""
        self.cancel_drag()
        self._commit_overrides(self.service().rebalance())
        logger.changes("Rebalanced: frozen tasks kept in place, others scheduled around them")

    def reset_overrides(self) -> None:
        """Drop every pin and return to the automatic schedule."""
        self.cancel_drag()
        self._commit_overrides({})

    def freeze(self, task_id: int) -> bool:
        """Pin a task where it currently sits and make it immovable."""
        current = self.service().schedule().by_id().get(task_id)
        if current is None:
            return False
        self._commit_overrides({**self.state.overrides, task_id: Override(current.start_month, True)})
        return True

    def unfreeze(self, item_id: int) -> bool:
        """Keep a task's pin but let solvers move it again.

        Given a project that owns phases, every phase is unfrozen at once.

        Returns:
            False when none of the targeted tasks was frozen
        """
        target_ids = [item_id, *(phase.id for phase in self.state.phases_of(item_id))]
        frozen: dict[int, Override] = {}
        for task_id in target_ids:
            override = self.state.overrides.get(task_id)
            if override is not None and override.frozen:
                frozen[task_id] = Override(override.start_month, False)
        if not frozen:
            return False
        self._commit_overrides({**self.state.overrides, **frozen})
        return True

    def replace_overrides(self, overrides: dict[int, Override]) -> None:
        """Install a pin set from elsewhere, such as an override file."""
        self.cancel_drag()
        self._commit_overrides(overrides)

    def undo_overrides(self) -> bool:
        restored = self.override_history.undo(dict(self.state.overrides))
        if restored is None:
            return False
        self.cancel_drag()
        self._commit(set_overrides(self.state, restored))
        return True

    def redo_overrides(self) -> bool:
        restored = self.override_history.redo(dict(self.state.overrides))
        if restored is None:
            return False
        self.cancel_drag()
        self._commit(set_overrides(self.state, restored))
        return True

    def _commit_overrides(self, overrides: dict[int, Override]) -> None:
        self.override_history.record(self.state.overrides)
        self._commit(set_overrides(self.state, overrides))

    # Persistence

    def save(self) -> None:
        if self.repository is None:
            raise RuntimeError("Session has no repository to save to")
        self.repository.put(self.state)

    def _commit(self, state: PortfolioState) -> None:
        self.state = state
        if self.autosave and self.repository is not None:
            self.repository.put(state)
