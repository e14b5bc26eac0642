"""Custom exceptions for portplan."""


class PortplanError(Exception):
    """Base exception for all portplan errors."""

    pass


class ValidationError(PortplanError):
    """Raised when a structural edit would break the portfolio invariants."""

    pass


class MissingReferenceError(ValidationError):
    """Raised when a referenced line item or discipline does not exist."""

    pass


class ParseError(PortplanError):
    """Raised when a state, config, or override file cannot be read."""

    pass


class FrozenConflictError(PortplanError):
    """Raised inside the drag solver when a move would displace a frozen task.

    The solver catches it and retries with a smaller move; it never reaches
    callers of the scheduling core.
    """

    def __init__(self, task_id: int) -> None:
        super().__init__(f"Task {task_id} is frozen")
        self.task_id = task_id
