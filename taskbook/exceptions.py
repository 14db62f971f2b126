"""Typed errors raised by the TaskBook business layer.

Lookups that miss return ``None`` or ``False`` instead of raising; the
exceptions below cover store failures and conflicting writes.
"""

from uuid import UUID


class TaskBookError(Exception):
    """Base class for all TaskBook errors."""


class StoreUnavailableError(TaskBookError):
    """Raised when the backing store cannot be reached or a query fails to run.

    Callers may retry; the service never does.
    """

    def __init__(self, operation: str, cause: Exception | None = None):
        """Initialize with the failing operation name."""
        self.operation = operation
        self.cause = cause
        message = f"Store unavailable during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class ConflictError(TaskBookError):
    """Raised when a write conflicts with the current state of the store."""

    def __init__(self, reason: str = "Conflict"):
        self.reason = reason
        super().__init__(reason)


class MembershipConflictError(ConflictError):
    """Raised when a user already has a membership row for a group."""

    def __init__(self, user_id: UUID, group_id: UUID):
        self.user_id = user_id
        self.group_id = group_id
        super().__init__(f"User {user_id} is already related to group {group_id}")


class ConcurrencyConflictError(ConflictError):
    """Raised when a task was modified since the caller last read it."""

    def __init__(self, task_id: UUID, expected_version: int):
        self.task_id = task_id
        self.expected_version = expected_version
        super().__init__(
            f"Task {task_id} no longer at version {expected_version}"
        )


__all__ = [
    "ConcurrencyConflictError",
    "ConflictError",
    "MembershipConflictError",
    "StoreUnavailableError",
    "TaskBookError",
]
