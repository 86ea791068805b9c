"""Workflow error taxonomy.

Every error carries a machine-checkable ``kind`` and a list of human-readable
messages. None of them are retried by the core.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class WorkflowError(Exception):
    """Base workflow error."""

    kind: str
    messages: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        if not self.messages:
            return self.kind
        return f"{self.kind}: {'; '.join(self.messages)}"


@dataclass(slots=True)
class NotFoundError(WorkflowError):
    """Task or user lookup miss."""


@dataclass(slots=True)
class ValidationFailedError(WorkflowError):
    """Aggregated field-level validation messages."""


@dataclass(slots=True)
class ImmutableStateError(WorkflowError):
    """Mutation attempted on a closed task."""


@dataclass(slots=True)
class InvalidTransitionError(WorkflowError):
    """Status rule rejection."""


@dataclass(slots=True)
class UnregisteredTypeError(WorkflowError):
    """Registry miss."""


@dataclass(slots=True)
class DuplicateTypeError(WorkflowError):
    """Handler registered twice for the same task type."""


@dataclass(slots=True)
class DuplicateUserError(WorkflowError):
    """User email already taken."""


@dataclass(slots=True)
class ConcurrentUpdateError(WorkflowError):
    """Stored task version moved on between load and save."""


def task_not_found(task_id: str) -> NotFoundError:
    return NotFoundError("task-not-found", [f"Task not found: {task_id}"])


def assignee_not_found(user_id: str) -> NotFoundError:
    return NotFoundError("assignee-not-found", [f"User not found: {user_id}"])


def closed_immutable(task_id: str) -> ImmutableStateError:
    return ImmutableStateError("closed-immutable", [f"Closed tasks are immutable: {task_id}"])
