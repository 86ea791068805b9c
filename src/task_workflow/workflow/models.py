"""Domain models for the task workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class TaskType(str, Enum):
    """Closed set of task types with registered handlers."""

    PROCUREMENT = "procurement"
    DEVELOPMENT = "development"


class LifecycleState(str, Enum):
    """Task lifecycle. Closed tasks are immutable."""

    OPEN = "open"
    CLOSED = "closed"


class Direction(str, Enum):
    """Status move direction, always by exactly one step."""

    FORWARD = "forward"
    BACKWARD = "backward"


class DisplayState(str, Enum):
    """Presentation label derived from status and lifecycle."""

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"
    CLOSED = "closed"


class TaskEventType(str, Enum):
    """Audit trail entry kinds."""

    CREATED = "created"
    ADVANCED = "advanced"
    REVERSED = "reversed"
    UPDATED = "updated"
    CLOSED = "closed"


@dataclass(slots=True)
class UserCreate:
    """Input payload for adding a user."""

    display_name: str
    email: str
    user_id: str | None = None


@dataclass(slots=True)
class UserView:
    """Stored user."""

    user_id: str
    display_name: str
    email: str
    created_at: datetime


@dataclass(slots=True)
class TaskCreate:
    """Input payload for creating a task."""

    title: str
    task_type: TaskType
    assignee_id: str
    description: str | None = None
    custom_fields: dict[str, Any] | None = None


@dataclass(slots=True)
class StatusChange:
    """Input payload for a one-step status move."""

    task_id: str
    direction: Direction
    next_assignee_id: str | None = None
    custom_fields: dict[str, Any] | None = None


@dataclass(slots=True)
class TaskUpdate:
    """Metadata-only edit. ``None`` means leave unchanged."""

    task_id: str
    title: str | None = None
    description: str | None = None
    custom_fields: dict[str, Any] | None = None


@dataclass(slots=True)
class TaskRecord:
    """Mutable task state loaded from and written back to the repository."""

    task_id: str
    title: str
    description: str | None
    task_type: TaskType
    status: int
    lifecycle_state: LifecycleState
    assignee_id: str
    custom_fields: dict[str, Any]
    version: int
    created_at: datetime
    updated_at: datetime
    assignee: UserView | None = None


@dataclass(slots=True)
class TaskView:
    """Readable task view for CLI and callers."""

    task_id: str
    title: str
    description: str | None
    task_type: TaskType
    status: int
    max_status: int
    lifecycle_state: LifecycleState
    display_state: DisplayState
    assignee: UserView
    custom_fields: dict[str, Any]
    version: int
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""

        return {
            "task_id": self.task_id,
            "title": self.title,
            "description": self.description,
            "task_type": self.task_type.value,
            "status": self.status,
            "max_status": self.max_status,
            "lifecycle_state": self.lifecycle_state.value,
            "display_state": self.display_state.value,
            "assignee": {
                "user_id": self.assignee.user_id,
                "display_name": self.assignee.display_name,
                "email": self.assignee.email,
            },
            "custom_fields": dict(self.custom_fields),
            "version": self.version,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(slots=True)
class TaskEventWrite:
    """Audit entry written together with a task mutation."""

    event_type: TaskEventType
    status_from: int | None
    status_to: int | None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class TaskEventView:
    """Stored audit entry."""

    event_id: int
    task_id: str
    event_type: TaskEventType
    status_from: int | None
    status_to: int | None
    created_at: datetime
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class TaskDetails:
    """Task with its event stream."""

    task: TaskView
    events: list[TaskEventView]
