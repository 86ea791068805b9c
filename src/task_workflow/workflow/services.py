"""Use-case services for the task workflow."""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from task_workflow.storage.sqlite import utc_now
from task_workflow.workflow.display import display_state
from task_workflow.workflow.errors import (
    ImmutableStateError,
    InvalidTransitionError,
    ValidationFailedError,
    WorkflowError,
    assignee_not_found,
    closed_immutable,
    task_not_found,
)
from task_workflow.workflow.handlers import TaskTypeHandler
from task_workflow.workflow.models import (
    Direction,
    LifecycleState,
    StatusChange,
    TaskCreate,
    TaskDetails,
    TaskEventType,
    TaskEventWrite,
    TaskRecord,
    TaskUpdate,
    TaskView,
    UserCreate,
    UserView,
)
from task_workflow.workflow.registry import TaskTypeRegistry
from task_workflow.workflow.repository import WorkflowRepository
from task_workflow.workflow.transitions import RejectReason, can_close, transition

logger = logging.getLogger(__name__)

INITIAL_STATUS = 1


class TaskWorkflowService:
    """Coordinates status rules, type handlers and persistence.

    Every mutating operation is load -> decide -> validate -> save. Validation
    always precedes the write, so a rejected operation leaves the stored task
    unchanged.
    """

    def __init__(self, *, repository: WorkflowRepository, registry: TaskTypeRegistry) -> None:
        self.repository = repository
        self.registry = registry

    def add_user(self, payload: UserCreate) -> UserView:
        errors: list[str] = []
        if not payload.display_name.strip():
            errors.append("display name is required")
        if "@" not in payload.email:
            errors.append(f"email must be a valid address: {payload.email!r}")
        if errors:
            raise self._rejected(ValidationFailedError("validation-failed", errors))
        user = self.repository.create_user(payload)
        logger.info("User added: %s <%s>", user.user_id, user.email)
        return user

    def list_users(self) -> list[UserView]:
        return self.repository.list_users()

    def create(self, payload: TaskCreate) -> TaskView:
        """Create a task at status 1 in the open state."""

        title = payload.title.strip()
        if not title:
            raise self._rejected(
                ValidationFailedError("validation-failed", ["title must be a non-empty string"]),
            )
        assignee = self._resolve_user(payload.assignee_id)
        handler = self.registry.get(payload.task_type)

        fields = dict(payload.custom_fields or {})
        self._require_valid(handler, INITIAL_STATUS, fields, kind="validation-failed")

        now = utc_now()
        record = TaskRecord(
            task_id=str(uuid4()),
            title=title,
            description=payload.description,
            task_type=payload.task_type,
            status=INITIAL_STATUS,
            lifecycle_state=LifecycleState.OPEN,
            assignee_id=assignee.user_id,
            custom_fields=handler.transform_fields(INITIAL_STATUS, fields),
            version=1,
            created_at=now,
            updated_at=now,
            assignee=assignee,
        )
        stored = self.repository.create_task(
            record,
            event=TaskEventWrite(
                event_type=TaskEventType.CREATED,
                status_from=None,
                status_to=INITIAL_STATUS,
                details={
                    "task_type": payload.task_type.value,
                    "assignee_id": assignee.user_id,
                    "fields": sorted(fields),
                },
            ),
        )
        logger.info(
            "Task created: %s type=%s assignee=%s",
            stored.task_id,
            stored.task_type.value,
            stored.assignee_id,
        )
        return self._to_view(stored)

    def get_task(self, task_id: str) -> TaskView:
        return self._to_view(self._load(task_id))

    def get_task_details(self, task_id: str) -> TaskDetails:
        task = self.get_task(task_id)
        return TaskDetails(task=task, events=self.repository.list_task_events(task_id))

    def list_tasks(self, *, assignee_id: str | None = None) -> list[TaskView]:
        if assignee_id is not None:
            self._resolve_user(assignee_id)
        return [
            self._to_view(record)
            for record in self.repository.list_tasks(assignee_id=assignee_id)
        ]

    def advance(
        self,
        task_id: str,
        *,
        next_assignee_id: str | None = None,
        custom_fields: dict[str, Any] | None = None,
    ) -> TaskView:
        return self.change_status(
            StatusChange(
                task_id=task_id,
                direction=Direction.FORWARD,
                next_assignee_id=next_assignee_id,
                custom_fields=custom_fields,
            ),
        )

    def reverse(
        self,
        task_id: str,
        *,
        next_assignee_id: str | None = None,
        custom_fields: dict[str, Any] | None = None,
    ) -> TaskView:
        return self.change_status(
            StatusChange(
                task_id=task_id,
                direction=Direction.BACKWARD,
                next_assignee_id=next_assignee_id,
                custom_fields=custom_fields,
            ),
        )

    def change_status(self, command: StatusChange) -> TaskView:
        """Move a task one status forward or backward.

        Forward moves validate the merged fields against the next status and
        store their normalized form. Backward moves skip validation and keep
        the stored fields exactly as they were; fields passed along with a
        backward move are ignored.
        """

        task = self._load(command.task_id)
        if task.lifecycle_state == LifecycleState.CLOSED:
            raise self._rejected(closed_immutable(task.task_id))

        handler = self.registry.get(task.task_type)
        result = transition(
            task.status,
            handler.max_status(),
            command.direction,
            task.lifecycle_state,
        )
        if not result.accepted or result.next_status is None:
            raise self._rejected(_transition_error(result.reason, result.message))
        next_status = result.next_status

        existing = dict(task.custom_fields)
        provided = dict(command.custom_fields or {})
        merged = {**existing, **provided}

        if command.direction == Direction.FORWARD:
            self._require_valid(handler, next_status, merged, kind="validation-failed")
            fields = handler.transform_fields(next_status, merged)
        else:
            if provided:
                logger.warning(
                    "Ignoring fields passed with backward move of task %s: %s",
                    task.task_id,
                    ", ".join(sorted(provided)),
                )
            fields = existing

        previous_assignee_id = task.assignee_id
        if command.next_assignee_id and command.next_assignee_id != task.assignee_id:
            assignee = self._resolve_user(command.next_assignee_id)
            task.assignee_id = assignee.user_id
            task.assignee = assignee

        previous_status = task.status
        task.status = next_status
        task.lifecycle_state = LifecycleState.OPEN
        task.custom_fields = fields

        event_type = (
            TaskEventType.ADVANCED
            if command.direction == Direction.FORWARD
            else TaskEventType.REVERSED
        )
        details: dict[str, Any] = {}
        if task.assignee_id != previous_assignee_id:
            details["assignee_from"] = previous_assignee_id
            details["assignee_to"] = task.assignee_id
        if command.direction == Direction.FORWARD and provided:
            details["fields"] = sorted(provided)

        stored = self.repository.save_task(
            task,
            event=TaskEventWrite(
                event_type=event_type,
                status_from=previous_status,
                status_to=next_status,
                details=details,
            ),
        )
        logger.info(
            "Task %s %s: %d -> %d",
            stored.task_id,
            event_type.value,
            previous_status,
            next_status,
        )
        return self._to_view(stored)

    def close(self, task_id: str) -> TaskView:
        """Close a task at its final status; closed tasks are immutable."""

        task = self._load(task_id)
        handler = self.registry.get(task.task_type)

        result = can_close(task.status, handler.max_status(), task.lifecycle_state)
        if not result.accepted:
            raise self._rejected(_transition_error(result.reason, result.message))

        self._require_valid(
            handler,
            task.status,
            task.custom_fields,
            kind="final-requirements-unmet",
        )

        task.lifecycle_state = LifecycleState.CLOSED
        stored = self.repository.save_task(
            task,
            event=TaskEventWrite(
                event_type=TaskEventType.CLOSED,
                status_from=task.status,
                status_to=task.status,
            ),
        )
        logger.info("Task closed: %s", stored.task_id)
        return self._to_view(stored)

    def update(self, payload: TaskUpdate) -> TaskView:
        """Edit title, description or custom fields without moving status."""

        task = self._load(payload.task_id)
        if task.lifecycle_state == LifecycleState.CLOSED:
            raise self._rejected(closed_immutable(task.task_id))

        changed: list[str] = []
        if payload.title is not None:
            title = payload.title.strip()
            if not title:
                raise self._rejected(
                    ValidationFailedError(
                        "validation-failed",
                        ["title must be a non-empty string"],
                    ),
                )
            if title != task.title:
                task.title = title
                changed.append("title")

        if payload.description is not None and payload.description != task.description:
            task.description = payload.description
            changed.append("description")

        if payload.custom_fields is not None:
            handler = self.registry.get(task.task_type)
            merged = {**task.custom_fields, **payload.custom_fields}
            self._require_valid(handler, task.status, merged, kind="validation-failed")
            fields = handler.transform_fields(task.status, merged)
            if fields != task.custom_fields:
                task.custom_fields = fields
                changed.append("custom_fields")

        if not changed:
            return self._to_view(task)

        details: dict[str, Any] = {"changed": changed}
        if "custom_fields" in changed:
            details["fields"] = sorted(payload.custom_fields)
        stored = self.repository.save_task(
            task,
            event=TaskEventWrite(
                event_type=TaskEventType.UPDATED,
                status_from=task.status,
                status_to=task.status,
                details=details,
            ),
        )
        logger.info("Task updated: %s (%s)", stored.task_id, ", ".join(changed))
        return self._to_view(stored)

    def _load(self, task_id: str) -> TaskRecord:
        task = self.repository.get_task(task_id)
        if task is None:
            raise self._rejected(task_not_found(task_id))
        return task

    def _resolve_user(self, user_id: str) -> UserView:
        user = self.repository.get_user(user_id)
        if user is None:
            raise self._rejected(assignee_not_found(user_id))
        return user

    def _require_valid(
        self,
        handler: TaskTypeHandler,
        status: int,
        fields: dict[str, Any],
        *,
        kind: str,
    ) -> None:
        check = handler.validate_requirements(status, fields)
        if not check.valid:
            raise self._rejected(ValidationFailedError(kind, list(check.errors)))

    def _to_view(self, record: TaskRecord) -> TaskView:
        handler = self.registry.get(record.task_type)
        max_status = handler.max_status()
        assignee = record.assignee
        if assignee is None:
            assignee = self._resolve_user(record.assignee_id)
        return TaskView(
            task_id=record.task_id,
            title=record.title,
            description=record.description,
            task_type=record.task_type,
            status=record.status,
            max_status=max_status,
            lifecycle_state=record.lifecycle_state,
            display_state=display_state(record.status, record.lifecycle_state, max_status),
            assignee=assignee,
            custom_fields=dict(record.custom_fields),
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    @staticmethod
    def _rejected(error: WorkflowError) -> WorkflowError:
        logger.warning("Workflow operation rejected: %s", error)
        return error


def _transition_error(reason: RejectReason | None, message: str) -> WorkflowError:
    if reason in {RejectReason.CLOSED_IMMUTABLE, RejectReason.ALREADY_CLOSED}:
        return ImmutableStateError(reason.value, [message])
    kind = reason.value if reason is not None else "invalid-transition"
    return InvalidTransitionError(kind, [message or "Cannot change task status"])
