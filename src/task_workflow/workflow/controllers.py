"""Controllers for workflow CLI commands."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from task_workflow.config import Settings
from task_workflow.workflow.models import (
    Direction,
    StatusChange,
    TaskCreate,
    TaskType,
    TaskUpdate,
    TaskView,
    UserCreate,
)
from task_workflow.workflow.registry import TaskTypeRegistry, build_default_registry
from task_workflow.workflow.repository import WorkflowRepository
from task_workflow.workflow.seed import seed_demo_data
from task_workflow.workflow.services import TaskWorkflowService


@dataclass(slots=True)
class UserAddCommand:
    """CLI input for adding a user."""

    db_path: Path | None
    name: str
    email: str


@dataclass(slots=True)
class UserListCommand:
    """CLI input for user listing."""

    db_path: Path | None
    output_format: str = "table"


@dataclass(slots=True)
class SeedCommand:
    """CLI input for loading demo data."""

    db_path: Path | None


@dataclass(slots=True)
class TaskCreateCommand:
    """CLI input for task creation."""

    db_path: Path | None
    task_type: str
    title: str
    assignee_id: str
    description: str | None
    fields: tuple[str, ...]
    json_fields: tuple[str, ...] = ()


@dataclass(slots=True)
class TaskListCommand:
    """CLI input for task listing."""

    db_path: Path | None
    assignee_id: str | None
    output_format: str = "table"


@dataclass(slots=True)
class TaskShowCommand:
    """CLI input for task inspection."""

    db_path: Path | None
    task_id: str
    output_format: str = "table"


@dataclass(slots=True)
class TaskMoveCommand:
    """CLI input for advance/reverse."""

    db_path: Path | None
    task_id: str
    direction: Direction
    assignee_id: str | None
    fields: tuple[str, ...]
    json_fields: tuple[str, ...] = ()


@dataclass(slots=True)
class TaskCloseCommand:
    """CLI input for closing a task."""

    db_path: Path | None
    task_id: str


@dataclass(slots=True)
class TaskUpdateCommand:
    """CLI input for metadata edits."""

    db_path: Path | None
    task_id: str
    title: str | None
    description: str | None
    fields: tuple[str, ...]
    json_fields: tuple[str, ...] = ()


class TaskCliController:
    """Runs CLI commands against the workflow service."""

    def __init__(self, registry: TaskTypeRegistry | None = None) -> None:
        self.registry = registry or build_default_registry()

    def add_user(self, command: UserAddCommand) -> list[str]:
        with self._service(command.db_path) as service:
            user = service.add_user(UserCreate(display_name=command.name, email=command.email))
        return [f"User added: user_id={user.user_id} name={user.display_name} email={user.email}"]

    def list_users(self, command: UserListCommand) -> list[str]:
        with self._service(command.db_path) as service:
            users = service.list_users()

        if command.output_format == "json":
            entries = [
                {"user_id": user.user_id, "display_name": user.display_name, "email": user.email}
                for user in users
            ]
            return [json.dumps({"users": entries, "count": len(entries)}, indent=2)]

        lines = [f"Users: {len(users)}"]
        for user in users:
            lines.append(f"  {user.user_id} name={user.display_name} email={user.email}")
        return lines

    def list_types(self) -> list[str]:
        lines: list[str] = []
        for task_type in sorted(self.registry.list_types(), key=lambda item: item.value):
            handler = self.registry.get(task_type)
            lines.append(f"{task_type.value} (final status {handler.max_status()})")
            for status, label in sorted(handler.status_labels().items()):
                lines.append(f"  {status}. {label}")
        return lines

    def seed(self, command: SeedCommand) -> list[str]:
        with self._service(command.db_path) as service:
            result = seed_demo_data(service)
        lines = [f"Seeded users: {len(result.users)}"]
        for user in result.users:
            lines.append(f"  {user.user_id} name={user.display_name} email={user.email}")
        lines.append(f"Seeded tasks: {len(result.tasks)}")
        for task in result.tasks:
            lines.append(f"  {_summary(task)} title={task.title}")
        return lines

    def create_task(self, command: TaskCreateCommand) -> list[str]:
        task_type = _parse_task_type(command.task_type)
        fields = parse_field_options(command.fields, command.json_fields)
        with self._service(command.db_path) as service:
            task = service.create(
                TaskCreate(
                    title=command.title,
                    task_type=task_type,
                    assignee_id=command.assignee_id,
                    description=command.description,
                    custom_fields=fields,
                ),
            )
        return [f"Task created: {_summary(task)}"]

    def list_tasks(self, command: TaskListCommand) -> list[str]:
        with self._service(command.db_path) as service:
            tasks = service.list_tasks(assignee_id=command.assignee_id)

        if command.output_format == "json":
            entries = [task.to_dict() for task in tasks]
            return [
                json.dumps(
                    {"tasks": entries, "count": len(entries)},
                    indent=2,
                    ensure_ascii=False,
                ),
            ]

        lines = [f"Tasks: {len(tasks)}"]
        for task in tasks:
            lines.append(f"  {_summary(task)} title={task.title}")
        return lines

    def show_task(self, command: TaskShowCommand) -> list[str]:
        with self._service(command.db_path) as service:
            details = service.get_task_details(command.task_id)
            labels = self.registry.get(details.task.task_type).status_labels()

        task = details.task
        if command.output_format == "json":
            payload = task.to_dict()
            payload["events"] = [
                {
                    "event_type": event.event_type.value,
                    "status_from": event.status_from,
                    "status_to": event.status_to,
                    "created_at": event.created_at.isoformat(),
                    "details": event.details,
                }
                for event in details.events
            ]
            return [json.dumps(payload, indent=2, ensure_ascii=False)]

        lines = [
            f"Task: {task.task_id}",
            f"Title: {task.title}",
            f"Description: {task.description or '-'}",
            f"Type: {task.task_type.value}",
            f"Status: {task.status}/{task.max_status} ({labels.get(task.status, '-')})",
            f"Lifecycle: {task.lifecycle_state.value}",
            f"Display state: {task.display_state.value}",
            f"Assignee: {task.assignee.display_name} <{task.assignee.email}>",
            f"Fields: {len(task.custom_fields)}",
        ]
        for key, value in sorted(task.custom_fields.items()):
            lines.append(f"  {key}={json.dumps(value, ensure_ascii=False)}")
        lines.append(f"Events: {len(details.events)}")
        for event in details.events:
            status_from = event.status_from if event.status_from is not None else "-"
            status_to = event.status_to if event.status_to is not None else "-"
            lines.append(
                f"  {event.created_at.isoformat()} {event.event_type.value} "
                f"{status_from} -> {status_to}",
            )
        return lines

    def move_task(self, command: TaskMoveCommand) -> list[str]:
        fields = parse_field_options(command.fields, command.json_fields)
        with self._service(command.db_path) as service:
            task = service.change_status(
                StatusChange(
                    task_id=command.task_id,
                    direction=command.direction,
                    next_assignee_id=command.assignee_id,
                    custom_fields=fields,
                ),
            )
        verb = "advanced" if command.direction == Direction.FORWARD else "reversed"
        return [f"Task {verb}: {_summary(task)}"]

    def close_task(self, command: TaskCloseCommand) -> list[str]:
        with self._service(command.db_path) as service:
            task = service.close(command.task_id)
        return [f"Task closed: {_summary(task)}"]

    def update_task(self, command: TaskUpdateCommand) -> list[str]:
        fields = parse_field_options(command.fields, command.json_fields)
        with self._service(command.db_path) as service:
            task = service.update(
                TaskUpdate(
                    task_id=command.task_id,
                    title=command.title,
                    description=command.description,
                    custom_fields=fields,
                ),
            )
        return [f"Task updated: {_summary(task)}"]

    @contextmanager
    def _service(self, db_path: Path | None) -> Iterator[TaskWorkflowService]:
        settings = Settings.from_env(db_path=db_path)
        settings.validate()
        with _repository(settings) as repository:
            yield TaskWorkflowService(repository=repository, registry=self.registry)


def parse_field_options(
    values: tuple[str, ...],
    json_values: tuple[str, ...] = (),
) -> dict[str, Any] | None:
    """Parse repeated ``--field key=value`` and ``--json-field key=value`` options.

    ``--field`` values are always kept as strings, so ``quote1=1200`` stays
    ``"1200"``. ``--json-field`` values are decoded as JSON, which is how numbers,
    booleans, arrays and objects are passed (``budget=120``, ``tags=["a","b"]``).
    A `--json-field` wins when both options name the same key.
    """

    if not values and not json_values:
        return None
    fields: dict[str, Any] = {}
    for raw in values:
        key, value = _split_field_option(raw, option="--field")
        fields[key] = value
    for raw in json_values:
        key, value = _split_field_option(raw, option="--json-field")
        try:
            fields[key] = json.loads(value)
        except json.JSONDecodeError as error:
            raise ValueError(
                f"Invalid --json-field value for {key!r}: {error.msg} (got {value!r}).",
            ) from error
    return fields


def _split_field_option(raw: str, *, option: str) -> tuple[str, str]:
    if "=" not in raw:
        raise ValueError(f"Invalid {option} value: {raw!r}. Expected format 'key=value'.")
    key, value = raw.split("=", 1)
    key = key.strip()
    if not key:
        raise ValueError(f"Invalid {option} value: {raw!r}. Field name is empty.")
    return key, value


def _parse_task_type(value: str) -> TaskType:
    try:
        return TaskType(value.strip().lower())
    except ValueError as error:
        supported = ", ".join(item.value for item in TaskType)
        raise ValueError(f"Unsupported task type: {value!r}. Expected one of: {supported}.") from error


def _summary(task: TaskView) -> str:
    return (
        f"task_id={task.task_id} type={task.task_type.value} "
        f"status={task.status}/{task.max_status} lifecycle={task.lifecycle_state.value} "
        f"state={task.display_state.value} assignee={task.assignee.user_id}"
    )


@contextmanager
def _repository(settings: Settings) -> Iterator[WorkflowRepository]:
    repository = WorkflowRepository(
        db_path=settings.db_path,
        sqlite_busy_timeout_ms=settings.sqlite_busy_timeout_ms,
    )
    repository.init_schema()
    try:
        yield repository
    finally:
        repository.close()
