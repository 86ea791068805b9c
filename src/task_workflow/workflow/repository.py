"""Persistent repository for users, tasks and task events."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from uuid import uuid4

from sqlalchemy import update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from task_workflow.storage.sqlite import as_utc, migrate_to_head, utc_now, workflow_engine
from task_workflow.storage.sqlmodel_models import AppUser, TaskEventRow, TaskRow
from task_workflow.workflow.errors import ConcurrentUpdateError, DuplicateUserError
from task_workflow.workflow.models import (
    LifecycleState,
    TaskEventType,
    TaskEventView,
    TaskEventWrite,
    TaskRecord,
    TaskType,
    UserCreate,
    UserView,
)


class WorkflowRepository:
    """Task persistence facade backed by SQLModel + SQLite.

    Every public method runs in its own session and commits atomically.
    """

    def __init__(self, db_path: Path, *, sqlite_busy_timeout_ms: int = 5_000) -> None:
        self.db_path = db_path
        self.engine = workflow_engine(db_path, busy_timeout_ms=sqlite_busy_timeout_ms)

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        migrate_to_head(self.db_path)

    def create_user(self, payload: UserCreate) -> UserView:
        """Add a user; email is the unique contact identifier."""

        email = payload.email.strip().lower()
        with Session(self.engine) as session:
            existing = session.exec(select(AppUser).where(AppUser.email == email)).one_or_none()
            if existing is not None:
                raise DuplicateUserError("duplicate-user", [f"Email already registered: {email}"])
            row = AppUser(
                user_id=payload.user_id or str(uuid4()),
                display_name=payload.display_name.strip(),
                email=email,
                created_at=utc_now(),
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as error:
                session.rollback()
                raise DuplicateUserError(
                    "duplicate-user",
                    [f"User already exists: {row.user_id} / {email}"],
                ) from error
            session.refresh(row)
            return _to_user_view(row)

    def get_user(self, user_id: str) -> UserView | None:
        with Session(self.engine) as session:
            row = session.get(AppUser, user_id)
            return _to_user_view(row) if row is not None else None

    def list_users(self) -> list[UserView]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(AppUser).order_by(col(AppUser.display_name).asc()),
            ).all()
        return [_to_user_view(row) for row in rows]

    def create_task(self, record: TaskRecord, *, event: TaskEventWrite) -> TaskRecord:
        """Insert a new task together with its creation event."""

        with Session(self.engine) as session:
            row = TaskRow(
                task_id=record.task_id,
                title=record.title,
                description=record.description,
                task_type=record.task_type.value,
                status=record.status,
                lifecycle_state=record.lifecycle_state.value,
                assignee_id=record.assignee_id,
                custom_fields_json=_dump_fields(record.custom_fields),
                version=1,
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
            session.add(row)
            # task_events references tasks; the rows share no relationship().
            session.flush()
            _add_event(session=session, task_id=record.task_id, event=event)
            session.commit()
        return self._require_task(record.task_id)

    def get_task(self, task_id: str) -> TaskRecord | None:
        """Load one task with its assignee."""

        with Session(self.engine) as session:
            result = session.exec(
                select(TaskRow, AppUser)
                .join(AppUser, col(AppUser.user_id) == col(TaskRow.assignee_id))
                .where(TaskRow.task_id == task_id),
            ).one_or_none()
        if result is None:
            return None
        task, user = result
        return _to_task_record(task, user)

    def list_tasks(self, *, assignee_id: str | None = None) -> list[TaskRecord]:
        """List tasks newest first, optionally for one assignee."""

        with Session(self.engine) as session:
            statement = (
                select(TaskRow, AppUser)
                .join(AppUser, col(AppUser.user_id) == col(TaskRow.assignee_id))
                .order_by(col(TaskRow.created_at).desc())
            )
            if assignee_id is not None:
                statement = statement.where(TaskRow.assignee_id == assignee_id)
            rows = session.exec(statement).all()
        return [_to_task_record(task, user) for task, user in rows]

    def save_task(self, record: TaskRecord, *, event: TaskEventWrite) -> TaskRecord:
        """Write back a loaded task if nobody else saved it in the meantime.

        The write is conditional on ``record.version``; a mismatch raises
        ``ConcurrentUpdateError`` and leaves the stored row untouched.
        """

        with Session(self.engine) as session:
            result = session.exec(
                sa_update(TaskRow)
                .where(
                    col(TaskRow.task_id) == record.task_id,
                    col(TaskRow.version) == record.version,
                )
                .values(
                    title=record.title,
                    description=record.description,
                    status=record.status,
                    lifecycle_state=record.lifecycle_state.value,
                    assignee_id=record.assignee_id,
                    custom_fields_json=_dump_fields(record.custom_fields),
                    version=record.version + 1,
                    updated_at=utc_now(),
                ),
            )
            if result.rowcount != 1:
                session.rollback()
                raise ConcurrentUpdateError(
                    "concurrent-update",
                    [
                        "Task changed concurrently; reload and retry "
                        f"(task_id={record.task_id}, version={record.version}).",
                    ],
                )
            _add_event(session=session, task_id=record.task_id, event=event)
            session.commit()
        return self._require_task(record.task_id)

    def list_task_events(self, task_id: str) -> list[TaskEventView]:
        """Return the audit trail of one task, oldest first."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(TaskEventRow)
                .where(TaskEventRow.task_id == task_id)
                .order_by(col(TaskEventRow.created_at).asc(), col(TaskEventRow.id).asc()),
            ).all()

        events: list[TaskEventView] = []
        for row in rows:
            details: dict[str, Any] = {}
            if row.details_json:
                parsed = json.loads(row.details_json)
                if isinstance(parsed, dict):
                    details = parsed
            events.append(
                TaskEventView(
                    event_id=row.id or 0,
                    task_id=row.task_id,
                    event_type=TaskEventType(row.event_type),
                    status_from=row.status_from,
                    status_to=row.status_to,
                    created_at=as_utc(row.created_at),
                    details=details,
                ),
            )
        return events

    def _require_task(self, task_id: str) -> TaskRecord:
        record = self.get_task(task_id)
        if record is None:
            raise RuntimeError(f"Failed to reload task after write: {task_id}")
        return record


def _add_event(*, session: Session, task_id: str, event: TaskEventWrite) -> None:
    session.add(
        TaskEventRow(
            task_id=task_id,
            event_type=event.event_type.value,
            status_from=event.status_from,
            status_to=event.status_to,
            details_json=json.dumps(event.details, ensure_ascii=False, sort_keys=True)
            if event.details
            else None,
            created_at=utc_now(),
        ),
    )


def _dump_fields(fields: dict[str, Any]) -> str:
    return json.dumps(fields, ensure_ascii=False, sort_keys=True)


def _load_fields(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise RuntimeError("Stored custom fields must be a JSON object.")
    return parsed


def _to_user_view(row: AppUser) -> UserView:
    return UserView(
        user_id=row.user_id,
        display_name=row.display_name,
        email=row.email,
        created_at=as_utc(row.created_at),
    )


def _to_task_record(row: TaskRow, user: AppUser) -> TaskRecord:
    return TaskRecord(
        task_id=row.task_id,
        title=row.title,
        description=row.description,
        task_type=TaskType(row.task_type),
        status=row.status,
        lifecycle_state=LifecycleState(row.lifecycle_state),
        assignee_id=row.assignee_id,
        custom_fields=_load_fields(row.custom_fields_json),
        version=row.version,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        assignee=_to_user_view(user),
    )
