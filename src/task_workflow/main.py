"""CLI entrypoint for task-workflow."""

from collections.abc import Callable
from pathlib import Path

import rich_click as click

from task_workflow import __version__
from task_workflow.config import Settings
from task_workflow.workflow.controllers import (
    SeedCommand,
    TaskCliController,
    TaskCloseCommand,
    TaskCreateCommand,
    TaskListCommand,
    TaskMoveCommand,
    TaskShowCommand,
    TaskUpdateCommand,
    UserAddCommand,
    UserListCommand,
)
from task_workflow.workflow.errors import WorkflowError
from task_workflow.workflow.models import Direction, TaskType

click.rich_click.USE_MARKDOWN = True
CONTROLLER = TaskCliController()

_DB_PATH_HELP = "SQLite DB path."
_FIELD_HELP = "Custom field as key=value, stored as a string. Can be repeated."
_JSON_FIELD_HELP = 'Custom field as key=JSON, e.g. budget=1200 or tags=["a"]. Can be repeated.'
_IGNORED_ON_REVERSE_HELP = "Accepted like advance, but backward moves never change stored fields."


@click.group()
@click.version_option(version=__version__, prog_name="task-workflow")
def task_workflow() -> None:
    """Task workflow CLI."""

    try:
        settings = Settings.from_env()
        settings.validate()
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    settings.configure_logging()


@task_workflow.command("types")
def list_types() -> None:
    """List registered task types and their statuses."""

    _run(CONTROLLER.list_types)


@task_workflow.command("seed")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help=_DB_PATH_HELP)
def seed(db_path: Path | None) -> None:
    """Load demo users and tasks into an empty database."""

    _run(lambda: CONTROLLER.seed(SeedCommand(db_path=db_path)))


@task_workflow.group()
def users() -> None:
    """User directory commands."""


@users.command("add")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help=_DB_PATH_HELP)
@click.option("--name", required=True, help="Display name.")
@click.option("--email", required=True, help="Unique contact email.")
def users_add(db_path: Path | None, name: str, email: str) -> None:
    """Add a user who can be assigned tasks."""

    _run(lambda: CONTROLLER.add_user(UserAddCommand(db_path=db_path, name=name, email=email)))


@users.command("list")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help=_DB_PATH_HELP)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
)
def users_list(db_path: Path | None, output_format: str) -> None:
    """List users."""

    _run(
        lambda: CONTROLLER.list_users(
            UserListCommand(db_path=db_path, output_format=output_format.lower()),
        ),
    )


@task_workflow.group()
def tasks() -> None:
    """Task workflow commands."""


@tasks.command("create")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help=_DB_PATH_HELP)
@click.option(
    "--type",
    "task_type",
    required=True,
    type=click.Choice([item.value for item in TaskType], case_sensitive=False),
    help="Task type.",
)
@click.option("--title", required=True, help="Task title.")
@click.option("--assignee", "assignee_id", required=True, help="Assignee user id.")
@click.option("--description", default=None, help="Optional description.")
@click.option("--field", "fields", multiple=True, help=_FIELD_HELP)
@click.option("--json-field", "json_fields", multiple=True, help=_JSON_FIELD_HELP)
def tasks_create(  # noqa: PLR0913
    db_path: Path | None,
    task_type: str,
    title: str,
    assignee_id: str,
    description: str | None,
    fields: tuple[str, ...],
    json_fields: tuple[str, ...],
) -> None:
    """Create a task at status 1."""

    _run(
        lambda: CONTROLLER.create_task(
            TaskCreateCommand(
                db_path=db_path,
                task_type=task_type,
                title=title,
                assignee_id=assignee_id,
                description=description,
                fields=fields,
                json_fields=json_fields,
            ),
        ),
    )


@tasks.command("list")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help=_DB_PATH_HELP)
@click.option("--assignee", "assignee_id", default=None, help="Only tasks of this user.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
)
def tasks_list(db_path: Path | None, assignee_id: str | None, output_format: str) -> None:
    """List tasks, newest first."""

    _run(
        lambda: CONTROLLER.list_tasks(
            TaskListCommand(
                db_path=db_path,
                assignee_id=assignee_id,
                output_format=output_format.lower(),
            ),
        ),
    )


@tasks.command("show")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help=_DB_PATH_HELP)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
)
@click.argument("task_id")
def tasks_show(db_path: Path | None, output_format: str, task_id: str) -> None:
    """Show one task with its event history."""

    _run(
        lambda: CONTROLLER.show_task(
            TaskShowCommand(db_path=db_path, task_id=task_id, output_format=output_format.lower()),
        ),
    )


@tasks.command("advance")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help=_DB_PATH_HELP)
@click.option("--assignee", "assignee_id", default=None, help="Hand the task to this user.")
@click.option("--field", "fields", multiple=True, help=_FIELD_HELP)
@click.option("--json-field", "json_fields", multiple=True, help=_JSON_FIELD_HELP)
@click.argument("task_id")
def tasks_advance(
    db_path: Path | None,
    assignee_id: str | None,
    fields: tuple[str, ...],
    json_fields: tuple[str, ...],
    task_id: str,
) -> None:
    """Move a task to its next status, supplying the data that status requires."""

    _move(db_path, task_id, Direction.FORWARD, assignee_id, fields, json_fields)


@tasks.command("reverse")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help=_DB_PATH_HELP)
@click.option("--assignee", "assignee_id", default=None, help="Hand the task to this user.")
@click.option("--field", "fields", multiple=True, help=_IGNORED_ON_REVERSE_HELP)
@click.option("--json-field", "json_fields", multiple=True, help=_IGNORED_ON_REVERSE_HELP)
@click.argument("task_id")
def tasks_reverse(
    db_path: Path | None,
    assignee_id: str | None,
    fields: tuple[str, ...],
    json_fields: tuple[str, ...],
    task_id: str,
) -> None:
    """Move a task back to its previous status."""

    _move(db_path, task_id, Direction.BACKWARD, assignee_id, fields, json_fields)


@tasks.command("close")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help=_DB_PATH_HELP)
@click.argument("task_id")
def tasks_close(db_path: Path | None, task_id: str) -> None:
    """Close a task at its final status. Closed tasks are immutable."""

    _run(lambda: CONTROLLER.close_task(TaskCloseCommand(db_path=db_path, task_id=task_id)))


@tasks.command("update")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help=_DB_PATH_HELP)
@click.option("--title", default=None, help="New title.")
@click.option("--description", default=None, help="New description.")
@click.option("--field", "fields", multiple=True, help=_FIELD_HELP)
@click.option("--json-field", "json_fields", multiple=True, help=_JSON_FIELD_HELP)
@click.argument("task_id")
def tasks_update(  # noqa: PLR0913
    db_path: Path | None,
    title: str | None,
    description: str | None,
    fields: tuple[str, ...],
    json_fields: tuple[str, ...],
    task_id: str,
) -> None:
    """Edit title, description or custom fields of an open task."""

    _run(
        lambda: CONTROLLER.update_task(
            TaskUpdateCommand(
                db_path=db_path,
                task_id=task_id,
                title=title,
                description=description,
                fields=fields,
                json_fields=json_fields,
            ),
        ),
    )


def _move(  # noqa: PLR0913
    db_path: Path | None,
    task_id: str,
    direction: Direction,
    assignee_id: str | None,
    fields: tuple[str, ...],
    json_fields: tuple[str, ...],
) -> None:
    _run(
        lambda: CONTROLLER.move_task(
            TaskMoveCommand(
                db_path=db_path,
                task_id=task_id,
                direction=direction,
                assignee_id=assignee_id,
                fields=fields,
                json_fields=json_fields,
            ),
        ),
    )


def _run(produce: Callable[[], list[str]]) -> None:
    try:
        lines = produce()
    except (WorkflowError, ValueError) as error:
        raise click.ClickException(str(error)) from error
    _emit_lines(lines)


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    task_workflow()
