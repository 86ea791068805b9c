from pathlib import Path

import allure
from sqlalchemy import inspect, text

from task_workflow.workflow.repository import WorkflowRepository

pytestmark = [
    allure.epic("Persistence"),
    allure.feature("Schema Migrations"),
]


def test_alembic_schema_is_initialized_to_head(tmp_path: Path) -> None:
    repository = WorkflowRepository(tmp_path / "migrations.db")
    repository.init_schema()

    with repository.engine.connect() as connection:
        version = connection.execute(text("SELECT version_num FROM alembic_version")).scalar_one()
    assert version == "20261018_0002"

    inspector = inspect(repository.engine)
    assert {"users", "tasks", "task_events"} <= set(inspector.get_table_names())
    task_columns = {column["name"] for column in inspector.get_columns("tasks")}
    assert {"status", "lifecycle_state", "custom_fields_json", "version"} <= task_columns
    repository.close()


def test_init_schema_is_idempotent(tmp_path: Path) -> None:
    repository = WorkflowRepository(tmp_path / "twice.db")
    repository.init_schema()
    repository.init_schema()
    assert repository.list_users() == []
    repository.close()
