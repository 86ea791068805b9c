from __future__ import annotations

import json
import re
from pathlib import Path

import allure
import pytest
from click.testing import CliRunner

from task_workflow.main import task_workflow
from task_workflow.workflow.controllers import parse_field_options

pytestmark = [
    allure.epic("Operations"),
    allure.feature("CLI"),
]

_TASK_ID = re.compile(r"task_id=([a-f0-9-]+)")
_USER_ID = re.compile(r"user_id=(\S+)")


@pytest.fixture()
def db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.delenv("TASK_WORKFLOW_LOG_LEVEL", raising=False)
    monkeypatch.delenv("TASK_WORKFLOW_SQLITE_BUSY_TIMEOUT_MS", raising=False)
    return tmp_path / "cli.db"


def _invoke(runner: CliRunner, *args: str) -> tuple[int, str]:
    result = runner.invoke(task_workflow, list(args))
    return result.exit_code, result.output


def _add_user(runner: CliRunner, db_path: Path, name: str, email: str) -> str:
    code, output = _invoke(
        runner,
        "users",
        "add",
        "--db-path",
        str(db_path),
        "--name",
        name,
        "--email",
        email,
    )
    assert code == 0, output
    match = _USER_ID.search(output)
    assert match is not None
    return match.group(1)


def test_types_lists_both_task_types() -> None:
    code, output = _invoke(CliRunner(), "types")
    assert code == 0, output
    assert "development (final status 4)" in output
    assert "procurement (final status 3)" in output
    assert "2. Supplier offers received" in output


def test_procurement_lifecycle_through_cli(db_path: Path) -> None:
    runner = CliRunner()
    alice = _add_user(runner, db_path, "Alice", "alice@example.com")
    bob = _add_user(runner, db_path, "Bob", "bob@example.com")

    code, output = _invoke(
        runner,
        "tasks",
        "create",
        "--db-path",
        str(db_path),
        "--type",
        "procurement",
        "--title",
        "Laptops",
        "--assignee",
        alice,
        "--json-field",
        "budget=1200",
    )
    assert code == 0, output
    assert "Task created:" in output
    assert "status=1/3" in output
    match = _TASK_ID.search(output)
    assert match is not None
    task_id = match.group(1)

    code, output = _invoke(runner, "tasks", "advance", "--db-path", str(db_path), task_id)
    assert code == 1
    assert "validation-failed" in output

    code, output = _invoke(
        runner,
        "tasks",
        "advance",
        "--db-path",
        str(db_path),
        "--assignee",
        bob,
        "--field",
        "quote1=1200",
        "--field",
        "quote2=1350",
        task_id,
    )
    assert code == 0, output
    assert "Task advanced:" in output
    assert "status=2/3" in output
    assert f"assignee={bob}" in output

    code, output = _invoke(
        runner,
        "tasks",
        "advance",
        "--db-path",
        str(db_path),
        "--field",
        "receipt=12345",
        task_id,
    )
    assert code == 0, output
    assert "state=completed" in output

    code, output = _invoke(runner, "tasks", "close", "--db-path", str(db_path), task_id)
    assert code == 0, output
    assert "lifecycle=closed" in output

    code, output = _invoke(runner, "tasks", "reverse", "--db-path", str(db_path), task_id)
    assert code == 1
    assert "closed-immutable" in output

    code, output = _invoke(
        runner,
        "tasks",
        "show",
        "--db-path",
        str(db_path),
        "--format",
        "json",
        task_id,
    )
    assert code == 0, output
    payload = json.loads(output)
    assert payload["status"] == 3
    assert payload["lifecycle_state"] == "closed"
    assert payload["display_state"] == "closed"
    assert payload["custom_fields"] == {
        "budget": 1200,
        "quote1": "1200",
        "quote2": "1350",
        "receipt": "12345",
    }
    assert [event["event_type"] for event in payload["events"]] == [
        "created",
        "advanced",
        "advanced",
        "closed",
    ]


def test_show_table_and_list_filters(db_path: Path) -> None:
    runner = CliRunner()
    alice = _add_user(runner, db_path, "Alice", "alice@example.com")

    code, output = _invoke(
        runner,
        "tasks",
        "create",
        "--db-path",
        str(db_path),
        "--type",
        "development",
        "--title",
        "Login page",
        "--assignee",
        alice,
        "--description",
        "OAuth flow",
    )
    assert code == 0, output
    match = _TASK_ID.search(output)
    assert match is not None
    task_id = match.group(1)

    code, output = _invoke(runner, "tasks", "show", "--db-path", str(db_path), task_id)
    assert code == 0, output
    assert f"Task: {task_id}" in output
    assert "Status: 1/4 (Created)" in output
    assert "Display state: draft" in output
    assert "Events: 1" in output

    code, output = _invoke(runner, "tasks", "list", "--db-path", str(db_path), "--assignee", alice)
    assert code == 0, output
    assert "Tasks: 1" in output
    assert "title=Login page" in output

    code, output = _invoke(
        runner,
        "tasks",
        "list",
        "--db-path",
        str(db_path),
        "--assignee",
        "nobody",
    )
    assert code == 1
    assert "assignee-not-found" in output


def test_update_and_users_list(db_path: Path) -> None:
    runner = CliRunner()
    alice = _add_user(runner, db_path, "Alice", "alice@example.com")

    code, output = _invoke(
        runner,
        "tasks",
        "create",
        "--db-path",
        str(db_path),
        "--type",
        "procurement",
        "--title",
        "Chairs",
        "--assignee",
        alice,
    )
    assert code == 0, output
    match = _TASK_ID.search(output)
    assert match is not None
    task_id = match.group(1)

    code, output = _invoke(
        runner,
        "tasks",
        "update",
        "--db-path",
        str(db_path),
        "--title",
        "Office chairs",
        "--json-field",
        "budget=-3",
        task_id,
    )
    assert code == 1
    assert "budget must be a non-negative number" in output

    code, output = _invoke(
        runner,
        "tasks",
        "update",
        "--db-path",
        str(db_path),
        "--title",
        "Office chairs",
        task_id,
    )
    assert code == 0, output
    assert "Task updated:" in output

    code, output = _invoke(runner, "users", "list", "--db-path", str(db_path), "--format", "json")
    assert code == 0, output
    payload = json.loads(output)
    assert payload["count"] == 1
    assert payload["users"][0]["email"] == "alice@example.com"


def test_duplicate_user_and_bad_field_option(db_path: Path) -> None:
    runner = CliRunner()
    alice = _add_user(runner, db_path, "Alice", "alice@example.com")

    code, output = _invoke(
        runner,
        "users",
        "add",
        "--db-path",
        str(db_path),
        "--name",
        "Alice Again",
        "--email",
        "ALICE@example.com",
    )
    assert code == 1
    assert "duplicate-user" in output

    code, output = _invoke(
        runner,
        "tasks",
        "create",
        "--db-path",
        str(db_path),
        "--type",
        "procurement",
        "--title",
        "Desks",
        "--assignee",
        alice,
        "--field",
        "no-equals-sign",
    )
    assert code == 1
    assert "Invalid --field value" in output


def test_invalid_environment_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASK_WORKFLOW_LOG_LEVEL", "chatty")
    code, output = _invoke(CliRunner(), "types")
    assert code == 1
    assert "TASK_WORKFLOW_LOG_LEVEL" in output


def test_field_values_stay_strings_and_json_fields_are_decoded() -> None:
    assert parse_field_options(()) is None
    assert parse_field_options(
        ("quote1=1200", "receipt=12345", "note=true", "empty="),
        ('budget=99.5', 'tags=["a", "b"]', "urgent=true"),
    ) == {
        "quote1": "1200",
        "receipt": "12345",
        "note": "true",
        "empty": "",
        "budget": 99.5,
        "tags": ["a", "b"],
        "urgent": True,
    }
    assert parse_field_options(("budget=1",), ("budget=2",)) == {"budget": 2}


def test_malformed_json_field_is_rejected(db_path: Path) -> None:
    with pytest.raises(ValueError, match="Invalid --json-field value for 'budget'"):
        parse_field_options((), ("budget=12,5",))

    runner = CliRunner()
    alice = _add_user(runner, db_path, "Alice", "alice@example.com")
    code, output = _invoke(
        runner,
        "tasks",
        "create",
        "--db-path",
        str(db_path),
        "--type",
        "procurement",
        "--title",
        "Desks",
        "--assignee",
        alice,
        "--json-field",
        "budget=lots",
    )
    assert code == 1
    assert "Invalid --json-field value" in output


def test_seed_loads_demo_data_once(db_path: Path) -> None:
    runner = CliRunner()

    code, output = _invoke(runner, "seed", "--db-path", str(db_path))
    assert code == 0, output
    assert "Seeded users: 3" in output
    assert "Seeded tasks: 7" in output
    assert "title=Purchase Server Equipment" in output

    code, output = _invoke(runner, "tasks", "list", "--db-path", str(db_path), "--format", "json")
    assert code == 0, output
    assert json.loads(output)["count"] == 7

    code, output = _invoke(runner, "seed", "--db-path", str(db_path))
    assert code == 1
    assert "seed needs an empty database" in output
