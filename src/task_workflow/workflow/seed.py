"""Demo data for a fresh workflow database."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from task_workflow.workflow.models import TaskCreate, TaskType, TaskView, UserCreate, UserView
from task_workflow.workflow.services import TaskWorkflowService

logger = logging.getLogger(__name__)

DEMO_USERS: tuple[tuple[str, str], ...] = (
    ("Alice Johnson", "alice@example.com"),
    ("Bob Smith", "bob@example.com"),
    ("Charlie Brown", "charlie@example.com"),
)


@dataclass(frozen=True, slots=True)
class DemoTask:
    """A demo task and the data supplied at each status after the first."""

    title: str
    description: str
    task_type: TaskType
    assignee_index: int
    steps: tuple[dict[str, Any], ...] = ()


DEMO_TASKS: tuple[DemoTask, ...] = (
    DemoTask(
        title="Purchase Office Supplies",
        description="Order new office supplies for Q1",
        task_type=TaskType.PROCUREMENT,
        assignee_index=0,
        steps=(
            {"quote1": "5000 USD from Office Depot", "quote2": "4800 USD from Staples"},
        ),
    ),
    DemoTask(
        title="Buy New Laptops",
        description="Procure 10 new laptops for the development team",
        task_type=TaskType.PROCUREMENT,
        assignee_index=1,
    ),
    DemoTask(
        title="Purchase Server Equipment",
        description="Buy new server hardware for production",
        task_type=TaskType.PROCUREMENT,
        assignee_index=2,
        steps=(
            {"quote1": "Dell R760 at 14200 USD", "quote2": "HPE DL380 at 13900 USD"},
            {"receipt": "REC-2024-003 - Server purchase completed on 2024-01-15"},
        ),
    ),
    DemoTask(
        title="Implement User Authentication",
        description="Add JWT-based authentication to the API",
        task_type=TaskType.DEVELOPMENT,
        assignee_index=0,
        steps=(
            {"specification": "Issue and verify JWT access tokens for API clients."},
            {"branch": "feature/auth"},
        ),
    ),
    DemoTask(
        title="Build Task Management UI",
        description="Create components for task management",
        task_type=TaskType.DEVELOPMENT,
        assignee_index=2,
        steps=(
            {"specification": "List, create and advance tasks from the browser."},
            {"branch": "feature/task-ui"},
            {"version": "1.0.0"},
        ),
    ),
    DemoTask(
        title="Fix Payment Gateway Integration",
        description="Resolve issues with payment processing",
        task_type=TaskType.DEVELOPMENT,
        assignee_index=1,
        steps=(
            {
                "specification": (
                    "Fix payment gateway timeout issues. Implement retry logic with "
                    "exponential backoff. Update error handling to provide better user feedback."
                ),
            },
        ),
    ),
    DemoTask(
        title="New Feature Development",
        description="Start work on new dashboard feature",
        task_type=TaskType.DEVELOPMENT,
        assignee_index=0,
    ),
)


@dataclass(slots=True)
class SeedResult:
    users: list[UserView] = field(default_factory=list)
    tasks: list[TaskView] = field(default_factory=list)


def seed_demo_data(service: TaskWorkflowService) -> SeedResult:
    """Create the demo users and walk the demo tasks to their statuses.

    Tasks go through ``create`` and ``advance`` so every stored field set has
    passed the same validation as user input. The database must hold no users.
    """

    if service.list_users():
        raise ValueError("Database already has users; seed needs an empty database.")

    result = SeedResult()
    for name, email in DEMO_USERS:
        result.users.append(service.add_user(UserCreate(display_name=name, email=email)))

    for demo in DEMO_TASKS:
        task = service.create(
            TaskCreate(
                title=demo.title,
                task_type=demo.task_type,
                assignee_id=result.users[demo.assignee_index].user_id,
                description=demo.description,
            ),
        )
        for fields in demo.steps:
            task = service.advance(task.task_id, custom_fields=fields)
        result.tasks.append(task)

    logger.info("Seeded %d users and %d tasks", len(result.users), len(result.tasks))
    return result
