from __future__ import annotations

import allure
import pytest

from task_workflow.workflow.models import DisplayState, TaskType, UserCreate
from task_workflow.workflow.seed import DEMO_TASKS, DEMO_USERS, seed_demo_data
from task_workflow.workflow.services import TaskWorkflowService

pytestmark = [
    allure.epic("Operations"),
    allure.feature("Demo Data"),
]


def test_seed_walks_every_demo_task_to_its_status(service: TaskWorkflowService) -> None:
    result = seed_demo_data(service)

    assert [user.email for user in result.users] == [email for _, email in DEMO_USERS]
    assert len(result.tasks) == len(DEMO_TASKS)
    for demo, task in zip(DEMO_TASKS, result.tasks, strict=True):
        assert task.title == demo.title
        assert task.task_type == demo.task_type
        assert task.status == len(demo.steps) + 1
        assert task.assignee.user_id == result.users[demo.assignee_index].user_id
        for fields in demo.steps:
            assert fields.items() <= task.custom_fields.items()

    by_title = {task.title: task for task in result.tasks}
    assert by_title["Purchase Server Equipment"].display_state == DisplayState.COMPLETED
    assert by_title["Implement User Authentication"].display_state == DisplayState.REVIEW
    assert by_title["Build Task Management UI"].task_type == TaskType.DEVELOPMENT
    assert by_title["Build Task Management UI"].display_state == DisplayState.COMPLETED
    assert by_title["New Feature Development"].display_state == DisplayState.DRAFT

    events = service.get_task_details(by_title["Build Task Management UI"].task_id).events
    assert len(events) == 4


def test_seed_refuses_a_database_with_users(service: TaskWorkflowService) -> None:
    service.add_user(UserCreate(display_name="Existing", email="existing@example.com"))

    with pytest.raises(ValueError, match="empty database"):
        seed_demo_data(service)
    assert service.list_tasks() == []
