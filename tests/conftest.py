"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from task_workflow.workflow.models import UserCreate, UserView
from task_workflow.workflow.registry import build_default_registry
from task_workflow.workflow.repository import WorkflowRepository
from task_workflow.workflow.services import TaskWorkflowService


@pytest.fixture()
def repository(tmp_path: Path) -> Iterator[WorkflowRepository]:
    repo = WorkflowRepository(tmp_path / "workflow.db")
    repo.init_schema()
    try:
        yield repo
    finally:
        repo.close()


@pytest.fixture()
def service(repository: WorkflowRepository) -> TaskWorkflowService:
    return TaskWorkflowService(repository=repository, registry=build_default_registry())


@pytest.fixture()
def alice(service: TaskWorkflowService) -> UserView:
    return service.add_user(UserCreate(display_name="Alice", email="alice@example.com"))


@pytest.fixture()
def bob(service: TaskWorkflowService) -> UserView:
    return service.add_user(UserCreate(display_name="Bob", email="bob@example.com"))
