"""Task type registry."""

from __future__ import annotations

from task_workflow.workflow.errors import DuplicateTypeError, UnregisteredTypeError
from task_workflow.workflow.handlers import DevelopmentHandler, ProcurementHandler, TaskTypeHandler
from task_workflow.workflow.models import TaskType


class TaskTypeRegistry:
    """Maps task types to their handlers.

    Built once at startup and passed to the workflow service. New task types
    are added by registering another handler.
    """

    def __init__(self) -> None:
        self._handlers: dict[TaskType, TaskTypeHandler] = {}

    def register(self, handler: TaskTypeHandler) -> None:
        if handler.task_type in self._handlers:
            raise DuplicateTypeError(
                "duplicate-type",
                [f"Task type {handler.task_type.value} is already registered"],
            )
        self._handlers[handler.task_type] = handler

    def get(self, task_type: TaskType) -> TaskTypeHandler:
        handler = self._handlers.get(task_type)
        if handler is None:
            raise UnregisteredTypeError(
                "unregistered-type",
                [f"No handler registered for task type: {_type_name(task_type)}"],
            )
        return handler

    def is_registered(self, task_type: TaskType) -> bool:
        return task_type in self._handlers

    def list_types(self) -> frozenset[TaskType]:
        return frozenset(self._handlers)


def build_default_registry() -> TaskTypeRegistry:
    """Registry populated with every built-in task type."""

    registry = TaskTypeRegistry()
    registry.register(ProcurementHandler())
    registry.register(DevelopmentHandler())
    return registry


def _type_name(task_type: TaskType | str) -> str:
    return task_type.value if isinstance(task_type, TaskType) else str(task_type)
