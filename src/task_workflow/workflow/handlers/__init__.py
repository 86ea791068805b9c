"""Task type handler implementations."""

from task_workflow.workflow.handlers.base import RequirementCheck, TaskTypeHandler
from task_workflow.workflow.handlers.development import DevelopmentHandler
from task_workflow.workflow.handlers.procurement import ProcurementHandler

__all__ = [
    "DevelopmentHandler",
    "ProcurementHandler",
    "RequirementCheck",
    "TaskTypeHandler",
]
