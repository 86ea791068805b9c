"""Task type handler interface and shared field checks."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from task_workflow.workflow.models import TaskType


@dataclass(slots=True)
class RequirementCheck:
    """Result of validating custom fields for one status."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> RequirementCheck:
        return cls(valid=not errors, errors=errors)


class TaskTypeHandler(Protocol):
    """Per-type rules: final status, per-status requirements, normalization."""

    task_type: TaskType

    def max_status(self) -> int:
        """Final status for this task type."""

    def status_labels(self) -> dict[int, str]:
        """Human-readable label for every status 1..max_status."""

    def validate_requirements(self, status: int, fields: Mapping[str, Any]) -> RequirementCheck:
        """Validate custom fields required when a task is at ``status``."""

    def transform_fields(self, status: int, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Return a normalized copy of ``fields`` for storage at ``status``.

        Every key is preserved. Only the fields required at ``status`` are
        normalized, so data captured at earlier statuses stays visible.
        """


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def require_non_empty_strings(fields: Mapping[str, Any], *names: str) -> list[str]:
    """Collect one error per missing or blank string field."""

    return [
        f"{name} is required and must be a non-empty string"
        for name in names
        if not is_non_empty_string(fields.get(name))
    ]


def unsupported_status(status: int, task_type: TaskType) -> list[str]:
    return [f"Unsupported status {status} for {task_type.value} task"]


def canonicalize(fields: Mapping[str, Any], *names: str) -> dict[str, Any]:
    """Copy ``fields`` with the named values trimmed to canonical strings."""

    transformed = dict(fields)
    for name in names:
        value = fields.get(name)
        if value is None or isinstance(value, list | dict):
            continue
        transformed[name] = str(value).strip()
    return transformed
