"""Development task rules."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from task_workflow.workflow.handlers.base import (
    RequirementCheck,
    canonicalize,
    is_non_empty_string,
    is_number,
    require_non_empty_strings,
    unsupported_status,
)
from task_workflow.workflow.models import TaskType

_FINAL_STATUS = 4


class DevelopmentHandler:
    """Development workflow.

    Statuses:

    1. Created, no required data.
    2. Specification completed, specification text.
    3. Development completed, branch name.
    4. Distribution completed (final), version string or number.
    """

    task_type = TaskType.DEVELOPMENT

    def max_status(self) -> int:
        return _FINAL_STATUS

    def status_labels(self) -> dict[int, str]:
        return {
            1: "Created",
            2: "Specification completed",
            3: "Development completed",
            4: "Distribution completed",
        }

    def validate_requirements(self, status: int, fields: Mapping[str, Any]) -> RequirementCheck:
        if status == 1:
            return RequirementCheck(valid=True)
        if status == 2:  # noqa: PLR2004
            return RequirementCheck.from_errors(
                require_non_empty_strings(fields, "specification"),
            )
        if status == 3:  # noqa: PLR2004
            return RequirementCheck.from_errors(require_non_empty_strings(fields, "branch"))
        if status == _FINAL_STATUS:
            version = fields.get("version")
            if is_non_empty_string(version) or is_number(version):
                return RequirementCheck(valid=True)
            return RequirementCheck.from_errors(
                ["version is required and must be a string or number"],
            )
        return RequirementCheck.from_errors(unsupported_status(status, self.task_type))

    def transform_fields(self, status: int, fields: Mapping[str, Any]) -> dict[str, Any]:
        relevant = {
            2: ("specification",),
            3: ("branch",),
            _FINAL_STATUS: ("version",),
        }.get(status, ())
        return canonicalize(fields, *relevant)
