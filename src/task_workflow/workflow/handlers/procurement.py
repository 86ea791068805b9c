"""Procurement task rules."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from task_workflow.workflow.handlers.base import (
    RequirementCheck,
    canonicalize,
    is_number,
    require_non_empty_strings,
    unsupported_status,
)
from task_workflow.workflow.models import TaskType

_REQUIRED_BY_STATUS: dict[int, tuple[str, ...]] = {
    1: (),
    2: ("quote1", "quote2"),
    3: ("receipt",),
}


class ProcurementHandler:
    """Procurement workflow.

    Statuses:

    1. Created, no required data.
    2. Supplier offers received, two price quotes.
    3. Purchase completed (final), receipt.

    ``budget`` is optional at every status but must be a non-negative number
    when present.
    """

    task_type = TaskType.PROCUREMENT

    def max_status(self) -> int:
        return 3

    def status_labels(self) -> dict[int, str]:
        return {
            1: "Created",
            2: "Supplier offers received",
            3: "Purchase completed",
        }

    def validate_requirements(self, status: int, fields: Mapping[str, Any]) -> RequirementCheck:
        errors: list[str] = []

        if "budget" in fields:
            budget = fields["budget"]
            if not is_number(budget) or not budget >= 0:
                errors.append("budget must be a non-negative number")

        required = _REQUIRED_BY_STATUS.get(status)
        if required is None:
            errors.extend(unsupported_status(status, self.task_type))
            return RequirementCheck.from_errors(errors)

        errors.extend(require_non_empty_strings(fields, *required))
        return RequirementCheck.from_errors(errors)

    def transform_fields(self, status: int, fields: Mapping[str, Any]) -> dict[str, Any]:
        return canonicalize(fields, *_REQUIRED_BY_STATUS.get(status, ()))
