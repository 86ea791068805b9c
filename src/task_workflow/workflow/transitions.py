"""Status transition rules.

Rules:

1. A task is either open or closed. Closed tasks are immutable.
2. Status is an ascending integer: 1, 2, 3, ... up to the type's maximum.
3. Moves are sequential in both directions (no skipping).
4. Backward moves are allowed while the task is open.
5. A task may be closed only at its final status.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from task_workflow.workflow.models import Direction, LifecycleState


class RejectReason(str, Enum):
    """Machine-checkable rejection reasons."""

    CLOSED_IMMUTABLE = "closed-immutable"
    BEYOND_FINAL = "beyond-final"
    BEFORE_FIRST = "before-first"
    ALREADY_CLOSED = "already-closed"
    NOT_FINAL_STATUS = "not-final-status"


_MESSAGES = {
    RejectReason.CLOSED_IMMUTABLE: "Closed tasks are immutable",
    RejectReason.BEYOND_FINAL: "Cannot move forward beyond the final status",
    RejectReason.BEFORE_FIRST: "Cannot move backward before status 1",
    RejectReason.ALREADY_CLOSED: "Task is already closed",
    RejectReason.NOT_FINAL_STATUS: "Tasks can only be closed from their final status",
}


@dataclass(slots=True, frozen=True)
class TransitionResult:
    """Outcome of a transition or close check."""

    accepted: bool
    next_status: int | None = None
    reason: RejectReason | None = None

    @property
    def message(self) -> str:
        if self.reason is None:
            return ""
        return _MESSAGES[self.reason]


def _rejected(reason: RejectReason) -> TransitionResult:
    return TransitionResult(accepted=False, reason=reason)


def transition(
    current_status: int,
    max_status: int,
    direction: Direction,
    lifecycle_state: LifecycleState,
) -> TransitionResult:
    """Decide the next status for a one-step move, or reject it."""

    if lifecycle_state == LifecycleState.CLOSED:
        return _rejected(RejectReason.CLOSED_IMMUTABLE)

    if direction == Direction.FORWARD:
        next_status = current_status + 1
        if next_status > max_status:
            return _rejected(RejectReason.BEYOND_FINAL)
        return TransitionResult(accepted=True, next_status=next_status)

    next_status = current_status - 1
    if next_status < 1:
        return _rejected(RejectReason.BEFORE_FIRST)
    return TransitionResult(accepted=True, next_status=next_status)


def can_close(
    current_status: int,
    max_status: int,
    lifecycle_state: LifecycleState,
) -> TransitionResult:
    """Check whether a task may be closed from its current status.

    Acceptance does not cover field requirements; callers re-validate the
    final status data before closing.
    """

    if lifecycle_state == LifecycleState.CLOSED:
        return _rejected(RejectReason.ALREADY_CLOSED)
    if current_status != max_status:
        return _rejected(RejectReason.NOT_FINAL_STATUS)
    return TransitionResult(accepted=True, next_status=current_status)
