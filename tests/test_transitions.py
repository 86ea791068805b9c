from __future__ import annotations

import allure
import pytest

from task_workflow.workflow.display import display_state
from task_workflow.workflow.models import Direction, DisplayState, LifecycleState
from task_workflow.workflow.transitions import RejectReason, can_close, transition

pytestmark = [
    allure.epic("Workflow Core"),
    allure.feature("Status Transitions"),
]


def test_forward_moves_one_step() -> None:
    result = transition(1, 3, Direction.FORWARD, LifecycleState.OPEN)
    assert result.accepted
    assert result.next_status == 2
    assert result.reason is None
    assert result.message == ""


def test_backward_moves_one_step() -> None:
    result = transition(3, 4, Direction.BACKWARD, LifecycleState.OPEN)
    assert result.accepted
    assert result.next_status == 2


@pytest.mark.parametrize("max_status", [1, 3, 4])
def test_forward_from_final_status_is_rejected(max_status: int) -> None:
    result = transition(max_status, max_status, Direction.FORWARD, LifecycleState.OPEN)
    assert not result.accepted
    assert result.next_status is None
    assert result.reason == RejectReason.BEYOND_FINAL
    assert "beyond the final status" in result.message


@pytest.mark.parametrize("max_status", [1, 3, 4])
def test_backward_from_first_status_is_rejected(max_status: int) -> None:
    result = transition(1, max_status, Direction.BACKWARD, LifecycleState.OPEN)
    assert not result.accepted
    assert result.reason == RejectReason.BEFORE_FIRST


@pytest.mark.parametrize("direction", list(Direction))
def test_closed_task_rejects_every_move(direction: Direction) -> None:
    result = transition(2, 3, direction, LifecycleState.CLOSED)
    assert not result.accepted
    assert result.reason == RejectReason.CLOSED_IMMUTABLE


def test_can_close_only_at_final_status() -> None:
    assert can_close(3, 3, LifecycleState.OPEN).accepted
    rejected = can_close(2, 3, LifecycleState.OPEN)
    assert not rejected.accepted
    assert rejected.reason == RejectReason.NOT_FINAL_STATUS


def test_can_close_rejects_already_closed_task() -> None:
    result = can_close(3, 3, LifecycleState.CLOSED)
    assert not result.accepted
    assert result.reason == RejectReason.ALREADY_CLOSED


def test_reject_reason_values_are_stable() -> None:
    assert {reason.value for reason in RejectReason} == {
        "closed-immutable",
        "beyond-final",
        "before-first",
        "already-closed",
        "not-final-status",
    }


@pytest.mark.parametrize(
    ("status", "lifecycle", "max_status", "expected"),
    [
        (1, LifecycleState.OPEN, 3, DisplayState.DRAFT),
        (2, LifecycleState.OPEN, 3, DisplayState.IN_PROGRESS),
        (3, LifecycleState.OPEN, 3, DisplayState.COMPLETED),
        (3, LifecycleState.OPEN, 4, DisplayState.REVIEW),
        (4, LifecycleState.OPEN, 4, DisplayState.COMPLETED),
        (4, LifecycleState.CLOSED, 4, DisplayState.CLOSED),
        (1, LifecycleState.OPEN, 1, DisplayState.COMPLETED),
    ],
)
def test_display_state_projection(
    status: int,
    lifecycle: LifecycleState,
    max_status: int,
    expected: DisplayState,
) -> None:
    assert display_state(status, lifecycle, max_status) == expected
