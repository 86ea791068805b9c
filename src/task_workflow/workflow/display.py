"""Display-state projection for presentation layers."""

from __future__ import annotations

from task_workflow.workflow.models import DisplayState, LifecycleState


def display_state(status: int, lifecycle_state: LifecycleState, max_status: int) -> DisplayState:
    """Map numeric status and lifecycle to a display label.

    The final open status maps to ``completed`` so callers can offer closing.
    """

    if lifecycle_state == LifecycleState.CLOSED:
        return DisplayState.CLOSED
    if status == max_status:
        return DisplayState.COMPLETED
    if status <= 1:
        return DisplayState.DRAFT
    if status == 2:  # noqa: PLR2004
        return DisplayState.IN_PROGRESS
    return DisplayState.REVIEW
