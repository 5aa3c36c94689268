"""Objective status lifecycle."""
from typing import Union

from pydantic import BaseModel

from okr_service.models.errors import IllegalTransitionError
from okr_service.models.objective import ObjectiveStatus


ACTIVE = ObjectiveStatus.ACTIVE
PAUSED = ObjectiveStatus.PAUSED
COMPLETED = ObjectiveStatus.COMPLETED
ARCHIVED = ObjectiveStatus.ARCHIVED

# archived is terminal; reactivation would be a separate operation
ALLOWED_TRANSITIONS: dict[ObjectiveStatus, frozenset[ObjectiveStatus]] = {
    ACTIVE: frozenset({PAUSED, COMPLETED, ARCHIVED}),
    PAUSED: frozenset({ACTIVE, COMPLETED, ARCHIVED}),
    COMPLETED: frozenset({ARCHIVED}),
    ARCHIVED: frozenset(),
}


class TransitionOk(BaseModel):
    """An accepted status change."""

    from_status: ObjectiveStatus
    to_status: ObjectiveStatus


def transition(
    current: Union[ObjectiveStatus, str],
    requested: Union[ObjectiveStatus, str],
) -> Union[TransitionOk, IllegalTransitionError]:
    """
    Check a status change against the lifecycle graph.

    Only the pairs in ALLOWED_TRANSITIONS are accepted; identity pairs and
    unknown statuses are rejected.

    Examples:
        >>> transition("active", "archived").to_status.value
        'archived'
        >>> transition("completed", "active").message
        'Illegal status transition: completed -> active'
    """
    try:
        source = ObjectiveStatus(current)
        target = ObjectiveStatus(requested)
    except ValueError:
        return IllegalTransitionError(from_status=str(current), to_status=str(requested))

    if target not in ALLOWED_TRANSITIONS[source]:
        return IllegalTransitionError(from_status=source.value, to_status=target.value)

    return TransitionOk(from_status=source, to_status=target)


def is_status_change(current: Union[ObjectiveStatus, str], requested) -> bool:
    """True if an update actually changes the stored status."""
    if requested is None:
        return False
    return ObjectiveStatus(requested).value != ObjectiveStatus(current).value
