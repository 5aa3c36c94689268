"""Bulk operation planning - size limits and operation to mutation mapping."""
from typing import Iterable, Optional, Union

from okr_service.models.bulk import MAX_BULK_SIZE, BulkOperationType, BulkPlan
from okr_service.models.errors import (
    BulkSizeExceededError,
    EmptyBulkSelectionError,
    InvalidFieldValueError,
    MissingRequiredFieldError,
)
from okr_service.models.objective import ObjectiveStatus
from okr_service.services.objective_validator import is_valid_priority


BulkRejection = Union[
    EmptyBulkSelectionError,
    BulkSizeExceededError,
    MissingRequiredFieldError,
    InvalidFieldValueError,
]

# Delete is a soft archive; objectives are never physically removed.
STATUS_FOR_OPERATION: dict[BulkOperationType, Optional[ObjectiveStatus]] = {
    BulkOperationType.ARCHIVE: ObjectiveStatus.ARCHIVED,
    BulkOperationType.ACTIVATE: ObjectiveStatus.ACTIVE,
    BulkOperationType.PAUSE: ObjectiveStatus.PAUSED,
    BulkOperationType.DELETE: ObjectiveStatus.ARCHIVED,
    BulkOperationType.UPDATE_PRIORITY: None,
}

# one value per objective; a shared title would collide across the batch
SINGLE_OBJECTIVE_FIELDS = ("title",)

_unmapped = set(BulkOperationType) - set(STATUS_FOR_OPERATION)
if _unmapped:
    raise RuntimeError(f"Bulk operations without a mutation mapping: {sorted(_unmapped)}")


def dedupe_ids(ids: Iterable[str]) -> list[str]:
    """Remove duplicate ids, keeping first-seen order."""
    return list(dict.fromkeys(ids))


def plan_bulk_operation(
    ids: Iterable[str],
    operation: BulkOperationType,
    extra_updates: Optional[dict] = None,
) -> Union[BulkPlan, BulkRejection]:
    """
    Expand a bulk request into the update applied to every target.

    Args:
        ids: Target objective ids (duplicates are dropped)
        operation: Requested bulk operation
        extra_updates: Additional field updates; a mapped status wins over
            a conflicting status in here. Field values are checked again
            per target by the service before anything is written.

    Returns:
        BulkPlan on success, otherwise the rejection value

    Examples:
        >>> plan = plan_bulk_operation(["a", "b"], BulkOperationType.DELETE)
        >>> plan.updates
        {'status': 'archived'}
    """
    target_ids = dedupe_ids(ids)

    if not target_ids:
        return EmptyBulkSelectionError()

    if len(target_ids) > MAX_BULK_SIZE:
        return BulkSizeExceededError(requested=len(target_ids), max=MAX_BULK_SIZE)

    operation = BulkOperationType(operation)
    updates = {k: v for k, v in (extra_updates or {}).items() if v is not None}

    if operation is BulkOperationType.UPDATE_PRIORITY and "priority" not in updates:
        return MissingRequiredFieldError(field="priority")

    for field in SINGLE_OBJECTIVE_FIELDS:
        if field in updates:
            return InvalidFieldValueError(field=field, value=updates[field])

    if "priority" in updates and not is_valid_priority(updates["priority"]):
        return InvalidFieldValueError(field="priority", value=updates["priority"])

    status = STATUS_FOR_OPERATION[operation]
    if status is not None:
        updates["status"] = status.value
    elif isinstance(updates.get("status"), ObjectiveStatus):
        updates["status"] = updates["status"].value

    return BulkPlan(operation=operation, objective_ids=target_ids, updates=updates)
