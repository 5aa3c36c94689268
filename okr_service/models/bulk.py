"""Bulk operation model definitions."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from okr_service.models.objective import ObjectiveCreate, ObjectiveUpdate


MAX_BULK_SIZE = 50


class BulkOperationType(str, Enum):
    """Operations that can be applied to a selection of objectives."""

    ARCHIVE = "archive"
    ACTIVATE = "activate"
    PAUSE = "pause"
    DELETE = "delete"
    UPDATE_PRIORITY = "update_priority"


class BulkOperationRequest(BaseModel):
    """Bulk operation request model."""

    operation: BulkOperationType
    objective_ids: list[str]
    data: Optional[ObjectiveUpdate] = None


class BulkCreateRequest(BaseModel):
    """Bulk creation request model."""

    objectives: list[ObjectiveCreate]


class BulkPlan(BaseModel):
    """Concrete update payload to apply to every targeted objective."""

    operation: BulkOperationType
    objective_ids: list[str]
    updates: dict


class BulkOperationResult(BaseModel):
    """Outcome of an applied bulk operation."""

    operation: BulkOperationType
    requested_count: int
    modified_count: int
    updates: dict
