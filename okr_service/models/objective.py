"""Objective model definitions (OKR objectives scoped by tenant and brand)."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ObjectiveStatus(str, Enum):
    """Objective lifecycle states."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Granularity(str, Enum):
    """Measurement frequency for an objective."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Priority(int, Enum):
    """Priority levels (1 is highest)."""

    HIGH = 1
    MEDIUM = 2
    LOW = 3


PRIORITY_LABELS = {
    Priority.HIGH: "High Priority",
    Priority.MEDIUM: "Medium Priority",
    Priority.LOW: "Low Priority",
}


def priority_label(priority: int) -> str:
    """
    Human readable label for a priority level.

    Raises:
        ValueError: If priority is not 1, 2 or 3
    """
    try:
        return PRIORITY_LABELS[Priority(priority)]
    except ValueError:
        raise ValueError(f"Invalid priority level: {priority}. Must be between 1-3.")


class ObjectiveCandidate(BaseModel):
    """
    A proposed objective as seen by the business rule validator.

    Fields are deliberately loose (plain str/int/float) so that every rule
    violation can be reported together instead of failing at parse time.
    """

    tenant_id: str = ""
    brand_id: str = ""
    title: str = ""
    description: Optional[str] = None
    target_value: float = 0
    current_value: float = 0
    target_date_id: int = 0
    granularity: str = ""
    metric_type_id: str = ""
    platform_id: Optional[str] = None
    priority: Optional[int] = None
    category: Optional[str] = None
    master_template_id: Optional[str] = None


class ObjectiveBase(BaseModel):
    """Base objective fields supplied by callers."""

    brand_id: str
    title: str
    description: Optional[str] = None
    target_value: float
    current_value: float = 0
    target_date_id: int
    granularity: str
    metric_type_id: str
    platform_id: Optional[str] = None
    priority: Optional[int] = None
    category: Optional[str] = None
    master_template_id: Optional[str] = None


class ObjectiveCreate(ObjectiveBase):
    """Objective creation model."""

    pass


class ObjectiveUpdate(BaseModel):
    """Objective update model - all fields optional."""

    title: Optional[str] = None
    description: Optional[str] = None
    target_value: Optional[float] = None
    current_value: Optional[float] = None
    target_date_id: Optional[int] = None
    granularity: Optional[str] = None
    platform_id: Optional[str] = None
    priority: Optional[int] = None
    category: Optional[str] = None
    status: Optional[ObjectiveStatus] = None


class Objective(ObjectiveBase):
    """Full objective model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    tenant_id: str
    priority: int = Priority.MEDIUM.value
    status: ObjectiveStatus = ObjectiveStatus.ACTIVE
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class ExistingObjective(BaseModel):
    """Minimal view of a stored objective used for duplicate detection."""

    id: str
    title: str
    is_active: bool = True


class DuplicateMatch(BaseModel):
    """The existing objective a candidate title collides with."""

    id: str
    title: str
    similarity: int  # integer percentage


class DuplicateCheck(BaseModel):
    """Result of a duplicate title check."""

    is_duplicate: bool
    match: Optional[DuplicateMatch] = None


class ObjectiveProgress(BaseModel):
    """Progress summary for dashboards."""

    progress_percentage: float
    health: str  # green, yellow, red or gray
