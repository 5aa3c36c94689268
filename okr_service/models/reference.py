"""Reference (dimension) models used to resolve objective foreign keys."""
from datetime import date
from typing import Optional

from pydantic import BaseModel

from okr_service.models.objective import ExistingObjective


class DateDimension(BaseModel):
    """A row of the date dimension."""

    id: int
    date: date


class PlatformRef(BaseModel):
    """A platform and the category it belongs to."""

    id: str
    name: str = ""
    category: str


class MetricTypeRef(BaseModel):
    """A metric type and the category it belongs to."""

    id: str
    name: str = ""
    category: str


class ValidationContext(BaseModel):
    """
    Optional lookups that enable the context-dependent validation steps.

    A step only runs when the data it needs is present; ``None`` means
    "not supplied", while an empty list means "supplied, nothing known".
    """

    existing_objectives: Optional[list[ExistingObjective]] = None
    dates: Optional[list[DateDimension]] = None
    platforms: Optional[list[PlatformRef]] = None
    metric_types: Optional[list[MetricTypeRef]] = None
    duplicate_threshold: float = 0.8
