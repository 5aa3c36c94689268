"""Validation result model."""
from pydantic import BaseModel, SerializeAsAny

from okr_service.models.errors import ValidationIssue


class ValidationResult(BaseModel):
    """Outcome of validating one or more candidate objectives."""

    valid: bool
    # SerializeAsAny keeps the duplicate match when a DuplicateObjectiveError is dumped
    errors: list[SerializeAsAny[ValidationIssue]] = []
    warnings: list[str] = []

    @property
    def codes(self) -> list[str]:
        return [issue.code.value for issue in self.errors]
