"""Rule violation values reported by the validation and lifecycle engine.

Each kind is a plain Pydantic model so it can be inspected, serialised into
an HTTP response, or collected in a list. Pure functions return these values;
the service layer wraps them in ``RuleViolationError`` when it has to abort.
"""
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from okr_service.models.objective import DuplicateMatch


class ErrorCode(str, Enum):
    """Stable machine-readable error codes."""

    INVALID_TITLE = "INVALID_TITLE"
    INVALID_TARGET_VALUE = "INVALID_TARGET_VALUE"
    INVALID_CURRENT_VALUE = "INVALID_CURRENT_VALUE"
    INVALID_TARGET_DATE = "INVALID_TARGET_DATE"
    INVALID_GRANULARITY = "INVALID_GRANULARITY"
    INVALID_REFERENCE = "INVALID_REFERENCE"
    INVALID_PRIORITY = "INVALID_PRIORITY"
    DUPLICATE_OKR = "DUPLICATE_OKR"
    PLATFORM_INCOMPATIBLE = "PLATFORM_INCOMPATIBLE"
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
    BULK_SIZE_EXCEEDED = "BULK_SIZE_EXCEEDED"
    EMPTY_BULK_SELECTION = "EMPTY_BULK_SELECTION"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_FIELD_VALUE = "INVALID_FIELD_VALUE"
    TENANT_SCOPE_VIOLATION = "TENANT_SCOPE_VIOLATION"
    EXTERNAL_COMMIT_FAILED = "EXTERNAL_COMMIT_FAILED"


class ValidationIssue(BaseModel):
    """One failed business rule for one field."""

    field: str
    message: str
    code: ErrorCode


class DuplicateObjectiveError(ValidationIssue):
    """Title collides with an existing active objective."""

    field: str = "title"
    code: ErrorCode = ErrorCode.DUPLICATE_OKR
    match: DuplicateMatch


class IllegalTransitionError(BaseModel):
    """Requested status change is not on the lifecycle graph."""

    code: Literal[ErrorCode.ILLEGAL_TRANSITION] = ErrorCode.ILLEGAL_TRANSITION
    from_status: str = Field(serialization_alias="from")
    to_status: str = Field(serialization_alias="to")

    @property
    def message(self) -> str:
        return f"Illegal status transition: {self.from_status} -> {self.to_status}"


class BulkSizeExceededError(BaseModel):
    """Bulk selection is larger than the allowed cap."""

    code: Literal[ErrorCode.BULK_SIZE_EXCEEDED] = ErrorCode.BULK_SIZE_EXCEEDED
    requested: int
    max: int

    @property
    def message(self) -> str:
        return (
            f"Maximum {self.max} items allowed per bulk operation. "
            f"Received {self.requested}."
        )


class EmptyBulkSelectionError(BaseModel):
    """Bulk operation requested with no targets."""

    code: Literal[ErrorCode.EMPTY_BULK_SELECTION] = ErrorCode.EMPTY_BULK_SELECTION

    @property
    def message(self) -> str:
        return "No objectives selected for bulk operation"


class MissingRequiredFieldError(BaseModel):
    """A field the operation depends on was not supplied."""

    code: Literal[ErrorCode.MISSING_REQUIRED_FIELD] = ErrorCode.MISSING_REQUIRED_FIELD
    field: str

    @property
    def message(self) -> str:
        return f"{self.field} is required for this operation"


class InvalidFieldValueError(BaseModel):
    """A supplied field value is outside its allowed domain."""

    code: Literal[ErrorCode.INVALID_FIELD_VALUE] = ErrorCode.INVALID_FIELD_VALUE
    field: str
    value: Any = None

    @property
    def message(self) -> str:
        return f"Invalid value for {self.field}: {self.value!r}"


class TenantScopeViolationError(BaseModel):
    """Caller tenant does not own the resource."""

    code: Literal[ErrorCode.TENANT_SCOPE_VIOLATION] = ErrorCode.TENANT_SCOPE_VIOLATION
    caller_tenant_id: str
    resource_tenant_id: str

    @property
    def message(self) -> str:
        return "Access denied: resource belongs to a different tenant"


class ExternalCommitFailure(BaseModel):
    """Opaque wrapper around whatever the store adapter reported."""

    code: Literal[ErrorCode.EXTERNAL_COMMIT_FAILED] = ErrorCode.EXTERNAL_COMMIT_FAILED
    cause: str
    cause_type: Optional[str] = None

    @property
    def message(self) -> str:
        return f"External store rejected the change: {self.cause}"


class RuleViolationError(Exception):
    """
    Raised by the service layer when a mutation is rejected.

    Carries the rejection values unchanged so callers can render them.
    """

    def __init__(self, errors: list[BaseModel]):
        self.errors = errors
        messages = "; ".join(getattr(e, "message", str(e)) for e in errors)
        super().__init__(messages or "Rule violation")

    @property
    def codes(self) -> list[str]:
        return [ErrorCode(e.code).value for e in self.errors]

    def to_detail(self) -> list[dict]:
        """Serialise the carried errors for an API response."""
        detail = []
        for error in self.errors:
            item = error.model_dump(mode="json", by_alias=True)
            item.setdefault("message", getattr(error, "message", ""))
            detail.append(item)
        return detail


class ExternalCommitError(Exception):
    """Raised after a failed commit has been rolled back."""

    def __init__(self, failure: ExternalCommitFailure):
        self.failure = failure
        super().__init__(failure.message)


def check_tenant_scope(
    caller_tenant_id: str,
    resource_tenant_id: str,
) -> Optional[TenantScopeViolationError]:
    """
    Check that a caller may act on a tenant's resource.

    Returns:
        None when the tenants match, otherwise the violation. Missing tenant
        ids on either side are always a violation.
    """
    if not caller_tenant_id or not resource_tenant_id or caller_tenant_id != resource_tenant_id:
        return TenantScopeViolationError(
            caller_tenant_id=caller_tenant_id or "",
            resource_tenant_id=resource_tenant_id or "",
        )
    return None
