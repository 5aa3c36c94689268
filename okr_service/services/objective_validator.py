"""Business rule validation for candidate objectives.

Every rule runs and every violation is collected, so a form can show all
problems at once. Nothing here performs I/O: context that needs the store
(existing objectives, date/platform/metric dimensions) is passed in through
``ValidationContext`` and the matching rule is skipped when it is absent.
"""
import math
import re
from collections import Counter
from datetime import date
from typing import Optional

from okr_service.models.bulk import MAX_BULK_SIZE
from okr_service.models.errors import DuplicateObjectiveError, ErrorCode, ValidationIssue
from okr_service.models.objective import Granularity, ObjectiveCandidate, Priority
from okr_service.models.reference import ValidationContext
from okr_service.models.validation import ValidationResult
from okr_service.services.duplicate_detector import check_duplicate


TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 255
MAX_TARGET_VALUE = 999_999_999_999_999
HIGH_TARGET_WARNING = 1_000_000
HIGH_PRIORITY_SHARE = 0.3
PLACEHOLDER_WORDS = ("test", "sample", "example", "dummy")

# platform category -> metric categories it cannot track
INCOMPATIBLE_CATEGORIES: dict[str, frozenset[str]] = {
    "social_media": frozenset({"financial_metrics"}),
    "email_marketing": frozenset({"social_engagement"}),
}

_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


def is_reference(value: Optional[str]) -> bool:
    """Return True if value is a well-formed UUID reference."""
    return bool(value) and bool(_UUID_RE.match(value))


def is_valid_priority(priority: int) -> bool:
    return priority in {p.value for p in Priority}


def is_valid_granularity(granularity: str) -> bool:
    return granularity in {g.value for g in Granularity}


def _check_shape(candidate: ObjectiveCandidate) -> list[ValidationIssue]:
    errors = []

    title_length = len(candidate.title or "")
    if title_length < TITLE_MIN_LENGTH:
        errors.append(ValidationIssue(
            field="title",
            message=f"Title must be at least {TITLE_MIN_LENGTH} characters",
            code=ErrorCode.INVALID_TITLE,
        ))
    elif title_length > TITLE_MAX_LENGTH:
        errors.append(ValidationIssue(
            field="title",
            message=f"Title cannot exceed {TITLE_MAX_LENGTH} characters",
            code=ErrorCode.INVALID_TITLE,
        ))

    target = candidate.target_value
    if math.isnan(target) or target <= 0:
        errors.append(ValidationIssue(
            field="target_value",
            message="Target value must be positive",
            code=ErrorCode.INVALID_TARGET_VALUE,
        ))
    elif target > MAX_TARGET_VALUE:
        errors.append(ValidationIssue(
            field="target_value",
            message="Target value exceeds maximum allowed",
            code=ErrorCode.INVALID_TARGET_VALUE,
        ))

    if math.isnan(candidate.current_value) or candidate.current_value < 0:
        errors.append(ValidationIssue(
            field="current_value",
            message="Current value cannot be negative",
            code=ErrorCode.INVALID_CURRENT_VALUE,
        ))

    if candidate.target_date_id <= 0:
        errors.append(ValidationIssue(
            field="target_date_id",
            message="Target date ID must be a positive integer",
            code=ErrorCode.INVALID_TARGET_DATE,
        ))

    if not is_valid_granularity(candidate.granularity):
        errors.append(ValidationIssue(
            field="granularity",
            message="Granularity must be daily, weekly, or monthly",
            code=ErrorCode.INVALID_GRANULARITY,
        ))

    required_refs = {
        "metric_type_id": candidate.metric_type_id,
        "tenant_id": candidate.tenant_id,
        "brand_id": candidate.brand_id,
    }
    for field, value in required_refs.items():
        if not is_reference(value):
            errors.append(ValidationIssue(
                field=field,
                message=f"{field} must be a valid UUID",
                code=ErrorCode.INVALID_REFERENCE,
            ))

    optional_refs = {
        "platform_id": candidate.platform_id,
        "master_template_id": candidate.master_template_id,
    }
    for field, value in optional_refs.items():
        if value is not None and not is_reference(value):
            errors.append(ValidationIssue(
                field=field,
                message=f"{field} must be a valid UUID",
                code=ErrorCode.INVALID_REFERENCE,
            ))

    return errors


def _check_priority(candidate: ObjectiveCandidate) -> list[ValidationIssue]:
    if candidate.priority is None or is_valid_priority(candidate.priority):
        return []
    return [ValidationIssue(
        field="priority",
        message=f"Priority must be between 1 (High) and 3 (Low). Received: {candidate.priority}",
        code=ErrorCode.INVALID_PRIORITY,
    )]


def _check_duplicate(
    candidate: ObjectiveCandidate,
    context: ValidationContext,
) -> list[ValidationIssue]:
    if context.existing_objectives is None or not candidate.title:
        return []

    result = check_duplicate(
        candidate.title,
        context.existing_objectives,
        threshold=context.duplicate_threshold,
    )
    if not result.is_duplicate:
        return []

    return [DuplicateObjectiveError(
        message=(
            f'Similar OKR exists: "{result.match.title}" '
            f"({result.match.similarity}% similar)"
        ),
        match=result.match,
    )]


def _check_target_date(
    candidate: ObjectiveCandidate,
    context: ValidationContext,
    today: date,
) -> list[ValidationIssue]:
    if context.dates is None or candidate.target_date_id <= 0:
        return []

    resolved = next((d for d in context.dates if d.id == candidate.target_date_id), None)
    if resolved is None:
        message = "Invalid target date ID. Date must exist in the date dimension."
    elif resolved.date <= today:
        message = "Target date must be in the future."
    else:
        return []

    return [ValidationIssue(
        field="target_date_id",
        message=message,
        code=ErrorCode.INVALID_TARGET_DATE,
    )]


def _check_platform_compatibility(
    candidate: ObjectiveCandidate,
    context: ValidationContext,
) -> list[ValidationIssue]:
    if context.platforms is None or context.metric_types is None:
        return []
    # No platform means the objective applies to every platform
    if not candidate.platform_id or not candidate.metric_type_id:
        return []
    # malformed ids are already reported by the shape check
    if not is_reference(candidate.platform_id) or not is_reference(candidate.metric_type_id):
        return []

    platform = next((p for p in context.platforms if p.id == candidate.platform_id), None)
    metric_type = next((m for m in context.metric_types if m.id == candidate.metric_type_id), None)

    errors = []
    if platform is None:
        errors.append(ValidationIssue(
            field="platform_id",
            message="Invalid platform ID.",
            code=ErrorCode.INVALID_REFERENCE,
        ))
    if metric_type is None:
        errors.append(ValidationIssue(
            field="metric_type_id",
            message="Invalid metric type ID.",
            code=ErrorCode.INVALID_REFERENCE,
        ))
    if errors:
        return errors

    if metric_type.category in INCOMPATIBLE_CATEGORIES.get(platform.category, ()):
        return [ValidationIssue(
            field="platform_id",
            message=(
                f"Platform category '{platform.category}' is not compatible "
                f"with metric category '{metric_type.category}'."
            ),
            code=ErrorCode.PLATFORM_INCOMPATIBLE,
        )]

    return []


def generate_warnings(
    candidate: ObjectiveCandidate,
    high_target_warning: float = HIGH_TARGET_WARNING,
) -> list[str]:
    """Non-blocking hints about a candidate that is valid but suspicious."""
    warnings = []

    if candidate.target_value > high_target_warning:
        warnings.append("Target value is very high. Please verify this is correct.")

    lowered = (candidate.title or "").lower()
    if any(word in lowered for word in PLACEHOLDER_WORDS):
        warnings.append(
            "Title appears to be a placeholder. Consider using a more specific title."
        )

    return warnings


def validate(
    candidate: ObjectiveCandidate,
    context: Optional[ValidationContext] = None,
    today: Optional[date] = None,
    check_target_date: bool = True,
    high_target_warning: float = HIGH_TARGET_WARNING,
) -> ValidationResult:
    """
    Validate a candidate objective against all business rules.

    Args:
        candidate: Objective to validate
        context: Optional lookups enabling the duplicate, target date and
            platform compatibility rules
        today: Reference date for the "target date is in the future" rule
            (defaults to the current date)
        check_target_date: Set to False to skip the future-date rule, e.g.
            when an edit leaves the target date untouched
        high_target_warning: Target value above which a warning is added

    Returns:
        ValidationResult; ``valid`` is False if any rule failed. Warnings
        never affect validity.
    """
    context = context or ValidationContext()
    today = today or date.today()

    errors: list[ValidationIssue] = []
    errors.extend(_check_shape(candidate))
    errors.extend(_check_priority(candidate))
    errors.extend(_check_duplicate(candidate, context))
    if check_target_date:
        errors.extend(_check_target_date(candidate, context, today))
    errors.extend(_check_platform_compatibility(candidate, context))

    return ValidationResult(
        valid=not errors,
        errors=errors,
        warnings=generate_warnings(candidate, high_target_warning),
    )


def validate_bulk_objectives(
    candidates: list[ObjectiveCandidate],
    context: Optional[ValidationContext] = None,
    today: Optional[date] = None,
    high_target_warning: float = HIGH_TARGET_WARNING,
) -> ValidationResult:
    """
    Validate a batch of candidates for bulk creation.

    The batch size is checked first and, when exceeded, is the only error
    reported. Per-candidate errors are prefixed with ``objectives[i].``.
    """
    if not candidates:
        return ValidationResult(valid=False, errors=[ValidationIssue(
            field="objectives",
            message="No objectives supplied for bulk creation",
            code=ErrorCode.EMPTY_BULK_SELECTION,
        )])

    if len(candidates) > MAX_BULK_SIZE:
        return ValidationResult(valid=False, errors=[ValidationIssue(
            field="objectives",
            message=f"Maximum {MAX_BULK_SIZE} OKRs allowed per bulk operation",
            code=ErrorCode.BULK_SIZE_EXCEEDED,
        )])

    errors: list[ValidationIssue] = []
    warnings: list[str] = []

    for index, candidate in enumerate(candidates):
        result = validate(
            candidate,
            context,
            today=today,
            high_target_warning=high_target_warning,
        )
        for issue in result.errors:
            errors.append(issue.model_copy(
                update={"field": f"objectives[{index}].{issue.field}"}
            ))
        warnings.extend(f"objectives[{index}]: {w}" for w in result.warnings)

    title_counts = Counter(c.title for c in candidates if c.title)
    for title, count in title_counts.items():
        if count > 1:
            warnings.append(f'Duplicate titles in batch: "{title}"')

    high_priority = sum(1 for c in candidates if c.priority == Priority.HIGH.value)
    if high_priority > math.ceil(len(candidates) * HIGH_PRIORITY_SHARE):
        warnings.append(
            f"High number of high-priority OKRs ({high_priority}). "
            "Consider balancing priorities."
        )

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
