"""Duplicate objective detection by title similarity."""
from typing import Iterable, Optional

from okr_service.models.objective import DuplicateCheck, DuplicateMatch, ExistingObjective
from okr_service.utils.similarity import normalize_title, similarity


DEFAULT_DUPLICATE_THRESHOLD = 0.8


def check_duplicate(
    title: str,
    existing: Iterable[ExistingObjective],
    threshold: float = DEFAULT_DUPLICATE_THRESHOLD,
) -> DuplicateCheck:
    """
    Check whether a title collides with an existing active objective.

    Titles are lower-cased and trimmed before scoring. Inactive (archived)
    objectives never count. Among all objectives at or above the threshold
    the most similar one is reported; equal scores keep the one seen first.

    Args:
        title: Candidate objective title
        existing: Objectives already stored for the same tenant and brand
        threshold: Minimum similarity (0-1) that counts as a duplicate

    Returns:
        DuplicateCheck with the best match, if any

    Examples:
        >>> check = check_duplicate(
        ...     "Increase Instagram Engagement",
        ...     [ExistingObjective(id="1", title="Increase instagram engagement ")],
        ... )
        >>> check.is_duplicate, check.match.similarity
        (True, 100)
    """
    candidate = normalize_title(title or "")
    if not candidate:
        return DuplicateCheck(is_duplicate=False)

    best: Optional[ExistingObjective] = None
    best_score = -1.0

    for objective in existing:
        if not objective.is_active:
            continue

        score = similarity(candidate, normalize_title(objective.title))
        if score >= threshold and score > best_score:
            best = objective
            best_score = score

    if best is None:
        return DuplicateCheck(is_duplicate=False)

    return DuplicateCheck(
        is_duplicate=True,
        match=DuplicateMatch(
            id=best.id,
            title=best.title,
            similarity=round(best_score * 100),
        ),
    )
