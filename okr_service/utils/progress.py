"""Objective progress and health calculations."""
from okr_service.models.objective import ObjectiveProgress, ObjectiveStatus


def calculate_progress(
    current_value: float,
    target_value: float,
    status: str = ObjectiveStatus.ACTIVE.value,
) -> ObjectiveProgress:
    """
    Compute progress percentage and a traffic-light health flag.

    Completed objectives are always 100% and green; archived ones are gray.

    Examples:
        >>> calculate_progress(85, 100).health
        'green'
        >>> calculate_progress(50, 100).health
        'yellow'
        >>> calculate_progress(10, 100).progress_percentage
        10.0
    """
    status = ObjectiveStatus(status)

    if status is ObjectiveStatus.COMPLETED:
        return ObjectiveProgress(progress_percentage=100.0, health="green")

    percentage = (current_value / target_value) * 100 if target_value else 0.0
    percentage = round(percentage, 2)

    if status is ObjectiveStatus.ARCHIVED:
        health = "gray"
    elif percentage >= 80:
        health = "green"
    elif percentage >= 40:
        health = "yellow"
    else:
        health = "red"

    return ObjectiveProgress(progress_percentage=percentage, health=health)
