"""Tests for the objective status lifecycle."""
import pytest


ALLOWED = {
    ("active", "paused"),
    ("active", "completed"),
    ("active", "archived"),
    ("paused", "active"),
    ("paused", "completed"),
    ("paused", "archived"),
    ("completed", "archived"),
}
STATUSES = ["active", "paused", "completed", "archived"]


class TestTransition:
    """Tests for transition function."""

    @pytest.mark.parametrize("current", STATUSES)
    @pytest.mark.parametrize("requested", STATUSES)
    def test_exact_transition_table(self, current, requested):
        """Test exactly the allowed pairs are accepted."""
        from okr_service.models.errors import IllegalTransitionError
        from okr_service.services.lifecycle import TransitionOk, transition

        outcome = transition(current, requested)

        if (current, requested) in ALLOWED:
            assert isinstance(outcome, TransitionOk)
            assert outcome.from_status.value == current
            assert outcome.to_status.value == requested
        else:
            assert isinstance(outcome, IllegalTransitionError)
            assert outcome.from_status == current
            assert outcome.to_status == requested

    def test_completed_cannot_reactivate(self):
        """Test completed -> active is rejected with a readable message."""
        from okr_service.models.errors import ErrorCode
        from okr_service.services.lifecycle import transition

        outcome = transition("completed", "active")

        assert outcome.code == ErrorCode.ILLEGAL_TRANSITION
        assert outcome.message == "Illegal status transition: completed -> active"

    def test_archived_is_terminal(self):
        """Test nothing leaves archived."""
        from okr_service.services.lifecycle import ALLOWED_TRANSITIONS
        from okr_service.models.objective import ObjectiveStatus

        assert ALLOWED_TRANSITIONS[ObjectiveStatus.ARCHIVED] == frozenset()

    def test_accepts_enum_members(self):
        """Test enum members work as well as strings."""
        from okr_service.models.objective import ObjectiveStatus
        from okr_service.services.lifecycle import TransitionOk, transition

        outcome = transition(ObjectiveStatus.PAUSED, ObjectiveStatus.ACTIVE)

        assert isinstance(outcome, TransitionOk)

    def test_unknown_status_rejected(self):
        """Test unknown statuses are illegal rather than raising."""
        from okr_service.models.errors import IllegalTransitionError
        from okr_service.services.lifecycle import transition

        outcome = transition("active", "deleted")

        assert isinstance(outcome, IllegalTransitionError)
        assert outcome.to_status == "deleted"

    def test_serialises_with_from_and_to(self):
        """Test the rejection serialises as from/to."""
        from okr_service.services.lifecycle import transition

        data = transition("archived", "active").model_dump(mode="json", by_alias=True)

        assert data == {"code": "ILLEGAL_TRANSITION", "from": "archived", "to": "active"}


class TestIsStatusChange:
    """Tests for is_status_change function."""

    def test_none_is_not_a_change(self):
        """Test an omitted status is not a change."""
        from okr_service.services.lifecycle import is_status_change

        assert is_status_change("active", None) is False

    def test_same_status_is_not_a_change(self):
        """Test re-sending the current status is not a change."""
        from okr_service.models.objective import ObjectiveStatus
        from okr_service.services.lifecycle import is_status_change

        assert is_status_change("completed", ObjectiveStatus.COMPLETED) is False

    def test_different_status_is_a_change(self):
        """Test a different status is a change."""
        from okr_service.services.lifecycle import is_status_change

        assert is_status_change("active", "paused") is True
