"""Tests for progress calculation."""
import pytest


class TestCalculateProgress:
    """Tests for calculate_progress function."""

    @pytest.mark.parametrize("current,expected_health", [
        (80, "green"),
        (100, "green"),
        (79.99, "yellow"),
        (40, "yellow"),
        (39, "red"),
        (0, "red"),
    ])
    def test_health_thresholds(self, current, expected_health):
        """Test the traffic light boundaries."""
        from okr_service.utils.progress import calculate_progress

        assert calculate_progress(current, 100).health == expected_health

    def test_percentage_rounded(self):
        """Test percentage is rounded to two decimals."""
        from okr_service.utils.progress import calculate_progress

        assert calculate_progress(1, 3).progress_percentage == 33.33

    def test_zero_target(self):
        """Test a zero target doesn't divide by zero."""
        from okr_service.utils.progress import calculate_progress

        progress = calculate_progress(10, 0)

        assert progress.progress_percentage == 0.0
        assert progress.health == "red"

    def test_completed_is_full(self):
        """Test completed objectives report 100% regardless of values."""
        from okr_service.utils.progress import calculate_progress

        progress = calculate_progress(5, 100, status="completed")

        assert progress.progress_percentage == 100.0
        assert progress.health == "green"

    def test_archived_is_gray(self):
        """Test archived objectives are gray but keep their percentage."""
        from okr_service.utils.progress import calculate_progress

        progress = calculate_progress(90, 100, status="archived")

        assert progress.progress_percentage == 90.0
        assert progress.health == "gray"
