"""Tests for goal progress evaluation."""
import pytest

from cyclewise.analytics.goal_progress import evaluate_goal_progress
from cyclewise.schemas.enums import GoalType
from cyclewise.services.analytics_config import AnalyticsConfig, GoalConfig, set_analytics_config


class TestImproveGoals:
    def test_partial_progress(self):
        result = evaluate_goal_progress(GoalType.IMPROVE, 70, 80)
        assert result.progress == pytest.approx(87.5)
        assert result.achieved is False

    def test_progress_capped_at_100(self):
        result = evaluate_goal_progress("improve", 95, 80)
        assert result.progress == 100
        assert result.achieved is True

    def test_exactly_on_target(self):
        result = evaluate_goal_progress("improve", 80, 80)
        assert result.progress == 100
        assert result.achieved is True

    def test_missing_current_counts_as_zero(self):
        result = evaluate_goal_progress("improve", None, 80)
        assert result.progress == 0
        assert result.achieved is False

    def test_zero_target_is_guarded(self):
        assert evaluate_goal_progress("improve", 5, 0).progress == 100
        assert evaluate_goal_progress("improve", -1, 0).progress == 0


class TestReduceGoals:
    def test_partial_progress(self):
        result = evaluate_goal_progress(GoalType.REDUCE, 110, 100, baseline=120)
        assert result.progress == pytest.approx(50.0)
        assert result.achieved is False

    def test_target_reached(self):
        result = evaluate_goal_progress("reduce", 95, 100, baseline=120)
        assert result.progress == 100
        assert result.achieved is True

    def test_moving_away_gives_negative_progress(self):
        result = evaluate_goal_progress("reduce", 130, 100, baseline=120)
        assert result.progress == pytest.approx(-50.0)
        assert result.achieved is False

    def test_baseline_not_above_target_gives_zero(self):
        result = evaluate_goal_progress("reduce", 90, 100, baseline=100)
        assert result.progress == 0
        assert result.achieved is True

    def test_baseline_defaults_to_current(self):
        result = evaluate_goal_progress("reduce", 120, 100)
        assert result.progress == 0
        assert result.achieved is False


class TestMaintainGoals:
    def test_within_tolerance(self):
        result = evaluate_goal_progress(GoalType.MAINTAIN, 62, 60)
        assert result.progress == 100
        assert result.achieved is True

    def test_tolerance_edge_is_inclusive(self):
        result = evaluate_goal_progress("maintain", 105, 100)
        assert result.progress == 100
        assert result.achieved is True

    def test_outside_tolerance(self):
        result = evaluate_goal_progress("maintain", 80, 100)
        assert result.progress == pytest.approx(80.0)
        assert result.achieved is False

    def test_far_outside_clamps_at_zero(self):
        result = evaluate_goal_progress("maintain", 300, 100)
        assert result.progress == 0
        assert result.achieved is False

    def test_zero_target(self):
        assert evaluate_goal_progress("maintain", 0, 0).achieved is True
        assert evaluate_goal_progress("maintain", 3, 0).progress == 0

    def test_tolerance_from_config(self):
        set_analytics_config(AnalyticsConfig(goal=GoalConfig(maintain_tolerance=0.25)))

        result = evaluate_goal_progress("maintain", 80, 100)
        assert result.achieved is True


def test_unknown_goal_type_rejected():
    with pytest.raises(ValueError):
        evaluate_goal_progress("double", 1, 2)
