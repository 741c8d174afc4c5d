"""
Goal Progress Evaluator - Completion percentage and achievement for health goals.
"""
from dataclasses import dataclass
from typing import Optional

from cyclewise.schemas.enums import GoalType
from cyclewise.services.analytics_config import get_analytics_config


@dataclass
class GoalProgress:
    progress: float
    achieved: bool


def _improve(current: float, target: float) -> GoalProgress:
    achieved = current >= target
    if target == 0:
        return GoalProgress(100.0 if achieved else 0.0, achieved)
    return GoalProgress(min(current / target * 100, 100.0), achieved)


def _reduce(current: float, target: float, baseline: float) -> GoalProgress:
    achieved = current <= target
    if baseline <= target:
        return GoalProgress(0.0, achieved)
    return GoalProgress(min((baseline - current) / (baseline - target) * 100, 100.0), achieved)


def _maintain(current: float, target: float, tolerance_fraction: float) -> GoalProgress:
    tolerance = abs(target) * tolerance_fraction
    deviation = abs(current - target)
    achieved = deviation <= tolerance
    if achieved:
        return GoalProgress(100.0, True)
    if target == 0:
        return GoalProgress(0.0, False)
    return GoalProgress(max(0.0, 100 - deviation / abs(target) * 100), False)


def evaluate_goal_progress(
    goal_type: GoalType | str,
    current: Optional[float],
    target: float,
    baseline: Optional[float] = None,
) -> GoalProgress:
    """
    Compute progress for a goal.

    A missing current value counts as 0 and a missing baseline falls back to
    current. Negative progress (moving away from target) is returned as is.
    """
    goal_type = GoalType(goal_type)
    current = current if current is not None else 0.0
    baseline = baseline if baseline is not None else current

    if goal_type == GoalType.IMPROVE:
        return _improve(current, target)
    elif goal_type == GoalType.REDUCE:
        return _reduce(current, target, baseline)

    tolerance = get_analytics_config().goal.maintain_tolerance
    return _maintain(current, target, tolerance)
