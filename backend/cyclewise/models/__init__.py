# SQLAlchemy Models
from cyclewise.models.user import User
from cyclewise.models.wearable_token import WearableToken
from cyclewise.models.health_metric import HealthMetric
from cyclewise.models.wellness_forecast import WellnessForecast
from cyclewise.models.cycle_tracking import CycleTracking
from cyclewise.models.health_goal import HealthGoal

__all__ = [
    "User",
    "WearableToken",
    "HealthMetric",
    "WellnessForecast",
    "CycleTracking",
    "HealthGoal",
]
