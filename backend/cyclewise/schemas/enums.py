from enum import Enum


class CyclePhase(str, Enum):
    MENSTRUAL = "menstrual"
    FOLLICULAR = "follicular"
    OVULATION = "ovulation"
    LUTEAL = "luteal"


class FlowIntensity(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class GoalType(str, Enum):
    IMPROVE = "improve"
    MAINTAIN = "maintain"
    REDUCE = "reduce"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class GoalMetric(str, Enum):
    SLEEP_SCORE = "sleep_score"
    HRV = "hrv"
    RECOVERY_SCORE = "recovery_score"
    STEPS = "steps"
    AVG_GLUCOSE = "avg_glucose"
    TEMPERATURE = "temperature"
    RESTING_HEART_RATE = "resting_heart_rate"
    SLEEP_DURATION = "sleep_duration"
    VO2_MAX = "vo2_max"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class AnomalySeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnomalyType(str, Enum):
    SPIKE = "spike"
    DROP = "drop"


# Display labels for metric columns, shared by analytics messages and CSV export
METRIC_LABELS: dict[str, str] = {
    "sleep_score": "Sleep Score",
    "sleep_duration": "Sleep Duration",
    "hrv": "HRV",
    "resting_heart_rate": "Resting Heart Rate",
    "recovery_score": "Recovery",
    "steps": "Steps",
    "avg_glucose": "Glucose",
    "glucose_variability": "Glucose Variability",
    "temperature": "Temp",
    "vo2_max": "VO2 Max",
}
