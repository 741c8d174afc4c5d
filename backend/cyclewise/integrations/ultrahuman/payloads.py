"""
Ultrahuman day payload parsing.

A day payload looks like

    {"data": {"metric_data": [{"type": "sleep", "object": {...}}, ...]}}

or is a bare list of such entries. Each entry is parsed into one metric
variant keyed by its `type`; anything unrecognised or malformed becomes an
UnknownMetric and contributes nothing.
"""
import logging
from dataclasses import asdict, dataclass
from statistics import mean
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class DailyMetricValues:
    """Folded metric values for one calendar day; None means not reported."""
    sleep_score: Optional[int] = None
    sleep_duration: Optional[float] = None
    hrv: Optional[int] = None
    resting_heart_rate: Optional[int] = None
    recovery_score: Optional[int] = None
    steps: Optional[int] = None
    avg_glucose: Optional[float] = None
    glucose_variability: Optional[float] = None
    temperature: Optional[float] = None
    vo2_max: Optional[float] = None

    def reported(self) -> dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}

    def is_empty(self) -> bool:
        return not self.reported()


class ValuePoint(BaseModel):
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    value: Optional[float] = None
    timestamp: Optional[float] = None


class MetricEntry(BaseModel):
    # NaN or Infinity anywhere in an entry makes it an UnknownMetric
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    type: str

    def fields(self) -> dict[str, Any]:
        return {}


class SeriesMetric(MetricEntry):
    """A metric reported either as an aggregate or as a list of samples."""
    avg: Optional[float] = None
    value: Optional[float] = None
    values: list[ValuePoint] = []

    def aggregate(self) -> Optional[float]:
        if self.avg is not None:
            return self.avg
        if self.value is not None:
            return self.value
        samples = [point.value for point in self.values if point.value is not None]
        return mean(samples) if samples else None


class ScalarMetric(MetricEntry):
    value: Optional[float] = None
    score: Optional[float] = None

    def scalar(self) -> Optional[float]:
        return self.value if self.value is not None else self.score


def _as_int(value: Optional[float]) -> Optional[int]:
    return int(round(value)) if value is not None else None


class SleepMetric(MetricEntry):
    type: Literal["sleep"]
    score: Optional[float] = None
    total_sleep_minutes: Optional[float] = None
    duration_hours: Optional[float] = None

    def fields(self) -> dict[str, Any]:
        duration = self.duration_hours
        if self.total_sleep_minutes is not None:
            duration = round(self.total_sleep_minutes / 60, 2)
        return {"sleep_score": _as_int(self.score), "sleep_duration": duration}


class HRVMetric(SeriesMetric):
    type: Literal["hrv", "avg_sleep_hrv"]

    def fields(self) -> dict[str, Any]:
        return {"hrv": _as_int(self.aggregate())}


class RestingHeartRateMetric(SeriesMetric):
    type: Literal["night_rhr", "resting_heart_rate"]

    def fields(self) -> dict[str, Any]:
        return {"resting_heart_rate": _as_int(self.aggregate())}


class StepsMetric(MetricEntry):
    type: Literal["steps"]
    total: Optional[float] = None
    values: list[ValuePoint] = []

    def fields(self) -> dict[str, Any]:
        if self.total is not None:
            return {"steps": _as_int(self.total)}
        samples = [point for point in self.values if point.value is not None]
        if not samples:
            return {}
        # Step counts are cumulative through the day; the latest sample wins
        latest = max(
            enumerate(samples),
            key=lambda item: (item[1].timestamp if item[1].timestamp is not None else float("-inf"), item[0]),
        )[1]
        return {"steps": _as_int(latest.value)}


class RecoveryMetric(ScalarMetric):
    type: Literal["recovery", "recovery_index"]

    def fields(self) -> dict[str, Any]:
        return {"recovery_score": _as_int(self.scalar())}


class GlucoseMetric(SeriesMetric):
    type: Literal["glucose"]

    def fields(self) -> dict[str, Any]:
        value = self.aggregate()
        return {"avg_glucose": round(value, 2) if value is not None else None}


class GlucoseVariabilityMetric(ScalarMetric):
    type: Literal["glucose_variability"]

    def fields(self) -> dict[str, Any]:
        return {"glucose_variability": self.scalar()}


class TemperatureMetric(SeriesMetric):
    type: Literal["temp", "temperature"]

    def fields(self) -> dict[str, Any]:
        value = self.aggregate()
        return {"temperature": round(value, 2) if value is not None else None}


class VO2MaxMetric(ScalarMetric):
    type: Literal["vo2_max"]

    def fields(self) -> dict[str, Any]:
        return {"vo2_max": self.scalar()}


class UnknownMetric(MetricEntry):
    pass


MetricVariant = Union[
    SleepMetric,
    HRVMetric,
    RestingHeartRateMetric,
    StepsMetric,
    RecoveryMetric,
    GlucoseMetric,
    GlucoseVariabilityMetric,
    TemperatureMetric,
    VO2MaxMetric,
    UnknownMetric,
]

VARIANTS_BY_TYPE: dict[str, type[MetricEntry]] = {
    "sleep": SleepMetric,
    "hrv": HRVMetric,
    "avg_sleep_hrv": HRVMetric,
    "night_rhr": RestingHeartRateMetric,
    "resting_heart_rate": RestingHeartRateMetric,
    "steps": StepsMetric,
    "recovery": RecoveryMetric,
    "recovery_index": RecoveryMetric,
    "glucose": GlucoseMetric,
    "glucose_variability": GlucoseVariabilityMetric,
    "temp": TemperatureMetric,
    "temperature": TemperatureMetric,
    "vo2_max": VO2MaxMetric,
}


def parse_metric_entry(entry: Any) -> MetricVariant:
    """Parse one `{"type", "object"}` entry into its variant."""
    if not isinstance(entry, dict):
        return UnknownMetric(type="unknown")

    metric_type = str(entry.get("type") or "unknown")
    body = entry.get("object")
    if not isinstance(body, dict):
        body = {}

    variant = VARIANTS_BY_TYPE.get(metric_type)
    if variant is None:
        logger.debug("Ignoring unknown Ultrahuman metric type: %s", metric_type)
        return UnknownMetric(type=metric_type)

    try:
        return variant.model_validate({**body, "type": metric_type})
    except ValidationError as e:
        logger.warning("Malformed Ultrahuman %s entry: %s", metric_type, e.error_count())
        return UnknownMetric(type=metric_type)


def metric_entries(payload: Any) -> list[Any]:
    """Pull the entry list out of either payload shape."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, dict) and isinstance(data.get("metric_data"), list):
            return data["metric_data"]
        if isinstance(data, list):
            return data
    return []


def extract_daily_metrics(payload: Any) -> DailyMetricValues:
    """Fold every recognised entry of a day payload into one set of values."""
    values = DailyMetricValues()
    for entry in metric_entries(payload):
        for name, value in parse_metric_entry(entry).fields().items():
            if value is not None:
                setattr(values, name, value)
    return values
