"""
Forecast backend interface.
"""
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

FALLBACK_FORECAST = "Unable to generate forecast at this time."
MAX_RECOMMENDATIONS = 5


class ForecastGenerationError(Exception):
    """The forecast backend failed; nothing was persisted."""


class MetricSnapshot(BaseModel):
    """One day of metrics as handed to a backend."""
    date: date
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

    class Config:
        from_attributes = True


class ForecastContext(BaseModel):
    """Per-request context; access_token is the caller's bearer token."""
    user_id: str
    cycle_phase: Optional[str] = None
    access_token: Optional[str] = None


class ForecastResult(BaseModel):
    forecast: str
    insights: Optional[dict[str, Any]] = None
    recommendations: list[str] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ForecastResult":
        """
        Normalise a backend JSON body; a missing forecast gets the fallback text.

        Raises:
            ForecastGenerationError: the body does not fit the forecast shape
        """
        insights = payload.get("insights")
        recommendations = payload.get("recommendations") or []
        if not isinstance(recommendations, list):
            recommendations = [recommendations]
        try:
            return cls(
                forecast=payload.get("forecast") or FALLBACK_FORECAST,
                insights=insights if isinstance(insights, dict) else None,
                recommendations=[str(item) for item in recommendations][:MAX_RECOMMENDATIONS],
            )
        except ValidationError as e:
            raise ForecastGenerationError("Forecast response had an unexpected shape") from e


class ForecastBackend(ABC):
    """Forecast text generator"""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def generate(
        self, metrics: list[MetricSnapshot], context: ForecastContext
    ) -> ForecastResult:
        """
        Generate a wellness forecast from recent metrics, most recent first.

        Raises:
            ForecastGenerationError: on any upstream or parsing failure
        """
        pass

    async def close(self) -> None:
        pass
