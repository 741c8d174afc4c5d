from datetime import date, datetime

from pydantic import BaseModel, Field

from cyclewise.schemas.enums import AnomalySeverity, AnomalyType, CyclePhase, TrendDirection


class HealthMetricResponse(BaseModel):
    id: str
    user_id: str
    date: date
    sleep_score: int | None = None
    sleep_duration: float | None = None
    hrv: int | None = None
    resting_heart_rate: int | None = None
    recovery_score: int | None = None
    steps: int | None = None
    avg_glucose: float | None = None
    glucose_variability: float | None = None
    temperature: float | None = None
    vo2_max: float | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TrendInsight(BaseModel):
    metric: str
    trend: TrendDirection
    change: float | None = Field(None, description="Percent change, recent vs older window")
    message: str

    class Config:
        from_attributes = True


class Anomaly(BaseModel):
    date: date
    metric: str
    value: float
    z_score: float
    severity: AnomalySeverity
    type: AnomalyType
    message: str

    class Config:
        from_attributes = True


class MetricsAnalysisResponse(BaseModel):
    rows_analyzed: int
    cycle_phase: CyclePhase | None = None
    trends: list[TrendInsight]
    anomalies: list[Anomaly]
    correlations: dict[str, dict[str, float]]

    class Config:
        from_attributes = True
