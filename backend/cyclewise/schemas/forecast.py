from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ForecastGenerateRequest(BaseModel):
    user_id: str


class ForecastResponse(BaseModel):
    id: str
    user_id: str
    forecast: str
    insights: dict[str, Any] | None = None
    recommendations: list[str] | None = None
    metrics_analyzed: dict[str, Any] | None = None
    backend: str | None = None
    generated_at: datetime

    class Config:
        from_attributes = True
