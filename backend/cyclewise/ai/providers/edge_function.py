"""
Hosted edge-function forecast backend.

Posts the metrics to `{supabase_url}/functions/v1/generate-forecast` on
behalf of the caller, forwarding their bearer token.
"""
import logging
from typing import Any, Optional

import httpx

from cyclewise.ai.base import (
    ForecastBackend,
    ForecastContext,
    ForecastGenerationError,
    ForecastResult,
    MetricSnapshot,
)
from cyclewise.config import Settings

logger = logging.getLogger(__name__)

FUNCTION_PATH = "/functions/v1/generate-forecast"


def build_request_body(metrics: list[MetricSnapshot], context: ForecastContext) -> dict[str, Any]:
    body: dict[str, Any] = {
        "userId": context.user_id,
        "metrics": [
            {
                "date": m.date.isoformat(),
                "hrvScore": m.hrv,
                "sleepScore": m.sleep_score,
                "glucoseLevel": m.avg_glucose,
                "steps": m.steps,
                "restingHeartRate": m.resting_heart_rate,
            }
            for m in metrics
        ],
    }
    if context.cycle_phase:
        body["cyclePhase"] = context.cycle_phase
    return body


class EdgeFunctionForecastBackend(ForecastBackend):
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.function_url = f"{settings.supabase_url.rstrip('/')}{FUNCTION_PATH}"
        self.http_client = httpx.AsyncClient(
            timeout=settings.forecast_timeout_seconds, transport=transport
        )

    @property
    def name(self) -> str:
        return "edge_function"

    async def generate(
        self, metrics: list[MetricSnapshot], context: ForecastContext
    ) -> ForecastResult:
        if not context.access_token:
            raise ForecastGenerationError("Edge function error: missing caller access token")

        logger.info("Calling forecast edge function: days=%d", len(metrics), extra={"user_id": context.user_id})
        try:
            response = await self.http_client.post(
                self.function_url,
                json=build_request_body(metrics, context),
                headers={"Authorization": f"Bearer {context.access_token}"},
            )
        except httpx.HTTPError as e:
            logger.error("Forecast edge function request failed: %s", e)
            raise ForecastGenerationError(f"Edge function error: {e}") from e

        if response.is_error:
            try:
                detail = response.json().get("error")
            except (ValueError, AttributeError):
                detail = None
            message = detail or response.reason_phrase or "Unknown error"
            logger.error("Forecast edge function failed: %s %s", response.status_code, message)
            raise ForecastGenerationError(f"Edge function error: {message}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ForecastGenerationError("Edge function error: invalid JSON response") from e
        if not isinstance(payload, dict):
            raise ForecastGenerationError("Edge function error: invalid JSON response")

        return ForecastResult.from_payload(payload)

    async def close(self) -> None:
        await self.http_client.aclose()
