"""
Forecast Generator - Builds a wellness forecast from recent metrics and stores it.
"""
import logging
from datetime import date
from typing import Optional

from cyclewise.ai.base import ForecastBackend, ForecastContext, MetricSnapshot, MAX_RECOMMENDATIONS
from cyclewise.analytics.cycle_phase import calculate_cycle_phase
from cyclewise.models import WellnessForecast
from cyclewise.services.analytics_config import get_analytics_config
from cyclewise.services.storage import Storage

logger = logging.getLogger(__name__)


class NoMetricsAvailable(Exception):
    """The user has no stored metrics to forecast from."""


class ForecastGenerator:
    def __init__(self, storage: Storage, backend: ForecastBackend, window: int = 7):
        self.storage = storage
        self.backend = backend
        self.window = window

    async def _cycle_phase(self, user_id: str, today: Optional[date]) -> Optional[str]:
        cycle = await self.storage.get_latest_cycle(user_id)
        if cycle is None:
            return None
        length = cycle.cycle_length or get_analytics_config().cycle.default_cycle_length
        return calculate_cycle_phase(cycle.period_start_date, length, today).value

    async def generate(
        self,
        user_id: str,
        access_token: Optional[str] = None,
        today: Optional[date] = None,
    ) -> WellnessForecast:
        """
        Generate and persist a forecast for the user's most recent days.

        Raises:
            NoMetricsAvailable: the user has no metric rows
            ForecastGenerationError: the backend failed; nothing is stored
        """
        rows = await self.storage.list_metrics(user_id, limit=self.window)
        if not rows:
            raise NoMetricsAvailable("No health metrics available")

        snapshots = [MetricSnapshot.model_validate(row) for row in rows]
        context = ForecastContext(
            user_id=user_id,
            cycle_phase=await self._cycle_phase(user_id, today),
            access_token=access_token,
        )

        result = await self.backend.generate(snapshots, context)

        forecast = await self.storage.create_forecast(
            user_id,
            forecast=result.forecast,
            insights=result.insights,
            recommendations=result.recommendations[:MAX_RECOMMENDATIONS],
            metrics_analyzed={"count": len(rows)},
            backend=self.backend.name,
        )
        logger.info(
            "Forecast generated: backend=%s days=%d", self.backend.name, len(rows),
            extra={"user_id": user_id},
        )
        return forecast
