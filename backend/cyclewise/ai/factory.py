"""
Forecast backend selection; called once from the app lifespan.
"""
import logging

from cyclewise.ai.base import ForecastBackend
from cyclewise.ai.providers.edge_function import EdgeFunctionForecastBackend
from cyclewise.ai.providers.openai_backend import OpenAIForecastBackend
from cyclewise.config import ConfigurationError, Settings

logger = logging.getLogger(__name__)

_REQUIRED_SETTINGS: dict[str, tuple[str, ...]] = {
    "openai": ("openai_api_key",),
    "edge_function": ("supabase_url",),
}


def build_forecast_backend(settings: Settings) -> ForecastBackend:
    """
    Build the configured forecast backend.

    Raises:
        ConfigurationError: unknown backend or a required secret is missing
    """
    name = settings.forecast_backend
    if name not in _REQUIRED_SETTINGS:
        raise ConfigurationError(f"Unknown forecast backend: {name}")

    settings.require(*_REQUIRED_SETTINGS[name])

    if name == "openai":
        backend: ForecastBackend = OpenAIForecastBackend(settings)
    else:
        backend = EdgeFunctionForecastBackend(settings)

    logger.info("Forecast backend ready: %s", backend.name)
    return backend
