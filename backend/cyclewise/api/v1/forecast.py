from fastapi import APIRouter, HTTPException, status

from cyclewise.ai.base import ForecastGenerationError
from cyclewise.api.deps import CurrentUser, ForecastBackendDep, SettingsDep, StorageDep, ensure_owner
from cyclewise.models import WellnessForecast
from cyclewise.schemas.forecast import ForecastGenerateRequest, ForecastResponse
from cyclewise.services.forecast import ForecastGenerator, NoMetricsAvailable

router = APIRouter()


@router.get("/{user_id}", response_model=ForecastResponse | None)
async def get_latest_forecast(
    user_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
) -> WellnessForecast | None:
    """Most recently generated forecast, or null."""
    ensure_owner(user_id, current_user)
    return await storage.get_latest_forecast(user_id)


@router.post("/generate", response_model=ForecastResponse)
async def generate_forecast(
    request_in: ForecastGenerateRequest,
    current_user: CurrentUser,
    storage: StorageDep,
    backend: ForecastBackendDep,
    settings: SettingsDep,
) -> WellnessForecast:
    """Generate a forecast from the last week of metrics and store it."""
    ensure_owner(request_in.user_id, current_user)

    generator = ForecastGenerator(storage, backend, window=settings.forecast_metrics_window)
    try:
        return await generator.generate(request_in.user_id, access_token=current_user.access_token)
    except NoMetricsAvailable as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    except ForecastGenerationError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "forecast_generation_failed", "message": str(e)},
        )
