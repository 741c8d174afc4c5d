from dataclasses import asdict

from fastapi import APIRouter, Query

from cyclewise.analytics.trends import analyze_metrics
from cyclewise.api.deps import CurrentUser, StorageDep, ensure_owner
from cyclewise.models import HealthMetric
from cyclewise.schemas.metric import HealthMetricResponse, MetricsAnalysisResponse
from cyclewise.services.storage import METRICS_DEFAULT_LIMIT

router = APIRouter()


@router.get("/{user_id}", response_model=list[HealthMetricResponse])
async def list_metrics(
    user_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
    limit: int = Query(METRICS_DEFAULT_LIMIT, ge=1, le=365),
) -> list[HealthMetric]:
    """Daily metrics, most recent first."""
    ensure_owner(user_id, current_user)
    return list(await storage.list_metrics(user_id, limit=limit))


@router.get("/{user_id}/analysis", response_model=MetricsAnalysisResponse)
async def analyze_user_metrics(
    user_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
    limit: int = Query(METRICS_DEFAULT_LIMIT, ge=1, le=365),
) -> MetricsAnalysisResponse:
    """Trend insights, anomalies and the correlation matrix over recent metrics."""
    ensure_owner(user_id, current_user)

    rows = await storage.list_metrics(user_id, limit=limit)
    cycle = await storage.get_latest_cycle(user_id)
    analysis = analyze_metrics(rows, cycle)
    return MetricsAnalysisResponse.model_validate(asdict(analysis))
