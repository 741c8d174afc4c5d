from datetime import date, timedelta

from fastapi import APIRouter, HTTPException, Query, Response, status

from cyclewise.api.deps import CurrentUser, StorageDep, ensure_owner
from cyclewise.services.csv_export import (
    cycles_filename,
    cycles_to_csv,
    goals_filename,
    goals_to_csv,
    metrics_filename,
    metrics_to_csv,
)
from cyclewise.utils.datetime_helper import today_utc

router = APIRouter()

DEFAULT_RANGE_DAYS = 30


def _date_range(start_date: date | None, end_date: date | None) -> tuple[date, date]:
    end = end_date or today_utc()
    start = start_date or end - timedelta(days=DEFAULT_RANGE_DAYS)
    if start > end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date",
        )
    return start, end


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/metrics/{user_id}")
async def export_metrics(
    user_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
) -> Response:
    """Daily metrics in the date range as CSV (defaults to the last 30 days)."""
    ensure_owner(user_id, current_user)
    start, end = _date_range(start_date, end_date)

    metrics = await storage.list_metrics_in_range(user_id, start, end)
    return _csv_response(metrics_to_csv(metrics), metrics_filename(start, end))


@router.get("/goals/{user_id}")
async def export_goals(
    user_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
) -> Response:
    ensure_owner(user_id, current_user)

    goals = await storage.list_goals(user_id)
    return _csv_response(goals_to_csv(goals), goals_filename(today_utc()))


@router.get("/cycles/{user_id}")
async def export_cycles(
    user_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
) -> Response:
    """Cycles whose period started in the date range as CSV."""
    ensure_owner(user_id, current_user)
    start, end = _date_range(start_date, end_date)

    cycles = await storage.list_cycles_in_range(user_id, start, end)
    return _csv_response(cycles_to_csv(cycles), cycles_filename(start, end))
