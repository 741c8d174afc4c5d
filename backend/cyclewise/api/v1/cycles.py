from fastapi import APIRouter, HTTPException, Query, status

from cyclewise.analytics.cycle_phase import build_cycle_status
from cyclewise.api.deps import CurrentUser, StorageDep, ensure_owner
from cyclewise.models import CycleTracking
from cyclewise.schemas.cycle import CycleCreate, CycleResponse, CycleStatusResponse, CycleUpdate
from cyclewise.services.storage import CYCLES_DEFAULT_LIMIT

router = APIRouter()


def _no_cycle() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="No cycle data found",
    )


@router.post("", response_model=CycleResponse, status_code=status.HTTP_201_CREATED)
async def create_cycle(
    cycle_in: CycleCreate,
    current_user: CurrentUser,
    storage: StorageDep,
) -> CycleTracking:
    """Log a period start."""
    ensure_owner(cycle_in.user_id, current_user)

    data = cycle_in.model_dump(exclude={"user_id"})
    if data["flow_intensity"] is not None:
        data["flow_intensity"] = data["flow_intensity"].value
    return await storage.create_cycle(cycle_in.user_id, **data)


@router.get("/{user_id}", response_model=list[CycleResponse])
async def list_cycles(
    user_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
    limit: int = Query(CYCLES_DEFAULT_LIMIT, ge=1, le=120),
) -> list[CycleTracking]:
    """Cycles, most recent period start first."""
    ensure_owner(user_id, current_user)
    return list(await storage.list_cycles(user_id, limit=limit))


@router.get("/{user_id}/latest", response_model=CycleResponse)
async def get_latest_cycle(
    user_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
) -> CycleTracking:
    ensure_owner(user_id, current_user)

    cycle = await storage.get_latest_cycle(user_id)
    if not cycle:
        raise _no_cycle()
    return cycle


@router.get("/{user_id}/phase", response_model=CycleStatusResponse)
async def get_cycle_phase(
    user_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
) -> CycleStatusResponse:
    """Current phase, cycle day and next-period prediction from the latest cycle."""
    ensure_owner(user_id, current_user)

    cycle = await storage.get_latest_cycle(user_id)
    if not cycle:
        raise _no_cycle()

    cycle_status = build_cycle_status(cycle.period_start_date, cycle.cycle_length)
    return CycleStatusResponse(
        cycle_id=cycle.id,
        period_start_date=cycle.period_start_date,
        phase=cycle_status.phase,
        phase_name=cycle_status.phase_name,
        phase_description=cycle_status.phase_description,
        day_of_cycle=cycle_status.day_of_cycle,
        cycle_length=cycle_status.cycle_length,
        next_period_date=cycle_status.next_period_date,
        days_until_next_period=cycle_status.days_until_next_period,
        start_in_future=cycle_status.start_in_future,
    )


@router.patch("/{cycle_id}", response_model=CycleResponse)
async def update_cycle(
    cycle_id: str,
    cycle_update: CycleUpdate,
    current_user: CurrentUser,
    storage: StorageDep,
) -> CycleTracking:
    """Partial update of a cycle entry."""
    cycle = await storage.get_cycle(cycle_id)
    if not cycle:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Cycle not found",
        )
    ensure_owner(cycle.user_id, current_user)

    update_data = cycle_update.model_dump(exclude_unset=True)
    if update_data.get("flow_intensity") is not None:
        update_data["flow_intensity"] = update_data["flow_intensity"].value

    start = update_data.get("period_start_date", cycle.period_start_date)
    end = update_data.get("period_end_date", cycle.period_end_date)
    if start is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="period_start_date cannot be cleared",
        )
    if end is not None and end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="period_end_date must not be before period_start_date",
        )
    if "symptoms" in update_data and update_data["symptoms"] is None:
        update_data["symptoms"] = []

    return await storage.update_cycle(cycle, update_data)
