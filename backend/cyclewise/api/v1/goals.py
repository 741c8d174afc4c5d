from fastapi import APIRouter, HTTPException, Query, status

from cyclewise.analytics.goal_progress import evaluate_goal_progress
from cyclewise.api.deps import CurrentUser, StorageDep, ensure_owner
from cyclewise.models import HealthGoal
from cyclewise.schemas.enums import GoalStatus
from cyclewise.schemas.goal import GoalCreate, GoalResponse, GoalUpdate

router = APIRouter()


def goal_to_response(goal: HealthGoal) -> GoalResponse:
    """Attach computed progress to a stored goal."""
    result = evaluate_goal_progress(
        goal.goal_type, goal.current_value, goal.target_value, goal.baseline_value
    )
    return GoalResponse(
        id=goal.id,
        user_id=goal.user_id,
        goal_type=goal.goal_type,
        target_metric=goal.target_metric,
        target_value=goal.target_value,
        baseline_value=goal.baseline_value,
        current_value=goal.current_value,
        deadline=goal.deadline,
        status=goal.status,
        description=goal.description,
        progress=round(result.progress, 2),
        achieved=result.achieved,
        created_at=goal.created_at,
        updated_at=goal.updated_at,
    )


async def _get_owned_goal(goal_id: str, current_user: CurrentUser, storage: StorageDep) -> HealthGoal:
    goal = await storage.get_goal(goal_id)
    if not goal:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Goal not found",
        )
    ensure_owner(goal.user_id, current_user)
    return goal


@router.get("/{user_id}", response_model=list[GoalResponse])
async def list_goals(
    user_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
    goal_status: GoalStatus | None = Query(None, alias="status"),
) -> list[GoalResponse]:
    """Goals with progress, newest first."""
    ensure_owner(user_id, current_user)

    goals = await storage.list_goals(user_id, status=goal_status.value if goal_status else None)
    return [goal_to_response(goal) for goal in goals]


@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal_in: GoalCreate,
    current_user: CurrentUser,
    storage: StorageDep,
) -> GoalResponse:
    ensure_owner(goal_in.user_id, current_user)

    data = goal_in.model_dump(exclude={"user_id"}, mode="json")
    if data["baseline_value"] is None:
        data["baseline_value"] = goal_in.current_value
    data["deadline"] = goal_in.deadline

    goal = await storage.create_goal(goal_in.user_id, **data)
    return goal_to_response(goal)


@router.patch("/{goal_id}", response_model=GoalResponse)
async def update_goal(
    goal_id: str,
    goal_update: GoalUpdate,
    current_user: CurrentUser,
    storage: StorageDep,
) -> GoalResponse:
    """Partial update; the baseline recorded at creation never changes."""
    goal = await _get_owned_goal(goal_id, current_user, storage)

    update_data = goal_update.model_dump(exclude_unset=True, mode="json")
    if "deadline" in update_data:
        update_data["deadline"] = goal_update.deadline
    for field in ("goal_type", "target_metric", "target_value", "status"):
        if field in update_data and update_data[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} cannot be cleared",
            )

    goal = await storage.update_goal(goal, update_data)
    return goal_to_response(goal)


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(
    goal_id: str,
    current_user: CurrentUser,
    storage: StorageDep,
) -> None:
    goal = await _get_owned_goal(goal_id, current_user, storage)
    await storage.delete_goal(goal)
