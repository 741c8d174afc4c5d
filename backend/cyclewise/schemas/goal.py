from datetime import date, datetime

from pydantic import BaseModel, Field

from cyclewise.schemas.enums import GoalMetric, GoalStatus, GoalType


class GoalBase(BaseModel):
    goal_type: GoalType
    target_metric: GoalMetric
    target_value: float
    current_value: float | None = None
    deadline: date | None = None
    status: GoalStatus = GoalStatus.ACTIVE
    description: str | None = None


class GoalCreate(GoalBase):
    user_id: str
    baseline_value: float | None = Field(
        None, description="Defaults to current_value when omitted"
    )


class GoalUpdate(BaseModel):
    # baseline_value is fixed at creation
    goal_type: GoalType | None = None
    target_metric: GoalMetric | None = None
    target_value: float | None = None
    current_value: float | None = None
    deadline: date | None = None
    status: GoalStatus | None = None
    description: str | None = None


class GoalResponse(GoalBase):
    id: str
    user_id: str
    baseline_value: float | None = None
    progress: float = Field(..., description="Completion percentage; may be negative")
    achieved: bool
    created_at: datetime
    updated_at: datetime
