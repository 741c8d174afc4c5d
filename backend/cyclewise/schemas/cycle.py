from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from cyclewise.schemas.enums import CyclePhase, FlowIntensity


class CycleBase(BaseModel):
    period_start_date: date
    period_end_date: date | None = None
    cycle_length: int | None = Field(None, ge=10, le=90, description="Override for the default 28 days")
    flow_intensity: FlowIntensity | None = None
    symptoms: list[str] = Field(default_factory=list, description="Free-text tags, order preserved")
    notes: str | None = None

    @model_validator(mode="after")
    def check_end_after_start(self):
        if self.period_end_date is not None and self.period_end_date < self.period_start_date:
            raise ValueError("period_end_date must not be before period_start_date")
        return self


class CycleCreate(CycleBase):
    user_id: str


class CycleUpdate(BaseModel):
    period_start_date: date | None = None
    period_end_date: date | None = None
    cycle_length: int | None = Field(None, ge=10, le=90)
    flow_intensity: FlowIntensity | None = None
    symptoms: list[str] | None = None
    notes: str | None = None


class CycleResponse(CycleBase):
    id: str
    user_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CycleStatusResponse(BaseModel):
    cycle_id: str
    period_start_date: date
    phase: CyclePhase
    phase_name: str
    phase_description: str
    day_of_cycle: int
    cycle_length: int
    next_period_date: date
    days_until_next_period: int
    start_in_future: bool = False
