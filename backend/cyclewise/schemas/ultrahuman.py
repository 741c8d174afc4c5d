from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field


class AuthUrlResponse(BaseModel):
    auth_url: str
    state: str


class CallbackRequest(BaseModel):
    code: str = Field(..., min_length=1)
    user_id: str
    redirect_uri: str | None = None


class CallbackResponse(BaseModel):
    success: bool = True
    expires_at: datetime
    scope: str


class ConnectionStatusResponse(BaseModel):
    connected: bool
    expires_at: datetime | None = None
    expired: bool | None = None
    scope: str | None = None


class SyncRequest(BaseModel):
    user_id: str


class DirectSyncRequest(SyncRequest):
    email: EmailStr | None = None


class SyncResponse(BaseModel):
    success: bool = True
    days_requested: int
    metrics_count: int
    created: int
    updated: int
    failed_dates: list[date] = []
    token_refreshed: bool = False
