from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from cyclewise.ai.base import ForecastBackend
from cyclewise.config import Settings, get_settings
from cyclewise.database import get_db
from cyclewise.integrations.ultrahuman.client import UltrahumanClient
from cyclewise.services.auth import InvalidToken, Principal, decode_access_token
from cyclewise.services.storage import Storage
from cyclewise.services.wearable_sync import WearableSyncService

bearer_scheme = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


async def get_current_principal(
    settings: SettingsDep,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """Resolve the bearer token to the calling identity."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(settings, credentials.credentials)
    except InvalidToken as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


CurrentUser = Annotated[Principal, Depends(get_current_principal)]


def ensure_owner(user_id: str, principal: Principal) -> None:
    """Reject access to another user's data before anything is read."""
    if user_id != principal.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )


def get_storage(db: DbSession) -> Storage:
    return Storage(db)


StorageDep = Annotated[Storage, Depends(get_storage)]


def get_ultrahuman_client(request: Request) -> UltrahumanClient:
    return request.app.state.ultrahuman_client


UltrahumanClientDep = Annotated[UltrahumanClient, Depends(get_ultrahuman_client)]


def get_forecast_backend(request: Request) -> ForecastBackend:
    return request.app.state.forecast_backend


ForecastBackendDep = Annotated[ForecastBackend, Depends(get_forecast_backend)]


def get_sync_service(
    storage: StorageDep,
    client: UltrahumanClientDep,
    settings: SettingsDep,
) -> WearableSyncService:
    return WearableSyncService(storage, client, settings)


SyncServiceDep = Annotated[WearableSyncService, Depends(get_sync_service)]
