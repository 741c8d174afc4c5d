import logging

from fastapi import APIRouter, HTTPException, Query, status

from cyclewise.api.deps import CurrentUser, StorageDep, SyncServiceDep, UltrahumanClientDep, ensure_owner
from cyclewise.config import ConfigurationError
from cyclewise.integrations.ultrahuman.client import UltrahumanAPIError, UltrahumanTokenExpired
from cyclewise.schemas.ultrahuman import (
    AuthUrlResponse,
    CallbackRequest,
    CallbackResponse,
    ConnectionStatusResponse,
    DirectSyncRequest,
    SyncRequest,
    SyncResponse,
)
from cyclewise.services.wearable_sync import (
    SyncResult,
    WearableNotConnected,
    WearableReauthorizationRequired,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def _configuration_error(e: ConfigurationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(e),
    )


def _reauthorization_required(e: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "reauthorization_required", "message": str(e)},
    )


def _not_connected() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Ultrahuman not connected",
    )


def _upstream_error(e: UltrahumanAPIError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=e.message,
    )


def _sync_response(result: SyncResult) -> SyncResponse:
    return SyncResponse(
        days_requested=result.days_requested,
        metrics_count=result.days_synced,
        created=result.created,
        updated=result.updated,
        failed_dates=result.failed_dates,
        token_refreshed=result.token_refreshed,
    )


@router.get("/auth-url", response_model=AuthUrlResponse)
async def get_auth_url(
    current_user: CurrentUser,
    client: UltrahumanClientDep,
    redirect_uri: str | None = Query(None),
) -> AuthUrlResponse:
    """Authorization URL for linking an Ultrahuman account; state carries the user id."""
    try:
        url = client.authorization_url(state=current_user.user_id, redirect_uri=redirect_uri)
    except ConfigurationError as e:
        raise _configuration_error(e)
    return AuthUrlResponse(auth_url=url, state=current_user.user_id)


@router.post("/callback", response_model=CallbackResponse)
async def oauth_callback(
    callback_in: CallbackRequest,
    current_user: CurrentUser,
    service: SyncServiceDep,
) -> CallbackResponse:
    """Exchange the authorization code and store the credential."""
    ensure_owner(callback_in.user_id, current_user)

    try:
        token = await service.connect(callback_in.user_id, callback_in.code, callback_in.redirect_uri)
    except ConfigurationError as e:
        raise _configuration_error(e)
    except UltrahumanAPIError as e:
        raise _upstream_error(e)

    return CallbackResponse(expires_at=token.expires_at, scope=token.scope)


@router.get("/status", response_model=ConnectionStatusResponse)
async def connection_status(
    current_user: CurrentUser,
    storage: StorageDep,
) -> ConnectionStatusResponse:
    token = await storage.get_token(current_user.user_id)
    if token is None:
        return ConnectionStatusResponse(connected=False)
    return ConnectionStatusResponse(
        connected=True,
        expires_at=token.expires_at,
        expired=token.is_expired(),
        scope=token.scope,
    )


@router.post("/sync", response_model=SyncResponse)
async def sync_metrics(
    sync_in: SyncRequest,
    current_user: CurrentUser,
    service: SyncServiceDep,
) -> SyncResponse:
    """
    Pull the trailing week from Ultrahuman.

    A vendor 401 triggers one forced refresh and one retry.
    """
    ensure_owner(sync_in.user_id, current_user)

    try:
        try:
            result = await service.sync_user(sync_in.user_id)
        except UltrahumanTokenExpired:
            logger.info("Ultrahuman rejected token; refreshing and retrying once")
            await service.refresh(await service.require_token(sync_in.user_id))
            try:
                result = await service.sync_user(sync_in.user_id)
            except UltrahumanTokenExpired as e:
                raise _reauthorization_required(e)
            result.token_refreshed = True
    except WearableNotConnected:
        raise _not_connected()
    except WearableReauthorizationRequired as e:
        raise _reauthorization_required(e)
    except ConfigurationError as e:
        raise _configuration_error(e)
    except UltrahumanAPIError as e:
        raise _upstream_error(e)

    return _sync_response(result)


@router.post("/sync-direct", response_model=SyncResponse)
async def sync_metrics_direct(
    sync_in: DirectSyncRequest,
    current_user: CurrentUser,
    service: SyncServiceDep,
) -> SyncResponse:
    """Pull the trailing week with the configured partner token."""
    ensure_owner(sync_in.user_id, current_user)

    try:
        result = await service.sync_direct(sync_in.user_id, sync_in.email or current_user.email)
    except ConfigurationError as e:
        raise _configuration_error(e)
    except UltrahumanAPIError as e:
        raise _upstream_error(e)

    return _sync_response(result)
