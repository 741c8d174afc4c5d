"""
Wearable Sync Service - Ultrahuman token lifecycle and daily metric sync.

Token states: Unlinked -> Exchanging -> Linked -> (expired) Refreshing -> Linked,
or -> ReauthorizationRequired when the refresh fails.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Awaitable, Callable, Optional

from cyclewise.config import Settings
from cyclewise.integrations.ultrahuman.client import (
    TokenResponse,
    UltrahumanAPIError,
    UltrahumanClient,
    UltrahumanTokenExpired,
)
from cyclewise.integrations.ultrahuman.payloads import extract_daily_metrics
from cyclewise.models import WearableToken
from cyclewise.services.storage import Storage
from cyclewise.utils.datetime_helper import trailing_days, utcnow

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 3600


class WearableNotConnected(Exception):
    """The user has no stored Ultrahuman credential."""


class WearableReauthorizationRequired(Exception):
    """The stored credential cannot be refreshed; the user must reconnect."""


@dataclass
class SyncResult:
    days_requested: int
    days_synced: int = 0
    created: int = 0
    updated: int = 0
    failed_dates: list[date] = field(default_factory=list)
    token_refreshed: bool = False


DayFetcher = Callable[[date], Awaitable[Any]]


class WearableSyncService:
    def __init__(self, storage: Storage, client: UltrahumanClient, settings: Settings):
        self.storage = storage
        self.client = client
        self.settings = settings

    # =========================================================================
    # Token lifecycle
    # =========================================================================

    @staticmethod
    def _token_fields(tokens: TokenResponse, previous_refresh: Optional[str] = None) -> dict[str, Any]:
        expires_in = tokens.expires_in or DEFAULT_EXPIRES_IN
        return {
            "access_token": tokens.access_token,
            "refresh_token": tokens.refresh_token or previous_refresh,
            "expires_at": utcnow() + timedelta(seconds=expires_in),
        }

    async def connect(self, user_id: str, code: str, redirect_uri: Optional[str] = None) -> WearableToken:
        """Exchange an authorization code and store (or replace) the user's token."""
        tokens = await self.client.exchange_code(code, redirect_uri)
        fields = self._token_fields(tokens)
        token = await self.storage.save_token(
            user_id=user_id,
            access_token=fields["access_token"],
            refresh_token=fields["refresh_token"],
            expires_at=fields["expires_at"],
            scope=tokens.scope or self.settings.ultrahuman_scope,
        )
        logger.info("Ultrahuman connected", extra={"user_id": user_id})
        return token

    async def require_token(self, user_id: str) -> WearableToken:
        token = await self.storage.get_token(user_id)
        if token is None:
            raise WearableNotConnected("Ultrahuman not connected")
        return token

    async def refresh(self, token: WearableToken) -> WearableToken:
        """
        Refresh a token in place.

        Raises:
            WearableReauthorizationRequired: no refresh token, or the vendor refused it
        """
        if not token.refresh_token:
            raise WearableReauthorizationRequired("No refresh token stored; reconnect Ultrahuman")

        try:
            tokens = await self.client.refresh_access_token(token.refresh_token)
        except UltrahumanAPIError as e:
            logger.warning("Ultrahuman token refresh failed: %s", e.message, extra={"user_id": token.user_id})
            raise WearableReauthorizationRequired("Ultrahuman authorization expired; reconnect Ultrahuman") from e

        logger.info("Ultrahuman token refreshed", extra={"user_id": token.user_id})
        return await self.storage.update_token(token, self._token_fields(tokens, token.refresh_token))

    async def _valid_token(self, user_id: str) -> tuple[WearableToken, bool]:
        token = await self.require_token(user_id)
        if token.is_expired():
            return await self.refresh(token), True
        return token, False

    async def get_valid_token(self, user_id: str) -> WearableToken:
        token, _ = await self._valid_token(user_id)
        return token

    # =========================================================================
    # Sync
    # =========================================================================

    async def fetch_week(self, days: list[date], fetch: DayFetcher) -> tuple[dict[date, Any], list[date]]:
        """
        Fetch every day concurrently and wait for all of them.

        Failed days are dropped and reported. If any day came back 401 the
        whole fetch raises UltrahumanTokenExpired so the caller can refresh.
        """
        results = await asyncio.gather(*(fetch(day) for day in days), return_exceptions=True)

        payloads: dict[date, Any] = {}
        failed: list[date] = []
        token_expired = False
        for day, result in zip(days, results):
            if isinstance(result, UltrahumanTokenExpired):
                token_expired = True
                failed.append(day)
            elif isinstance(result, UltrahumanAPIError):
                logger.warning("Dropping Ultrahuman day %s: %s", day, result.message)
                failed.append(day)
            elif isinstance(result, BaseException):
                raise result
            else:
                payloads[day] = result

        if token_expired:
            raise UltrahumanTokenExpired()
        return payloads, failed

    async def upsert_day(self, user_id: str, day: date, values: dict[str, Any], raw: Any) -> bool:
        """Merge one day into storage. Returns True when a new row was created."""
        _, created = await self.storage.upsert_metric(user_id, day, values, raw)
        return created

    async def _store(self, user_id: str, days: list[date], payloads: dict[date, Any], failed: list[date]) -> SyncResult:
        result = SyncResult(days_requested=len(days), failed_dates=sorted(failed, reverse=True))
        for day in days:
            if day not in payloads:
                continue
            values = extract_daily_metrics(payloads[day])
            if values.is_empty():
                logger.debug("No Ultrahuman metrics for %s", day, extra={"user_id": user_id})
                continue
            if await self.upsert_day(user_id, day, values.reported(), payloads[day]):
                result.created += 1
            else:
                result.updated += 1
            result.days_synced += 1

        logger.info(
            "Ultrahuman sync finished: synced=%d created=%d updated=%d failed=%d",
            result.days_synced, result.created, result.updated, len(result.failed_dates),
            extra={"user_id": user_id},
        )
        return result

    async def sync_user(self, user_id: str) -> SyncResult:
        """Sync the trailing week through the user's OAuth token."""
        token, refreshed = await self._valid_token(user_id)
        days = trailing_days(self.settings.sync_days)
        logger.info("Ultrahuman sync started: days=%d", len(days), extra={"user_id": user_id})

        access_token = token.access_token
        payloads, failed = await self.fetch_week(
            days, lambda day: self.client.fetch_daily_metrics(access_token, day)
        )
        result = await self._store(user_id, days, payloads, failed)
        result.token_refreshed = refreshed
        return result

    async def sync_direct(self, user_id: str, email: Optional[str] = None) -> SyncResult:
        """Sync the trailing week with the configured partner token."""
        self.settings.require("ultrahuman_access_token")
        days = trailing_days(self.settings.sync_days)
        logger.info("Ultrahuman direct sync started: days=%d", len(days), extra={"user_id": user_id})

        payloads, failed = await self.fetch_week(
            days, lambda day: self.client.fetch_daily_metrics_direct(day, email)
        )
        return await self._store(user_id, days, payloads, failed)
