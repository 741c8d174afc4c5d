"""
Ultrahuman partner API client.

One httpx.AsyncClient per process; built in the app lifespan and closed on
shutdown. Pass a `transport` to swap the network out in tests.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from cyclewise.config import Settings

logger = logging.getLogger(__name__)

AUTHORIZE_PATH = "/oauth/authorize"
TOKEN_PATH = "/oauth/token"
OAUTH_METRICS_PATH = "/api/partners/v1/metrics"
DIRECT_METRICS_PATH = "/api/v1/partner/daily_metrics"


class UltrahumanAPIError(Exception):
    """Ultrahuman API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UltrahumanTokenExpired(UltrahumanAPIError):
    """The vendor rejected the access token (HTTP 401)."""

    def __init__(self, message: str = "Ultrahuman access token expired"):
        super().__init__(message, status_code=401)


@dataclass
class TokenResponse:
    access_token: str
    refresh_token: Optional[str]
    expires_in: int
    scope: str = ""
    token_type: str = "Bearer"

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "TokenResponse":
        if not payload.get("access_token"):
            raise UltrahumanAPIError("Token response missing access_token")
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_in=int(payload.get("expires_in") or 0),
            scope=payload.get("scope") or "",
            token_type=payload.get("token_type") or "Bearer",
        )


def _error_message(response: httpx.Response, default: str) -> str:
    """Prefer the vendor's `message`/`error` field over a generic message."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        detail = body.get("message") or body.get("error_description") or body.get("error")
        if isinstance(detail, str) and detail:
            return detail
    return default


class UltrahumanClient:
    """Ultrahuman partner API client"""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.base_url = settings.ultrahuman_base_url.rstrip("/")
        self.http_client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.ultrahuman_timeout_seconds,
            transport=transport,
        )

    async def close(self) -> None:
        await self.http_client.aclose()

    def _require_oauth_credentials(self) -> None:
        self.settings.require("ultrahuman_client_id", "ultrahuman_client_secret")

    def authorization_url(self, state: str, redirect_uri: Optional[str] = None) -> str:
        self.settings.require("ultrahuman_client_id")
        params = {
            "response_type": "code",
            "client_id": self.settings.ultrahuman_client_id,
            "redirect_uri": redirect_uri or self.settings.ultrahuman_redirect_uri,
            "scope": self.settings.ultrahuman_scope,
            "state": state,
        }
        return f"{self.base_url}{AUTHORIZE_PATH}?{urlencode(params)}"

    async def _post_token(self, data: dict[str, str], action: str) -> TokenResponse:
        try:
            response = await self.http_client.post(TOKEN_PATH, data=data)
        except httpx.HTTPError as e:
            logger.error("Ultrahuman %s request failed: %s", action, e)
            raise UltrahumanAPIError(f"Ultrahuman {action} request failed") from e

        if response.is_error:
            logger.error(
                "Ultrahuman %s failed: %s %s", action, response.status_code, response.text[:200]
            )
            raise UltrahumanAPIError(
                _error_message(response, f"Failed to {action}"), response.status_code
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error("Ultrahuman %s returned a non-JSON body", action)
            raise UltrahumanAPIError("Invalid JSON from Ultrahuman", response.status_code) from e

        logger.info("Ultrahuman %s succeeded", action)
        return TokenResponse.from_payload(payload)

    async def exchange_code(self, code: str, redirect_uri: Optional[str] = None) -> TokenResponse:
        """Exchange an authorization code for an access/refresh token pair."""
        self._require_oauth_credentials()
        data = {
            "grant_type": "authorization_code",
            "client_id": self.settings.ultrahuman_client_id,
            "client_secret": self.settings.ultrahuman_client_secret,
            "code": code,
            "redirect_uri": redirect_uri or self.settings.ultrahuman_redirect_uri,
        }
        return await self._post_token(data, "exchange authorization code")

    async def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        self._require_oauth_credentials()
        data = {
            "grant_type": "refresh_token",
            "client_id": self.settings.ultrahuman_client_id,
            "client_secret": self.settings.ultrahuman_client_secret,
            "refresh_token": refresh_token,
        }
        return await self._post_token(data, "refresh access token")

    async def _get_metrics(
        self, path: str, params: dict[str, str], authorization: str
    ) -> dict[str, Any] | list[Any]:
        try:
            response = await self.http_client.get(
                path, params=params, headers={"Authorization": authorization}
            )
        except httpx.HTTPError as e:
            logger.error("Ultrahuman request failed: %s date=%s - %s", path, params.get("date"), e)
            raise UltrahumanAPIError("Failed to fetch daily metrics") from e

        if response.status_code == 401:
            raise UltrahumanTokenExpired()
        if response.is_error:
            logger.error(
                "Ultrahuman request failed: %s date=%s - %s %s",
                path, params.get("date"), response.status_code, response.text[:200],
            )
            raise UltrahumanAPIError(
                _error_message(response, "Failed to fetch daily metrics"), response.status_code
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.error("Ultrahuman returned a non-JSON body: %s date=%s", path, params.get("date"))
            raise UltrahumanAPIError("Invalid JSON from Ultrahuman", response.status_code) from e

    async def fetch_daily_metrics(self, access_token: str, day: date) -> dict[str, Any] | list[Any]:
        """Fetch one day of metrics through the OAuth partner endpoint."""
        return await self._get_metrics(
            OAUTH_METRICS_PATH, {"date": day.isoformat()}, f"Bearer {access_token}"
        )

    async def fetch_daily_metrics_direct(
        self, day: date, email: Optional[str] = None
    ) -> dict[str, Any] | list[Any]:
        """Fetch one day of metrics with the configured partner token."""
        self.settings.require("ultrahuman_access_token")
        params = {"date": day.isoformat()}
        if email:
            params["email"] = email
        # The partner endpoint takes the raw token, without a Bearer prefix
        return await self._get_metrics(
            DIRECT_METRICS_PATH, params, self.settings.ultrahuman_access_token
        )
