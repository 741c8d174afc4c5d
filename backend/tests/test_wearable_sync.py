"""Tests for the wearable sync service: token lifecycle and idempotent day upserts."""
from datetime import timedelta

import pytest

from cyclewise.integrations.ultrahuman.client import UltrahumanTokenExpired
from cyclewise.models import User
from cyclewise.services.storage import Storage
from cyclewise.services.wearable_sync import (
    WearableNotConnected,
    WearableReauthorizationRequired,
    WearableSyncService,
)
from cyclewise.utils.datetime_helper import today_utc, utcnow
from tests.factories import metric_payload


@pytest.fixture
def storage(db_session) -> Storage:
    return Storage(db_session)


@pytest.fixture
def service(storage, ultrahuman_client, test_settings) -> WearableSyncService:
    return WearableSyncService(storage, ultrahuman_client, test_settings)


async def store_token(storage: Storage, user: User, expires_in: timedelta, refresh_token="refresh-1"):
    return await storage.save_token(
        user_id=user.id,
        access_token="access-1",
        refresh_token=refresh_token,
        expires_at=utcnow() + expires_in,
        scope="ring_data",
    )


@pytest.mark.asyncio
class TestTokenLifecycle:
    async def test_connect_stores_token(self, service, storage, test_user: User):
        token = await service.connect(test_user.id, "auth-code")

        assert token.access_token == "access-1"
        assert token.refresh_token == "refresh-1"
        assert token.scope == "ring_data cgm_data profile"
        assert token.expires_at > utcnow() + timedelta(minutes=55)

    async def test_reconnect_replaces_single_row(self, service, storage, ultrahuman_api, test_user: User):
        await service.connect(test_user.id, "code-1")
        ultrahuman_api.token_body = {**ultrahuman_api.token_body, "access_token": "access-9"}

        first = await storage.get_token(test_user.id)
        second = await service.connect(test_user.id, "code-2")

        assert second.id == first.id
        assert second.access_token == "access-9"

    async def test_not_connected(self, service, test_user: User):
        with pytest.raises(WearableNotConnected):
            await service.get_valid_token(test_user.id)

    async def test_valid_token_untouched(self, service, storage, ultrahuman_api, test_user: User):
        await store_token(storage, test_user, timedelta(hours=1))

        token = await service.get_valid_token(test_user.id)

        assert token.access_token == "access-1"
        assert ultrahuman_api.requests == []

    async def test_expired_token_refreshed_in_place(self, service, storage, test_user: User):
        original = await store_token(storage, test_user, timedelta(seconds=-1))

        token = await service.get_valid_token(test_user.id)

        assert token.id == original.id
        assert token.access_token == "access-2"
        assert token.refresh_token == "refresh-2"
        assert token.expires_at > utcnow()

    async def test_refresh_failure_requires_reauthorization(self, service, storage, ultrahuman_api, test_user: User):
        await store_token(storage, test_user, timedelta(seconds=-1))
        ultrahuman_api.refresh_status = 400
        ultrahuman_api.refresh_body = {"error": "invalid_grant"}

        with pytest.raises(WearableReauthorizationRequired):
            await service.get_valid_token(test_user.id)

    async def test_non_json_refresh_requires_reauthorization(
        self, service, storage, ultrahuman_api, test_user: User
    ):
        await store_token(storage, test_user, timedelta(seconds=-1))
        ultrahuman_api.refresh_body = "<html>Bad Gateway</html>"

        with pytest.raises(WearableReauthorizationRequired):
            await service.get_valid_token(test_user.id)

    async def test_missing_refresh_token_requires_reauthorization(self, service, storage, test_user: User):
        await store_token(storage, test_user, timedelta(seconds=-1), refresh_token=None)

        with pytest.raises(WearableReauthorizationRequired):
            await service.get_valid_token(test_user.id)

    async def test_refresh_keeps_old_refresh_token_when_omitted(self, service, storage, ultrahuman_api, test_user: User):
        token = await store_token(storage, test_user, timedelta(hours=1))
        ultrahuman_api.refresh_body = {"access_token": "access-3", "expires_in": 600}

        refreshed = await service.refresh(token)

        assert refreshed.access_token == "access-3"
        assert refreshed.refresh_token == "refresh-1"


@pytest.mark.asyncio
class TestSyncUser:
    async def test_sync_creates_rows(self, service, storage, ultrahuman_api, test_user: User):
        await store_token(storage, test_user, timedelta(hours=1))
        today = today_utc()
        ultrahuman_api.set_day(today, metric_payload(sleep={"score": 80}, hrv={"avg": 50}))
        ultrahuman_api.set_day(today - timedelta(days=1), metric_payload(steps={"total": 9000}))

        result = await service.sync_user(test_user.id)

        assert result.days_requested == 7
        assert result.days_synced == 2
        assert result.created == 2
        assert result.updated == 0
        assert result.failed_dates == []
        assert len(ultrahuman_api.metric_requests()) == 7

        rows = await storage.list_metrics(test_user.id)
        assert [r.date for r in rows] == [today, today - timedelta(days=1)]
        assert rows[0].sleep_score == 80
        assert rows[0].hrv == 50
        assert rows[1].steps == 9000

    async def test_sync_twice_is_idempotent(self, service, storage, ultrahuman_api, test_user: User):
        await store_token(storage, test_user, timedelta(hours=1))
        today = today_utc()
        ultrahuman_api.set_day(today, metric_payload(sleep={"score": 80}))

        await service.sync_user(test_user.id)
        second = await service.sync_user(test_user.id)

        assert second.created == 0
        assert second.updated == 1
        rows = await storage.list_metrics(test_user.id)
        assert len(rows) == 1

    async def test_partial_payload_never_nulls_existing_values(self, service, storage, ultrahuman_api, test_user: User):
        await store_token(storage, test_user, timedelta(hours=1))
        today = today_utc()
        ultrahuman_api.set_day(today, metric_payload(sleep={"score": 80}, hrv={"avg": 50}))
        await service.sync_user(test_user.id)

        ultrahuman_api.set_day(today, metric_payload(hrv={"avg": 55}))
        await service.sync_user(test_user.id)

        row = await storage.get_metric_for_date(test_user.id, today)
        await storage.db.refresh(row)
        assert row.sleep_score == 80
        assert row.hrv == 55
        assert row.raw_data == metric_payload(hrv={"avg": 55})

    async def test_failed_day_dropped(self, service, storage, ultrahuman_api, test_user: User):
        await store_token(storage, test_user, timedelta(hours=1))
        today = today_utc()
        ultrahuman_api.set_day(today, metric_payload(sleep={"score": 80}))
        ultrahuman_api.set_day(today - timedelta(days=2), {"message": "upstream"}, status_code=500)

        result = await service.sync_user(test_user.id)

        assert result.days_synced == 1
        assert result.failed_dates == [today - timedelta(days=2)]

    async def test_non_json_day_dropped(self, service, storage, ultrahuman_api, test_user: User):
        await store_token(storage, test_user, timedelta(hours=1))
        today = today_utc()
        ultrahuman_api.set_day(today, metric_payload(steps={"total": 6100}))
        ultrahuman_api.set_day(today - timedelta(days=1), "<html>maintenance</html>")

        result = await service.sync_user(test_user.id)

        assert result.days_synced == 1
        assert result.failed_dates == [today - timedelta(days=1)]
        rows = await storage.list_metrics(test_user.id)
        assert [row.steps for row in rows] == [6100]

    async def test_vendor_401_raises_token_expired(self, service, storage, ultrahuman_api, test_user: User):
        await store_token(storage, test_user, timedelta(hours=1))
        ultrahuman_api.rejected_tokens.add("access-1")

        with pytest.raises(UltrahumanTokenExpired):
            await service.sync_user(test_user.id)

    async def test_expired_token_refreshed_before_fetch(self, service, storage, ultrahuman_api, test_user: User):
        await store_token(storage, test_user, timedelta(seconds=-1))

        result = await service.sync_user(test_user.id)

        assert result.token_refreshed is True
        metric_auth = {r.headers["Authorization"] for r in ultrahuman_api.metric_requests()}
        assert metric_auth == {"Bearer access-2"}


@pytest.mark.asyncio
class TestSyncDirect:
    async def test_direct_sync_without_stored_token(self, service, storage, ultrahuman_api, test_user: User):
        ultrahuman_api.set_day(today_utc(), metric_payload(recovery={"value": 70}))

        result = await service.sync_direct(test_user.id, "test@example.com")

        assert result.days_synced == 1
        assert all(r.url.params["email"] == "test@example.com" for r in ultrahuman_api.metric_requests())
        rows = await storage.list_metrics(test_user.id)
        assert rows[0].recovery_score == 70
