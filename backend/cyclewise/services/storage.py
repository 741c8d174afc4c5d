"""
Storage - Typed record access over one AsyncSession.

No business rules live here; callers decide what to read and write.
Write methods commit immediately, like the route handlers always have.
"""
from datetime import date, datetime
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cyclewise.models import (
    CycleTracking,
    HealthGoal,
    HealthMetric,
    User,
    WearableToken,
    WellnessForecast,
)
from cyclewise.utils.datetime_helper import utcnow

METRICS_DEFAULT_LIMIT = 30
CYCLES_DEFAULT_LIMIT = 12


class Storage:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _save(self, obj):
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    @staticmethod
    def _apply(obj, fields: dict[str, Any]) -> None:
        for key, value in fields.items():
            setattr(obj, key, value)

    # =========================================================================
    # Users
    # =========================================================================

    async def get_user(self, user_id: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def create_user(
        self,
        email: str,
        name: Optional[str] = None,
        password_hash: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> User:
        user = User(email=email, name=name, password_hash=password_hash)
        if user_id:
            user.id = user_id
        return await self._save(user)

    async def upsert_user(self, user_id: str, email: str, name: Optional[str] = None) -> User:
        """Create the user row for an external identity, or refresh its email/name."""
        user = await self.get_user(user_id)
        if user is None:
            return await self.create_user(email=email, name=name, user_id=user_id)

        user.email = email
        if name is not None:
            user.name = name
        return await self._save(user)

    async def update_user(self, user: User, fields: dict[str, Any]) -> User:
        self._apply(user, fields)
        return await self._save(user)

    # =========================================================================
    # Wearable tokens
    # =========================================================================

    async def get_token(self, user_id: str) -> Optional[WearableToken]:
        result = await self.db.execute(
            select(WearableToken).where(WearableToken.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def save_token(
        self,
        user_id: str,
        access_token: str,
        refresh_token: Optional[str],
        expires_at: datetime,
        scope: str,
    ) -> WearableToken:
        """Insert or replace the single token row for a user."""
        token = await self.get_token(user_id)
        if token is None:
            token = WearableToken(user_id=user_id)
        token.access_token = access_token
        token.refresh_token = refresh_token
        token.expires_at = expires_at
        token.scope = scope
        return await self._save(token)

    async def update_token(self, token: WearableToken, fields: dict[str, Any]) -> WearableToken:
        self._apply(token, fields)
        token.updated_at = utcnow()
        return await self._save(token)

    # =========================================================================
    # Health metrics
    # =========================================================================

    async def list_metrics(self, user_id: str, limit: int = METRICS_DEFAULT_LIMIT) -> Sequence[HealthMetric]:
        result = await self.db.execute(
            select(HealthMetric)
            .where(HealthMetric.user_id == user_id)
            .order_by(HealthMetric.date.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def list_metrics_in_range(self, user_id: str, start: date, end: date) -> Sequence[HealthMetric]:
        result = await self.db.execute(
            select(HealthMetric)
            .where(
                HealthMetric.user_id == user_id,
                HealthMetric.date >= start,
                HealthMetric.date <= end,
            )
            .order_by(HealthMetric.date.desc())
        )
        return result.scalars().all()

    async def get_metric_for_date(self, user_id: str, day: date) -> Optional[HealthMetric]:
        result = await self.db.execute(
            select(HealthMetric).where(
                HealthMetric.user_id == user_id,
                HealthMetric.date == day,
            )
        )
        return result.scalar_one_or_none()

    async def upsert_metric(
        self,
        user_id: str,
        day: date,
        fields: dict[str, Any],
        raw: Any = None,
    ) -> tuple[HealthMetric, bool]:
        """
        Merge one day of values into the (user, date) row.

        Only non-None values are written, so a partial payload never nulls out
        a previously synced column. Returns (row, created).
        """
        metric = await self.get_metric_for_date(user_id, day)
        created = metric is None
        if created:
            metric = HealthMetric(user_id=user_id, date=day)

        self._apply(metric, {k: v for k, v in fields.items() if v is not None})
        metric.raw_data = raw
        if not created:
            metric.updated_at = utcnow()
        return await self._save(metric), created

    # =========================================================================
    # Wellness forecasts
    # =========================================================================

    async def get_latest_forecast(self, user_id: str) -> Optional[WellnessForecast]:
        result = await self.db.execute(
            select(WellnessForecast)
            .where(WellnessForecast.user_id == user_id)
            .order_by(WellnessForecast.generated_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_forecast(self, user_id: str, **fields: Any) -> WellnessForecast:
        return await self._save(WellnessForecast(user_id=user_id, **fields))

    # =========================================================================
    # Cycles
    # =========================================================================

    async def list_cycles(self, user_id: str, limit: int = CYCLES_DEFAULT_LIMIT) -> Sequence[CycleTracking]:
        result = await self.db.execute(
            select(CycleTracking)
            .where(CycleTracking.user_id == user_id)
            .order_by(CycleTracking.period_start_date.desc(), CycleTracking.created_at.desc())
            .limit(limit)
        )
        return result.scalars().all()

    async def list_cycles_in_range(self, user_id: str, start: date, end: date) -> Sequence[CycleTracking]:
        result = await self.db.execute(
            select(CycleTracking)
            .where(
                CycleTracking.user_id == user_id,
                CycleTracking.period_start_date >= start,
                CycleTracking.period_start_date <= end,
            )
            .order_by(CycleTracking.period_start_date.desc())
        )
        return result.scalars().all()

    async def get_latest_cycle(self, user_id: str) -> Optional[CycleTracking]:
        cycles = await self.list_cycles(user_id, limit=1)
        return cycles[0] if cycles else None

    async def get_cycle(self, cycle_id: str) -> Optional[CycleTracking]:
        result = await self.db.execute(select(CycleTracking).where(CycleTracking.id == cycle_id))
        return result.scalar_one_or_none()

    async def create_cycle(self, user_id: str, **fields: Any) -> CycleTracking:
        return await self._save(CycleTracking(user_id=user_id, **fields))

    async def update_cycle(self, cycle: CycleTracking, fields: dict[str, Any]) -> CycleTracking:
        self._apply(cycle, fields)
        cycle.updated_at = utcnow()
        return await self._save(cycle)

    # =========================================================================
    # Goals
    # =========================================================================

    async def list_goals(self, user_id: str, status: Optional[str] = None) -> Sequence[HealthGoal]:
        query = select(HealthGoal).where(HealthGoal.user_id == user_id)
        if status:
            query = query.where(HealthGoal.status == status)
        result = await self.db.execute(query.order_by(HealthGoal.created_at.desc()))
        return result.scalars().all()

    async def get_goal(self, goal_id: str) -> Optional[HealthGoal]:
        result = await self.db.execute(select(HealthGoal).where(HealthGoal.id == goal_id))
        return result.scalar_one_or_none()

    async def create_goal(self, user_id: str, **fields: Any) -> HealthGoal:
        return await self._save(HealthGoal(user_id=user_id, **fields))

    async def update_goal(self, goal: HealthGoal, fields: dict[str, Any]) -> HealthGoal:
        self._apply(goal, fields)
        goal.updated_at = utcnow()
        return await self._save(goal)

    async def delete_goal(self, goal: HealthGoal) -> None:
        await self.db.delete(goal)
        await self.db.commit()
