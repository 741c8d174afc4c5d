import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cyclewise.database import Base
from cyclewise.utils.datetime_helper import utcnow


class User(Base):
    __tablename__ = "users"

    # String ids so identities issued by an external provider fit as-is
    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)  # local auth only
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    # Relationships
    wearable_token = relationship(
        "WearableToken", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    health_metrics = relationship("HealthMetric", back_populates="user", cascade="all, delete-orphan")
    wellness_forecasts = relationship("WellnessForecast", back_populates="user", cascade="all, delete-orphan")
    cycles = relationship("CycleTracking", back_populates="user", cascade="all, delete-orphan")
    goals = relationship("HealthGoal", back_populates="user", cascade="all, delete-orphan")
