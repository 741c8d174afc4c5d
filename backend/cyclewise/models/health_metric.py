import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cyclewise.database import Base, JSONType
from cyclewise.utils.datetime_helper import utcnow


class HealthMetric(Base):
    __tablename__ = "health_metrics"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_health_metrics_user_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    date: Mapped[date] = mapped_column(Date, index=True, nullable=False)

    # Sleep & recovery
    sleep_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sleep_duration: Mapped[float | None] = mapped_column(Float, nullable=True)  # hours
    hrv: Mapped[int | None] = mapped_column(Integer, nullable=True)  # ms
    resting_heart_rate: Mapped[int | None] = mapped_column(Integer, nullable=True)
    recovery_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Activity & metabolic
    steps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    avg_glucose: Mapped[float | None] = mapped_column(Float, nullable=True)  # mg/dL
    glucose_variability: Mapped[float | None] = mapped_column(Float, nullable=True)
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    vo2_max: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Vendor payload kept for audit/debug
    raw_data: Mapped[dict | list | None] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="health_metrics")
