import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cyclewise.database import Base, JSONType
from cyclewise.utils.datetime_helper import utcnow


class CycleTracking(Base):
    __tablename__ = "cycle_tracking"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    period_start_date: Mapped[date] = mapped_column(Date, index=True, nullable=False)
    period_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    cycle_length: Mapped[int | None] = mapped_column(Integer, nullable=True)
    flow_intensity: Mapped[str | None] = mapped_column(String(20), nullable=True)  # light/medium/heavy

    # Free-text tags, submission order preserved: ["Cramps", "Fatigue"]
    symptoms: Mapped[list] = mapped_column(JSONType, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="cycles")
