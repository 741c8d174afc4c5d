import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cyclewise.database import Base, JSONType
from cyclewise.utils.datetime_helper import utcnow


class WellnessForecast(Base):
    """Append-only log of generated forecasts."""

    __tablename__ = "wellness_forecasts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    forecast: Mapped[str] = mapped_column(Text, nullable=False)
    insights: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    recommendations: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    metrics_analyzed: Mapped[dict | None] = mapped_column(JSONType, nullable=True)  # {"count": n}
    backend: Mapped[str | None] = mapped_column(String(50), nullable=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True, nullable=False)

    # Relationships
    user = relationship("User", back_populates="wellness_forecasts")
