from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class TrackedPrompt(Base):
    """A question to monitor across AI engines."""

    __tablename__ = "tracked_prompts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    brand_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(String(2000), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    brand: Mapped["Brand"] = relationship("Brand", back_populates="prompts")  # noqa: F821
    answers: Mapped[list["AiAnswer"]] = relationship(  # noqa: F821
        "AiAnswer", back_populates="tracked_prompt", cascade="all, delete-orphan"
    )
