from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class AiAnswer(Base):
    """Raw answer of one engine to one tracked prompt. Written once, never updated."""

    __tablename__ = "ai_answers"
    __table_args__ = (Index("ix_ai_answers_brand_engine_asked", "brand_id", "ai_engine_id", "asked_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    brand_id: Mapped[int] = mapped_column(Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False)
    tracked_prompt_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tracked_prompts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ai_engine_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ai_engines.id", ondelete="CASCADE"), nullable=False
    )
    raw_answer: Mapped[str] = mapped_column(Text, nullable=False)
    asked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    tracked_prompt: Mapped["TrackedPrompt"] = relationship("TrackedPrompt", back_populates="answers")  # noqa: F821
    mentions: Mapped[list["Mention"]] = relationship(
        "Mention", back_populates="ai_answer", cascade="all, delete-orphan", order_by="Mention.id"
    )


class Mention(Base):
    __tablename__ = "mentions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ai_answer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ai_answers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    entity_type: Mapped[str] = mapped_column(String(20), nullable=False)  # BRAND | COMPETITOR
    entity_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sentiment: Mapped[str] = mapped_column(String(20), nullable=False)  # POSITIVE | NEUTRAL | NEGATIVE
    is_recommendation: Mapped[bool] = mapped_column(Boolean, default=False)

    ai_answer: Mapped["AiAnswer"] = relationship("AiAnswer", back_populates="mentions")
