from datetime import date

from sqlalchemy import Date, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class VisibilitySnapshot(Base):
    """Daily rollup of mentions and share of voice for one (brand, engine)."""

    __tablename__ = "visibility_snapshots"
    __table_args__ = (UniqueConstraint("brand_id", "ai_engine_id", "date", name="uq_visibility_snapshot"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    brand_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ai_engine_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ai_engines.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)

    total_answers: Mapped[int] = mapped_column(Integer, default=0)
    brand_mention_count: Mapped[int] = mapped_column(Integer, default=0)
    competitor_mention_count: Mapped[int] = mapped_column(Integer, default=0)
    brand_share_of_voice: Mapped[float] = mapped_column(Float, default=0.0)  # 0.0 - 1.0
    competitor_share_of_voice: Mapped[str] = mapped_column(Text, default="{}")  # JSON: {"Globex": 3}

    # Relationships
    brand: Mapped["Brand"] = relationship("Brand", back_populates="snapshots")  # noqa: F821
    ai_engine: Mapped["AiEngine"] = relationship("AiEngine")  # noqa: F821
