from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Brand(Base):
    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    primary_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    competitors: Mapped[list["Competitor"]] = relationship(
        "Competitor", back_populates="brand", cascade="all, delete-orphan", order_by="Competitor.id"
    )
    prompts: Mapped[list["TrackedPrompt"]] = relationship(  # noqa: F821
        "TrackedPrompt", back_populates="brand", cascade="all, delete-orphan", order_by="TrackedPrompt.id"
    )
    snapshots: Mapped[list["VisibilitySnapshot"]] = relationship(  # noqa: F821
        "VisibilitySnapshot", back_populates="brand", cascade="all, delete-orphan"
    )


class Competitor(Base):
    __tablename__ = "competitors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    brand_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    primary_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)

    brand: Mapped["Brand"] = relationship("Brand", back_populates="competitors")
