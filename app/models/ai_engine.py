from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class AiEngine(Base):
    """A source of AI answers (ChatGPT, Perplexity, ...). Global, not brand-scoped."""

    __tablename__ = "ai_engines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)  # chatgpt | perplexity | google-ai
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
