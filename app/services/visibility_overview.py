"""Visibility Overview Reporter: 30-day share-of-voice report for a brand.

Read-only. ``compute_overview`` holds the arithmetic over plain rows so it can
be tested without a database; ``get_visibility_overview`` loads the rows.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.ai_answer import AiAnswer
from app.models.ai_engine import AiEngine
from app.models.brand import Brand, Competitor
from app.models.tracked_prompt import TrackedPrompt
from app.models.visibility_snapshot import VisibilitySnapshot
from app.schemas.visibility import (
    EngineSov,
    OverviewHeadline,
    PromptActivity,
    TrendPoint,
    VisibilityOverview,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


@dataclass
class SnapshotRow:
    date: date
    engine_name: str
    total_answers: int
    brand_mention_count: int
    competitor_mention_count: int


def _percent(part: int, total: int) -> float:
    return part / total * 100 if total > 0 else 0.0


def _round_half_up(value: float) -> int:
    # 62.5 -> 63; built-in round() would give 62
    return math.floor(value + 0.5)


def compute_overview(
    rows: Sequence[SnapshotRow],
    competitors_tracked: int,
    prompts: Sequence[PromptActivity],
) -> VisibilityOverview:
    """Build the overview from snapshot rows ordered by date ascending."""
    total_answers = 0
    total_brand = 0
    total_competitor = 0

    # name -> [brand mentions, all mentions]; dicts keep first-appearance order
    per_engine: dict[str, list[int]] = {}
    per_day: dict[str, list[int]] = {}

    for r in rows:
        mentions = r.brand_mention_count + r.competitor_mention_count
        total_answers += r.total_answers
        total_brand += r.brand_mention_count
        total_competitor += r.competitor_mention_count

        engine = per_engine.setdefault(r.engine_name, [0, 0])
        engine[0] += r.brand_mention_count
        engine[1] += mentions

        day = per_day.setdefault(r.date.isoformat(), [0, 0])
        day[0] += r.brand_mention_count
        day[1] += mentions

    return VisibilityOverview(
        headline=OverviewHeadline(
            overall_sov=_round_half_up(_percent(total_brand, total_brand + total_competitor)),
            total_answers=total_answers,
            competitors_tracked=competitors_tracked,
        ),
        engine_chart=[EngineSov(name=name, sov=_percent(b, t)) for name, (b, t) in per_engine.items()],
        trend=[TrendPoint(date=d, brand_sov=_percent(b, t)) for d, (b, t) in per_day.items()],
        prompts=list(prompts),
    )


async def get_visibility_overview(
    db: AsyncSession,
    brand_id: int,
    *,
    window_days: int = DEFAULT_WINDOW_DAYS,
    today: date | None = None,
) -> VisibilityOverview:
    """Overview of the trailing *window_days* (today included) for a brand."""
    if await db.get(Brand, brand_id) is None:
        raise NotFoundError(f"Brand {brand_id} not found")

    today = today or date.today()
    cutoff = today - timedelta(days=window_days)

    snap_result = await db.execute(
        select(
            VisibilitySnapshot.date,
            AiEngine.display_name,
            VisibilitySnapshot.total_answers,
            VisibilitySnapshot.brand_mention_count,
            VisibilitySnapshot.competitor_mention_count,
        )
        .join(AiEngine, AiEngine.id == VisibilitySnapshot.ai_engine_id)
        .where(VisibilitySnapshot.brand_id == brand_id, VisibilitySnapshot.date > cutoff)
        .order_by(VisibilitySnapshot.date.asc(), VisibilitySnapshot.ai_engine_id.asc())
    )
    rows = [
        SnapshotRow(
            date=r.date,
            engine_name=r.display_name,
            total_answers=r.total_answers,
            brand_mention_count=r.brand_mention_count,
            competitor_mention_count=r.competitor_mention_count,
        )
        for r in snap_result.all()
    ]

    competitors_tracked = await db.scalar(
        select(func.count()).select_from(Competitor).where(Competitor.brand_id == brand_id)
    )

    prompt_result = await db.execute(
        select(TrackedPrompt.id, TrackedPrompt.text, func.count(AiAnswer.id).label("answer_count"))
        .outerjoin(AiAnswer, AiAnswer.tracked_prompt_id == TrackedPrompt.id)
        .where(TrackedPrompt.brand_id == brand_id, TrackedPrompt.is_active == True)  # noqa: E712
        .group_by(TrackedPrompt.id, TrackedPrompt.text)
        .order_by(TrackedPrompt.id)
    )
    prompts = [PromptActivity(id=r.id, text=r.text, answer_count=r.answer_count) for r in prompt_result.all()]

    logger.debug("Overview for brand %d: %d snapshots since %s", brand_id, len(rows), cutoff)
    return compute_overview(rows, competitors_tracked or 0, prompts)
