"""Snapshot Aggregator: daily per-engine rollup of mentions and share of voice.

Every call re-reads all of today's answers and overwrites the day's row for
each engine (full replace, never increment). Engines without answers today
get no row.
"""

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.analysis.types import EntityType
from app.core.exceptions import PersistenceError
from app.db.upsert import upsert_insert
from app.models.ai_answer import AiAnswer, Mention
from app.models.ai_engine import AiEngine
from app.models.visibility_snapshot import VisibilitySnapshot

logger = logging.getLogger(__name__)


@dataclass
class MentionTally:
    brand_mentions: int = 0
    competitor_mentions: int = 0
    competitor_counts: dict[str, int] = field(default_factory=dict)


def tally_mentions(mentions: Iterable[Mention]) -> MentionTally:
    tally = MentionTally()
    for m in mentions:
        if m.entity_type == EntityType.BRAND:
            tally.brand_mentions += 1
        elif m.entity_type == EntityType.COMPETITOR:
            tally.competitor_mentions += 1
            tally.competitor_counts[m.entity_name] = tally.competitor_counts.get(m.entity_name, 0) + 1
    return tally


def compute_share_of_voice(brand_mentions: int, competitor_mentions: int) -> float:
    """Brand share of all entity mentions, 0.0 - 1.0 (0 when nothing was mentioned)."""
    total = brand_mentions + competitor_mentions
    return brand_mentions / total if total > 0 else 0.0


def day_start_utc(day: date) -> datetime:
    """Local midnight of *day*, expressed in UTC (answers are stamped in UTC)."""
    return datetime.combine(day, time.min).astimezone(timezone.utc)


async def update_daily_snapshot(db: AsyncSession, brand_id: int, today: date | None = None) -> int:
    """Recompute the snapshot of *today* (default: the current local date) for every registered engine.

    Only answers asked on that day count. Returns the number of rows written.
    """
    today = today or date.today()
    since = day_start_utc(today)
    until = day_start_utc(today + timedelta(days=1))

    engines = (await db.scalars(select(AiEngine).order_by(AiEngine.id))).all()
    written = 0

    try:
        for engine in engines:
            answers = (
                await db.scalars(
                    select(AiAnswer)
                    .options(selectinload(AiAnswer.mentions))
                    .where(
                        AiAnswer.brand_id == brand_id,
                        AiAnswer.ai_engine_id == engine.id,
                        AiAnswer.asked_at >= since,
                        AiAnswer.asked_at < until,
                    )
                    .order_by(AiAnswer.id)
                )
            ).all()

            if not answers:
                continue

            tally = tally_mentions(m for a in answers for m in a.mentions)
            values = {
                "total_answers": len(answers),
                "brand_mention_count": tally.brand_mentions,
                "competitor_mention_count": tally.competitor_mentions,
                "brand_share_of_voice": compute_share_of_voice(tally.brand_mentions, tally.competitor_mentions),
                "competitor_share_of_voice": json.dumps(tally.competitor_counts, sort_keys=True, ensure_ascii=False),
            }

            stmt = (
                upsert_insert(db, VisibilitySnapshot)
                .values(brand_id=brand_id, ai_engine_id=engine.id, date=today, **values)
                .on_conflict_do_update(
                    index_elements=["brand_id", "ai_engine_id", "date"],
                    set_=values,
                )
            )
            await db.execute(stmt)
            written += 1

            logger.debug(
                "Snapshot brand=%d engine=%s date=%s: answers=%d brand=%d competitors=%d sov=%.3f",
                brand_id,
                engine.slug,
                today,
                values["total_answers"],
                values["brand_mention_count"],
                values["competitor_mention_count"],
                values["brand_share_of_voice"],
            )

        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError(f"Failed to update snapshots for brand {brand_id}: {e}") from e

    logger.info("Updated %d snapshot(s) for brand %d on %s", written, brand_id, today)
    return written
