"""Visibility Poller: asks every AI engine every active prompt of a brand.

A poll runs in two phases:
  Phase 1: Fetch answers for all (prompt × engine) tasks through a bounded
           worker pool, each fetch attempt under a timeout. Rate-limited and
           gateway errors are retried with backoff.
  Phase 2: Persist answers with their extracted mentions in task order, then
           recompute today's snapshots.

Aggregation only starts after every answer of the poll is committed.

Fetch failures are skipped: the task is logged and counted, no answer row is
written, and the poll goes on. A poll where every fetch failed raises
UpstreamFetchError. Persistence failures abort the poll.

Polls of the same brand are serialized by a per-brand asyncio.Lock. The lock
is process-local; polls started in different processes can still race on
the snapshot upsert (last writer wins).
"""

import asyncio
import logging
import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.analysis.mention_extractor import extract_mentions
from app.collectors.base import EngineFetcher
from app.core.exceptions import NotFoundError, PersistenceError, UpstreamFetchError
from app.core.metrics import ANSWERS_COLLECTED, FETCH_FAILURES, POLL_RUNS
from app.models.ai_answer import AiAnswer, Mention
from app.models.ai_engine import AiEngine
from app.models.brand import Brand
from app.models.tracked_prompt import TrackedPrompt
from app.services.snapshot_aggregator import update_daily_snapshot

logger = logging.getLogger(__name__)


class BrandLockRegistry:
    """One asyncio.Lock per brand id, kept only while a poll holds or awaits it."""

    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}
        self._holders: dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, brand_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(brand_id, asyncio.Lock())
        self._holders[brand_id] = self._holders.get(brand_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[brand_id] -= 1
            if self._holders[brand_id] == 0:
                del self._holders[brand_id]
                del self._locks[brand_id]

    def is_locked(self, brand_id: int) -> bool:
        lock = self._locks.get(brand_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


def retry_delay(exc: UpstreamFetchError, attempt: int) -> float:
    """Seconds to wait before retry number ``attempt + 1`` (jittered by +/-30%)."""
    if exc.upstream_status == 429:
        # Rate limits need longer to recover
        base = min(30 * (attempt + 1), 120)
    else:
        base = min(2 ** (attempt + 1), 60)
    return random.uniform(base * 0.7, base * 1.3)


@dataclass
class PollResult:
    brand_id: int
    new_answers: int = 0
    failed_fetches: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class _PollTask:
    prompt_id: int
    prompt_text: str
    engine: AiEngine
    engine_id: int
    engine_slug: str


class VisibilityPoller:
    def __init__(
        self,
        fetcher: EngineFetcher,
        *,
        locks: BrandLockRegistry | None = None,
        concurrency: int = 1,
        fetch_timeout: float = 60.0,
        max_retries: int = 5,
        retry_backoff: float = 1.0,
    ):
        self.fetcher = fetcher
        self.locks = locks if locks is not None else BrandLockRegistry()
        self.concurrency = max(concurrency, 1)
        self.fetch_timeout = fetch_timeout
        self.max_retries = max(max_retries, 0)
        self.retry_backoff = retry_backoff

    async def run_poll(self, db: AsyncSession, brand_id: int) -> PollResult:
        if self.locks.is_locked(brand_id):
            logger.info(
                "Poll for brand %d is waiting for a running poll to finish", brand_id, extra={"brand_id": brand_id}
            )
        async with self.locks.hold(brand_id):
            try:
                result = await self._run_locked(db, brand_id)
            except NotFoundError:
                POLL_RUNS.labels(status="not_found").inc()
                raise
            except UpstreamFetchError:
                POLL_RUNS.labels(status="upstream_error").inc()
                raise
            except PersistenceError:
                POLL_RUNS.labels(status="persistence_error").inc()
                raise
        POLL_RUNS.labels(status="success").inc()
        return result

    async def _run_locked(self, db: AsyncSession, brand_id: int) -> PollResult:
        brand = await db.scalar(select(Brand).options(selectinload(Brand.competitors)).where(Brand.id == brand_id))
        if brand is None:
            raise NotFoundError(f"Brand {brand_id} not found")

        prompts = (
            await db.scalars(
                select(TrackedPrompt)
                .where(TrackedPrompt.brand_id == brand_id, TrackedPrompt.is_active == True)  # noqa: E712
                .order_by(TrackedPrompt.id)
            )
        ).all()
        engines = (await db.scalars(select(AiEngine).order_by(AiEngine.id))).all()

        brand_name = brand.name
        competitor_names = [c.name for c in brand.competitors]
        tasks = [
            _PollTask(prompt_id=p.id, prompt_text=p.text, engine=e, engine_id=e.id, engine_slug=e.slug)
            for p in prompts
            for e in engines
        ]
        log_extra = {"brand_id": brand_id}

        logger.info(
            "Starting poll for brand %d (%s): %d prompts x %d engines, fetcher=%s, concurrency=%d",
            brand_id,
            brand_name,
            len(prompts),
            len(engines),
            self.fetcher.name,
            self.concurrency,
            extra=log_extra,
        )

        result = PollResult(brand_id=brand_id)

        # Phase 1: fetch
        outcomes = await self._fetch_all(brand_id, tasks, brand_name, competitor_names)

        # Phase 2: persist in task order
        for task, outcome in zip(tasks, outcomes):
            if isinstance(outcome, BaseException):
                message = _describe_failure(outcome, self.fetch_timeout)
                logger.warning(
                    "Fetch failed for brand %d prompt %d engine %s: %s",
                    brand_id,
                    task.prompt_id,
                    task.engine_slug,
                    message,
                    extra=log_extra,
                )
                FETCH_FAILURES.labels(engine=task.engine_slug).inc()
                result.failed_fetches += 1
                result.errors.append(f"{task.engine_slug}/prompt_{task.prompt_id}: {message}")
                continue

            await self._save_answer(db, brand_id, task, outcome, brand_name, competitor_names)
            result.new_answers += 1
            ANSWERS_COLLECTED.labels(engine=task.engine_slug).inc()

        if tasks and result.new_answers == 0:
            raise UpstreamFetchError(
                f"All {len(tasks)} engine fetches failed for brand {brand_id}: {result.errors[0]}"
            )

        await update_daily_snapshot(db, brand_id)

        logger.info(
            "Poll for brand %d done: %d new answers, %d failed fetches",
            brand_id,
            result.new_answers,
            result.failed_fetches,
            extra=log_extra,
        )
        return result

    async def _fetch_all(
        self,
        brand_id: int,
        tasks: list[_PollTask],
        brand_name: str,
        competitor_names: list[str],
    ) -> list[str | BaseException]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _fetch_one(task: _PollTask) -> str:
            attempt = 0
            while True:
                try:
                    async with semaphore:
                        return await asyncio.wait_for(
                            self.fetcher.fetch(task.engine, task.prompt_text, brand_name, competitor_names),
                            timeout=self.fetch_timeout,
                        )
                except UpstreamFetchError as e:
                    if not e.retryable or attempt >= self.max_retries:
                        raise
                    delay = retry_delay(e, attempt) * self.retry_backoff
                    attempt += 1
                    logger.warning(
                        "%s: retryable error for brand %d prompt %d engine %s (attempt %d/%d), retrying in %.1fs: %s",
                        self.fetcher.name,
                        brand_id,
                        task.prompt_id,
                        task.engine_slug,
                        attempt,
                        self.max_retries,
                        delay,
                        e.detail,
                        extra={"brand_id": brand_id},
                    )
                    await asyncio.sleep(delay)

        return await asyncio.gather(*(_fetch_one(t) for t in tasks), return_exceptions=True)

    async def _save_answer(
        self,
        db: AsyncSession,
        brand_id: int,
        task: _PollTask,
        raw_answer: str,
        brand_name: str,
        competitor_names: list[str],
    ) -> None:
        """Write the answer and its mentions in one transaction."""
        answer = AiAnswer(
            brand_id=brand_id,
            tracked_prompt_id=task.prompt_id,
            ai_engine_id=task.engine_id,
            raw_answer=raw_answer,
            asked_at=datetime.now(timezone.utc),
        )
        answer.mentions = [
            Mention(
                entity_type=draft.entity_type.value,
                entity_name=draft.entity_name,
                sentiment=draft.sentiment.value,
                is_recommendation=draft.is_recommendation,
            )
            for draft in extract_mentions(raw_answer, brand_name, competitor_names)
        ]
        db.add(answer)

        try:
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise PersistenceError(
                f"Failed to save answer for brand {brand_id} prompt {task.prompt_id} engine {task.engine_id}: {e}"
            ) from e


def _describe_failure(exc: BaseException, timeout: float) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return f"timed out after {timeout:g}s"
    return f"{type(exc).__name__}: {exc}"
