"""Tests for the visibility overview report."""

from datetime import date, timedelta

import pytest

from app.core.exceptions import NotFoundError
from app.models import AiAnswer, VisibilitySnapshot
from app.schemas.visibility import PromptActivity
from app.services.visibility_overview import SnapshotRow, compute_overview, get_visibility_overview

D1 = date(2026, 3, 1)
D2 = date(2026, 3, 2)


def _row(day, engine, answers, brand, competitors) -> SnapshotRow:
    return SnapshotRow(
        date=day,
        engine_name=engine,
        total_answers=answers,
        brand_mention_count=brand,
        competitor_mention_count=competitors,
    )


class TestComputeOverview:
    def test_headline_engine_chart_and_trend(self):
        rows = [
            _row(D1, "ChatGPT", 2, 3, 1),
            _row(D1, "Perplexity", 1, 0, 2),
            _row(D2, "ChatGPT", 1, 2, 0),
        ]
        overview = compute_overview(rows, competitors_tracked=2, prompts=[])

        # 5 brand / 8 total = 62.5% -> rounds half up
        assert overview.headline.overall_sov == 63
        assert overview.headline.total_answers == 4
        assert overview.headline.competitors_tracked == 2

        assert [(e.name, e.sov) for e in overview.engine_chart] == [
            ("ChatGPT", pytest.approx(5 / 6 * 100)),
            ("Perplexity", 0.0),
        ]
        assert [(t.date, t.brand_sov) for t in overview.trend] == [("2026-03-01", 50.0), ("2026-03-02", 100.0)]

    def test_empty(self):
        overview = compute_overview([], competitors_tracked=3, prompts=[])

        assert overview.headline.overall_sov == 0
        assert overview.headline.total_answers == 0
        assert overview.headline.competitors_tracked == 3
        assert overview.engine_chart == []
        assert overview.trend == []
        assert overview.prompts == []

    def test_rows_without_mentions_are_zero_not_errors(self):
        overview = compute_overview([_row(D1, "ChatGPT", 4, 0, 0)], competitors_tracked=0, prompts=[])

        assert overview.headline.overall_sov == 0
        assert overview.headline.total_answers == 4
        assert overview.engine_chart[0].sov == 0.0
        assert overview.trend[0].brand_sov == 0.0

    def test_engine_chart_keeps_first_appearance_order(self):
        rows = [
            _row(D1, "Perplexity", 1, 1, 0),
            _row(D2, "ChatGPT", 1, 1, 0),
            _row(D2, "Perplexity", 1, 0, 1),
        ]
        overview = compute_overview(rows, competitors_tracked=0, prompts=[])
        assert [e.name for e in overview.engine_chart] == ["Perplexity", "ChatGPT"]
        assert overview.engine_chart[0].sov == 50.0

    def test_prompts_passed_through(self):
        prompts = [PromptActivity(id=1, text="Best CRM?", answer_count=7)]
        overview = compute_overview([], competitors_tracked=0, prompts=prompts)
        assert overview.prompts == prompts

    def test_camel_case_serialization(self):
        overview = compute_overview(
            [_row(D1, "ChatGPT", 1, 1, 1)],
            competitors_tracked=1,
            prompts=[PromptActivity(id=1, text="q", answer_count=1)],
        )
        data = overview.model_dump(by_alias=True)

        assert data["headline"] == {"overallSov": 50, "totalAnswers": 1, "competitorsTracked": 1}
        assert data["engineChart"] == [{"name": "ChatGPT", "sov": 50.0}]
        assert data["trend"] == [{"date": "2026-03-01", "brandSov": 50.0}]
        assert data["prompts"] == [{"id": 1, "text": "q", "answerCount": 1}]


class TestGetVisibilityOverview:
    @pytest.mark.asyncio
    async def test_unknown_brand(self, db):
        with pytest.raises(NotFoundError):
            await get_visibility_overview(db, 12345)

    @pytest.mark.asyncio
    async def test_brand_without_data(self, db, acme):
        overview = await get_visibility_overview(db, acme.id)

        assert overview.headline.overall_sov == 0
        assert overview.headline.total_answers == 0
        assert overview.headline.competitors_tracked == 2
        assert overview.engine_chart == []
        assert overview.trend == []
        # Only the active prompt is listed
        assert [(p.text, p.answer_count) for p in overview.prompts] == [("Best CRM tools for startups", 0)]

    @pytest.mark.asyncio
    async def test_window_and_aggregation(self, db, engines, acme):
        today = date.today()
        chatgpt, perplexity, google = engines

        def snap(engine, days_ago, total, brand, competitors):
            return VisibilitySnapshot(
                brand_id=acme.id,
                ai_engine_id=engine.id,
                date=today - timedelta(days=days_ago),
                total_answers=total,
                brand_mention_count=brand,
                competitor_mention_count=competitors,
                brand_share_of_voice=0.0,
            )

        db.add_all(
            [
                snap(chatgpt, 0, 2, 3, 1),
                snap(perplexity, 1, 1, 1, 1),
                snap(chatgpt, 29, 1, 0, 1),
                # Outside the window
                snap(google, 30, 5, 5, 0),
                snap(chatgpt, 40, 9, 9, 0),
            ]
        )
        active, inactive = acme.prompts
        db.add_all(
            [
                AiAnswer(brand_id=acme.id, tracked_prompt_id=active.id, ai_engine_id=chatgpt.id, raw_answer="a"),
                AiAnswer(brand_id=acme.id, tracked_prompt_id=active.id, ai_engine_id=perplexity.id, raw_answer="b"),
                AiAnswer(brand_id=acme.id, tracked_prompt_id=inactive.id, ai_engine_id=chatgpt.id, raw_answer="c"),
            ]
        )
        await db.commit()

        overview = await get_visibility_overview(db, acme.id, today=today)

        # 4 brand / 7 mentions = 57.1%
        assert overview.headline.overall_sov == 57
        assert overview.headline.total_answers == 4
        assert overview.headline.competitors_tracked == 2
        assert [(e.name, e.sov) for e in overview.engine_chart] == [("ChatGPT", 60.0), ("Perplexity", 50.0)]
        assert [(t.date, t.brand_sov) for t in overview.trend] == [
            ((today - timedelta(days=29)).isoformat(), 0.0),
            ((today - timedelta(days=1)).isoformat(), 50.0),
            (today.isoformat(), 75.0),
        ]
        assert [(p.id, p.answer_count) for p in overview.prompts] == [(active.id, 2)]

    @pytest.mark.asyncio
    async def test_custom_window(self, db, engines, acme):
        today = date.today()
        for days_ago in (0, 3):
            db.add(
                VisibilitySnapshot(
                    brand_id=acme.id,
                    ai_engine_id=engines[0].id,
                    date=today - timedelta(days=days_ago),
                    total_answers=1,
                    brand_mention_count=1,
                    competitor_mention_count=0,
                )
            )
        await db.commit()

        overview = await get_visibility_overview(db, acme.id, window_days=2, today=today)
        assert overview.headline.total_answers == 1
        assert [t.date for t in overview.trend] == [today.isoformat()]
