"""Tests for the visibility HTTP endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.models import AiAnswer, AiEngine, Brand, Competitor, TrackedPrompt


class TestRunPoll:
    @pytest.mark.asyncio
    async def test_run_poll(self, client: AsyncClient, db, engines, acme):
        resp = await client.post("/api/v1/visibility/run", json={"brandId": acme.id})

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "newAnswers": 3, "failedFetches": 0}
        assert await db.scalar(select(func.count()).select_from(AiAnswer)) == 3

    @pytest.mark.asyncio
    async def test_missing_brand_id(self, client: AsyncClient, engines):
        resp = await client.post("/api/v1/visibility/run", json={})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Missing brandId"}

    @pytest.mark.asyncio
    async def test_invalid_brand_id(self, client: AsyncClient):
        resp = await client.post("/api/v1/visibility/run", json={"brandId": "not-a-number"})

        assert resp.status_code == 400
        assert "brandId" in resp.json()["error"]

    @pytest.mark.asyncio
    async def test_unknown_brand(self, client: AsyncClient, engines):
        resp = await client.post("/api/v1/visibility/run", json={"brandId": 999})

        assert resp.status_code == 404
        assert resp.json() == {"error": "Brand 999 not found"}

    @pytest.mark.asyncio
    async def test_all_fetches_failed(self, client: AsyncClient, fake_fetcher, engines, acme):
        fake_fetcher.fail_slugs = ("chatgpt", "perplexity", "google-ai")

        resp = await client.post("/api/v1/visibility/run", json={"brandId": acme.id})

        assert resp.status_code == 502
        assert resp.json()["error"].startswith("All 3 engine fetches failed")

    @pytest.mark.asyncio
    async def test_response_has_request_id(self, client: AsyncClient, engines, acme):
        resp = await client.post(
            "/api/v1/visibility/run",
            json={"brandId": acme.id},
            headers={"X-Request-ID": "req-123"},
        )
        assert resp.headers["X-Request-ID"] == "req-123"


class TestOverview:
    @pytest.mark.asyncio
    async def test_overview_after_poll(self, client: AsyncClient, engines, acme):
        await client.post("/api/v1/visibility/run", json={"brandId": acme.id})

        resp = await client.get(f"/api/v1/brands/{acme.id}/visibility/overview")

        assert resp.status_code == 200
        data = resp.json()
        assert set(data) == {"headline", "engineChart", "trend", "prompts"}
        assert data["headline"]["totalAnswers"] == 3
        assert data["headline"]["competitorsTracked"] == 2
        assert 0 <= data["headline"]["overallSov"] <= 100
        assert [e["name"] for e in data["engineChart"]] == ["ChatGPT", "Perplexity", "Google AI"]
        assert len(data["trend"]) == 1
        assert data["prompts"] == [{"id": acme.prompts[0].id, "text": "Best CRM tools for startups", "answerCount": 3}]

    @pytest.mark.asyncio
    async def test_overview_empty_brand(self, client: AsyncClient, acme):
        resp = await client.get(f"/api/v1/brands/{acme.id}/visibility/overview")

        assert resp.status_code == 200
        data = resp.json()
        assert data["headline"] == {"overallSov": 0, "totalAnswers": 0, "competitorsTracked": 2}
        assert data["engineChart"] == []
        assert data["trend"] == []

    @pytest.mark.asyncio
    async def test_overview_unknown_brand(self, client: AsyncClient):
        resp = await client.get("/api/v1/brands/4242/visibility/overview")

        assert resp.status_code == 404
        assert resp.json() == {"error": "Brand 4242 not found"}


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_one_prompt_one_engine(self, client: AsyncClient, db, fake_fetcher):
        brand = Brand(name="Acme")
        brand.competitors = [Competitor(name="Globex")]
        brand.prompts = [TrackedPrompt(text="Best CRM for startups?")]
        db.add_all([brand, AiEngine(slug="chatgpt", display_name="ChatGPT")])
        await db.commit()
        fake_fetcher.default = "Acme is a leading CRM. Globex is expensive."

        run = await client.post("/api/v1/visibility/run", json={"brandId": brand.id})

        assert run.status_code == 200
        assert run.json() == {"success": True, "newAnswers": 1, "failedFetches": 0}

        resp = await client.get(f"/api/v1/brands/{brand.id}/visibility/overview")

        assert resp.status_code == 200
        data = resp.json()
        assert data["headline"] == {"overallSov": 50, "totalAnswers": 1, "competitorsTracked": 1}
        assert data["engineChart"] == [{"name": "ChatGPT", "sov": 50.0}]
        assert len(data["trend"]) == 1
        assert data["trend"][0]["brandSov"] == 50.0
        assert data["prompts"] == [{"id": brand.prompts[0].id, "text": "Best CRM for startups?", "answerCount": 1}]


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        resp = await client.get("/api/v1/health")

        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "database": True, "fetcher": "fake"}

    @pytest.mark.asyncio
    async def test_metrics(self, client: AsyncClient):
        resp = await client.get("/metrics")

        assert resp.status_code == 200
        assert "visibility_poll_runs_total" in resp.text
