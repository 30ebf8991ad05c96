"""Synthetic engine answers built from per-engine templates.

Stands in for real AI providers in development and tests. With a seed the
output is fully deterministic.
"""

import asyncio
import random

from app.collectors.base import EngineFetcher
from app.models.ai_engine import AiEngine

FALLBACK_COMPETITOR = "CompetitorX"


class TemplateEngineFetcher(EngineFetcher):
    name = "template"

    def __init__(self, seed: int | None = None, delay: float = 0.5):
        self.delay = delay
        self._rng = random.Random(seed)

    async def fetch(
        self,
        engine: AiEngine,
        prompt_text: str,
        brand_name: str,
        competitor_names: list[str],
    ) -> str:
        # Simulated network latency
        await asyncio.sleep(self.delay)

        is_positive = self._rng.random() > 0.3
        include_competitor = self._rng.random() > 0.4
        competitor = self._rng.choice(competitor_names) if competitor_names else FALLBACK_COMPETITOR

        return render_answer(engine.slug, brand_name, competitor, is_positive, include_competitor)


def render_answer(slug: str, brand: str, competitor: str, is_positive: bool, include_competitor: bool) -> str:
    if slug == "chatgpt":
        tone = "Users love the interface." if is_positive else "However, some find it expensive."
        alt = f"Alternatively, {competitor} offers a cheaper price point but fewer features." if include_competitor else ""
        return f"Here is a comparison. {brand} is a leading solution known for its robust features. {tone} {alt}"

    if slug == "perplexity":
        alt = f"{competitor} is also a strong contender in the market." if include_competitor else ""
        return f"Based on search results, {brand} is frequently mentioned as a top choice. {alt} {brand} has excellent support."

    alt = f"Compared to {competitor}, it is more enterprise-focused." if include_competitor else ""
    return f"{brand} provides a comprehensive platform. {alt}"
