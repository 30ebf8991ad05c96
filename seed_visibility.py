"""
seed_visibility.py: seed demo data for AI visibility tracking.

Creates:
  1. The three AI engines (ChatGPT, Perplexity, Google AI), skipping existing slugs
  2. Brand "Acme Corp" with competitors Globex and Soylent
  3. Three tracked prompts

With --poll, also runs one visibility poll with the template fetcher and
prints the resulting overview.

Usage:
    python seed_visibility.py [--poll]
"""

import asyncio
import json
import logging
import sys

from sqlalchemy import select

from app.collectors.engine_template import TemplateEngineFetcher
from app.core.config import settings
from app.db.base import Base
from app.db.postgres import Database
from app.models import AiEngine, Brand, Competitor, TrackedPrompt
from app.services.visibility_overview import get_visibility_overview
from app.services.visibility_poller import VisibilityPoller

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s: %(message)s",
)
logger = logging.getLogger("seed_visibility")

ENGINES = [
    ("chatgpt", "ChatGPT"),
    ("perplexity", "Perplexity"),
    ("google-ai", "Google AI"),
]

COMPETITORS = [
    ("Globex", "globex.com"),
    ("Soylent", "soylent.com"),
]

PROMPTS = [
    "Best enterprise software solutions 2025",
    "Acme Corp vs Globex reviews",
    "Top rated SaaS platforms for logistics",
]


async def main() -> None:
    database = Database.from_settings(settings)
    try:
        async with database.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with database.session_factory() as db:
            existing = set((await db.scalars(select(AiEngine.slug))).all())
            for slug, display_name in ENGINES:
                if slug not in existing:
                    db.add(AiEngine(slug=slug, display_name=display_name))

            brand = Brand(name="Acme Corp", primary_domain="acme.com")
            brand.competitors = [Competitor(name=n, primary_domain=d) for n, d in COMPETITORS]
            brand.prompts = [TrackedPrompt(text=t) for t in PROMPTS]
            db.add(brand)
            await db.commit()
            logger.info("Created brand %s (id=%d)", brand.name, brand.id)

            if "--poll" in sys.argv:
                poller = VisibilityPoller(TemplateEngineFetcher(delay=0.0))
                result = await poller.run_poll(db, brand.id)
                logger.info("Poll done: %d new answers", result.new_answers)

                overview = await get_visibility_overview(db, brand.id)
                print(json.dumps(overview.model_dump(by_alias=True), indent=2))
    finally:
        await database.dispose()

    logger.info("Seeding complete")


if __name__ == "__main__":
    asyncio.run(main())
