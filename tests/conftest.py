import asyncio
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings

# Override settings for tests
settings.app_env = "development"
settings.engine_fetcher = "template"
settings.template_fetcher_delay_seconds = 0.0

from app.collectors.base import EngineFetcher  # noqa: E402
from app.core.exceptions import UpstreamFetchError  # noqa: E402
from app.core.rate_limit import limiter  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.db.postgres import Database  # noqa: E402
from app.main import app  # noqa: E402
from app.models import AiEngine, Brand, Competitor, TrackedPrompt  # noqa: E402
from app.services.visibility_poller import VisibilityPoller  # noqa: E402

limiter.enabled = False


class FakeFetcher(EngineFetcher):
    """Deterministic fetcher: fixed answer per engine slug, optional failures, retries and gating."""

    name = "fake"

    def __init__(
        self,
        answers: dict[str, str] | None = None,
        default: str | None = None,
        fail_slugs: tuple[str, ...] = (),
        delay: float = 0.0,
        gate: asyncio.Event | None = None,
        transient_failures: dict[str, int] | None = None,
        transient_status: int = 503,
    ):
        self.answers = answers or {}
        self.default = default
        self.fail_slugs = fail_slugs
        self.delay = delay
        self.gate = gate
        self.transient_failures = dict(transient_failures or {})
        self.transient_status = transient_status
        self.calls: list[tuple[str, str]] = []

    async def fetch(self, engine, prompt_text, brand_name, competitor_names):
        self.calls.append((engine.slug, prompt_text))
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.transient_failures.get(engine.slug, 0) > 0:
            self.transient_failures[engine.slug] -= 1
            raise UpstreamFetchError(
                f"{engine.slug}: HTTP {self.transient_status}", upstream_status=self.transient_status
            )
        if engine.slug in self.fail_slugs:
            raise RuntimeError(f"{engine.slug} unavailable")
        if engine.slug in self.answers:
            return self.answers[engine.slug]
        if self.default is not None:
            return self.default
        return f"{brand_name} is a leading option. Some find {', '.join(competitor_names)} expensive."


@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[Database, None]:
    """Fresh SQLite database per test, schema created from the ORM metadata."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield database
    await database.dispose()


@pytest.fixture
async def db(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def poller(fake_fetcher: FakeFetcher) -> VisibilityPoller:
    return VisibilityPoller(fake_fetcher, fetch_timeout=5.0, retry_backoff=0.0)


@pytest.fixture
async def client(database: Database, poller: VisibilityPoller) -> AsyncGenerator[AsyncClient, None]:
    # ASGITransport does not run the lifespan; install what it would have built
    app.state.db = database
    app.state.poller = poller
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def engines(db: AsyncSession) -> list[AiEngine]:
    """The three standard engines, in id order."""
    rows = [
        AiEngine(slug="chatgpt", display_name="ChatGPT"),
        AiEngine(slug="perplexity", display_name="Perplexity"),
        AiEngine(slug="google-ai", display_name="Google AI"),
    ]
    db.add_all(rows)
    await db.commit()
    return rows


@pytest.fixture
async def acme(db: AsyncSession) -> Brand:
    """Brand "Acme" with competitors Globex and Soylent, one active and one inactive prompt."""
    brand = Brand(name="Acme", primary_domain="acme.com")
    brand.competitors = [Competitor(name="Globex"), Competitor(name="Soylent")]
    brand.prompts = [
        TrackedPrompt(text="Best CRM tools for startups", is_active=True),
        TrackedPrompt(text="Retired question", is_active=False),
    ]
    db.add(brand)
    await db.commit()
    return brand
