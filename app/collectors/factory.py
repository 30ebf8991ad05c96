"""Builds the configured EngineFetcher."""

from app.collectors.base import EngineFetcher
from app.collectors.engine_openai import OpenAiEngineFetcher
from app.collectors.engine_template import TemplateEngineFetcher
from app.core.config import Settings


def build_fetcher(settings: Settings) -> EngineFetcher:
    if settings.engine_fetcher == "template":
        return TemplateEngineFetcher(
            seed=settings.template_fetcher_seed,
            delay=settings.template_fetcher_delay_seconds,
        )
    if settings.engine_fetcher == "openai":
        return OpenAiEngineFetcher(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            default_model=settings.openai_model,
            engine_models=settings.engine_models,
            timeout=settings.fetch_timeout_seconds,
        )
    raise ValueError(f"Unknown engine fetcher: {settings.engine_fetcher!r}")
