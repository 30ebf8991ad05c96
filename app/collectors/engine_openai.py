"""OpenAI-compatible chat completions fetcher.

Every AI engine is served through one chat completions endpoint; the model
is chosen per engine slug (``engine_models``) with ``default_model`` as the
fallback. Works with any OpenAI-compatible gateway via ``base_url``.
"""

import logging

import httpx

from app.collectors.base import EngineFetcher
from app.core.exceptions import UpstreamFetchError
from app.models.ai_engine import AiEngine

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant. Answer the following question thoroughly."


class OpenAiEngineFetcher(EngineFetcher):
    name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        default_model: str = "gpt-4.1-mini",
        engine_models: dict[str, str] | None = None,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.engine_models = engine_models or {}
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    def model_for(self, engine: AiEngine) -> str:
        return self.engine_models.get(engine.slug, self.default_model)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def fetch(
        self,
        engine: AiEngine,
        prompt_text: str,
        brand_name: str,
        competitor_names: list[str],
    ) -> str:
        model = self.model_for(engine)
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt_text},
            ],
        }

        try:
            resp = await self._get_client().post("/chat/completions", json=payload)
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"{engine.slug}: transport error: {e}") from e

        if resp.status_code >= 400:
            try:
                error_msg = resp.json().get("error", {}).get("message", resp.text[:500])
            except ValueError:
                error_msg = resp.text[:500]
            logger.error(
                "%s: engine %s (model=%s) returned %d: %s", self.name, engine.slug, model, resp.status_code, error_msg
            )
            raise UpstreamFetchError(
                f"{engine.slug}: HTTP {resp.status_code}: {error_msg}", upstream_status=resp.status_code
            )

        data = resp.json()
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamFetchError(f"{engine.slug}: malformed response: {e}") from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
