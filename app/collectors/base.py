"""Engine response fetcher interface."""

from abc import ABC, abstractmethod

from app.models.ai_engine import AiEngine


class EngineFetcher(ABC):
    """Produces the raw answer an AI engine gives to a tracked prompt.

    Implementations may be slow and may fail; callers wrap every call in a
    timeout and treat any exception as a failed fetch.
    """

    name: str = "unknown"

    @abstractmethod
    async def fetch(
        self,
        engine: AiEngine,
        prompt_text: str,
        brand_name: str,
        competitor_names: list[str],
    ) -> str:
        """Return the engine's unstructured answer text."""
        ...

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""
        return None
