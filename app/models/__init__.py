from app.models.ai_answer import AiAnswer, Mention
from app.models.ai_engine import AiEngine
from app.models.brand import Brand, Competitor
from app.models.tracked_prompt import TrackedPrompt
from app.models.visibility_snapshot import VisibilitySnapshot

__all__ = [
    "AiAnswer",
    "AiEngine",
    "Brand",
    "Competitor",
    "Mention",
    "TrackedPrompt",
    "VisibilitySnapshot",
]
