"""Core types for answer analysis."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EntityType(str, Enum):
    """Who a mention refers to."""

    BRAND = "BRAND"  # The tracked brand itself
    COMPETITOR = "COMPETITOR"


class Sentiment(str, Enum):
    """Coarse sentiment bucket of the sentence mentioning an entity."""

    POSITIVE = "POSITIVE"
    NEUTRAL = "NEUTRAL"
    NEGATIVE = "NEGATIVE"


@dataclass(frozen=True)
class MentionDraft:
    """A mention found in an answer, before it is attached to an AiAnswer row."""

    entity_type: EntityType
    entity_name: str
    sentiment: Sentiment
    is_recommendation: bool = False
