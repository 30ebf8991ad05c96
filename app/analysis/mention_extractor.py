"""Mention Extractor: finds brand/competitor names in an AI answer.

Matching is a case-insensitive substring search. Sentiment is a keyword
check over the first sentence that mentions the entity; positive keywords
win over negative ones.

Recommendation flag:
  - any entity: the answer contains "recommend <entity>"
  - brand only: the answer also counts as recommending it when it contains
    the literal "top choice" (competitors never get this bonus)
"""

from __future__ import annotations

from app.analysis.types import EntityType, MentionDraft, Sentiment

POSITIVE_KEYWORDS: tuple[str, ...] = ("love", "excellent", "leading", "top choice", "robust")
NEGATIVE_KEYWORDS: tuple[str, ...] = ("expensive", "slow", "hard", "bad")

_BRAND_RECOMMENDATION_PHRASE = "top choice"


def _mentioning_sentence(lower_text: str, lower_entity: str) -> str:
    for sentence in lower_text.split("."):
        if lower_entity in sentence:
            return sentence
    return lower_text


def infer_sentiment(text: str, entity: str) -> Sentiment:
    """Classify the sentiment of the first sentence of *text* mentioning *entity*."""
    sentence = _mentioning_sentence(text.lower(), entity.lower())

    if any(kw in sentence for kw in POSITIVE_KEYWORDS):
        return Sentiment.POSITIVE
    if any(kw in sentence for kw in NEGATIVE_KEYWORDS):
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def _is_recommended(lower_answer: str, entity: str) -> bool:
    return f"recommend {entity.lower()}" in lower_answer


def extract_mentions(raw_answer: str, brand_name: str, competitor_names: list[str]) -> list[MentionDraft]:
    """Return the brand mention (if any) followed by competitor mentions in input order."""
    mentions: list[MentionDraft] = []
    lower_answer = raw_answer.lower()

    if brand_name and brand_name.lower() in lower_answer:
        mentions.append(
            MentionDraft(
                entity_type=EntityType.BRAND,
                entity_name=brand_name,
                sentiment=infer_sentiment(raw_answer, brand_name),
                # "top choice" is matched against the raw answer, case-sensitively
                is_recommendation=(
                    _is_recommended(lower_answer, brand_name) or _BRAND_RECOMMENDATION_PHRASE in raw_answer
                ),
            )
        )

    for comp in competitor_names:
        if not comp or comp.lower() not in lower_answer:
            continue
        mentions.append(
            MentionDraft(
                entity_type=EntityType.COMPETITOR,
                entity_name=comp,
                sentiment=infer_sentiment(raw_answer, comp),
                is_recommendation=_is_recommended(lower_answer, comp),
            )
        )

    return mentions
