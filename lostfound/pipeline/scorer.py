"""Rule-based scoring of a reference item against a candidate item.

Score range: 0-max_score (clamped once, after all signals are summed).
Individual weights and vocabularies come from ScoringConfig.
Recency compares the two items' occurrence timestamps.
"""

import logging
import string

from pydantic import BaseModel, ConfigDict, Field

from lostfound.core.config import ScoringConfig
from lostfound.core.schemas import Item

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 86_400.0


class ScoreBreakdown(BaseModel):
    """Per-signal contributions for one (reference, candidate) pair."""

    model_config = ConfigDict(frozen=True)

    contributions: dict[str, int] = Field(default_factory=dict)
    matched_terms: dict[str, list[str]] = Field(default_factory=dict)
    shared_keywords: list[str] = Field(default_factory=list)
    raw: int = 0
    score: int = 0


def tokenize(text: str) -> list[str]:
    """Split on whitespace, lowercase, and strip surrounding punctuation."""
    tokens = (t.strip(string.punctuation) for t in text.lower().split())
    return [t for t in tokens if t]


def score_breakdown(
    reference: Item,
    candidate: Item,
    config: ScoringConfig,
) -> ScoreBreakdown:
    """Score a candidate against a reference item, keeping every contribution.

    Args:
        reference: The item matches are sought for.
        candidate: An opposite-status item from the pool.
        config: Weights and vocabularies.

    Returns:
        ScoreBreakdown with the raw sum and the clamped score.
    """
    contributions: dict[str, int] = {}
    matched_terms: dict[str, list[str]] = {}

    # Category match bonus
    ref_category = reference.category.strip().lower()
    if ref_category and ref_category == candidate.category.strip().lower():
        contributions["category"] = config.category_bonus

    # Location: exact beats partial, never both
    ref_loc = reference.location.strip().lower()
    cand_loc = candidate.location.strip().lower()
    if ref_loc and cand_loc:
        if ref_loc == cand_loc:
            contributions["location_exact"] = config.location_exact_bonus
        elif ref_loc in cand_loc or cand_loc in ref_loc:
            contributions["location_partial"] = config.location_partial_bonus

    ref_tokens = tokenize(reference.text)
    cand_tokens = tokenize(candidate.text)
    ref_joined = f" {' '.join(ref_tokens)} "
    cand_joined = f" {' '.join(cand_tokens)} "

    # Vocabulary bonuses, one weight per shared term
    for rule in config.vocabularies:
        hits = [
            term for term in rule.terms
            if f" {term} " in ref_joined and f" {term} " in cand_joined
        ]
        if hits:
            contributions[rule.name] = rule.weight * len(hits)
            matched_terms[rule.name] = hits

    # Shared keyword bonus (capped)
    cand_words = {t for t in cand_tokens if len(t) >= config.keyword_min_length}
    shared: list[str] = []
    for token in ref_tokens:
        if len(token) >= config.keyword_min_length and token in cand_words and token not in shared:
            shared.append(token)
    if shared:
        keyword_points = min(config.keyword_cap, config.keyword_bonus * len(shared))
        if keyword_points:
            contributions["keywords"] = keyword_points

    # Recency bonus
    recency = _recency_score(reference, candidate, config)
    if recency:
        contributions["recency"] = recency

    raw = sum(contributions.values())
    score = max(0, min(config.max_score, raw))

    return ScoreBreakdown(
        contributions=contributions,
        matched_terms=matched_terms,
        shared_keywords=shared,
        raw=raw,
        score=score,
    )


def score_pair(reference: Item, candidate: Item, config: ScoringConfig) -> int:
    """Return only the clamped score for a pair."""
    return score_breakdown(reference, candidate, config).score


def _recency_score(reference: Item, candidate: Item, config: ScoringConfig) -> int:
    """Bonus for items that happened close together in time."""
    delta = reference.occurred_at - candidate.occurred_at
    days_apart = abs(delta.total_seconds()) / _SECONDS_PER_DAY
    if days_apart <= config.recent_days:
        return config.recent_bonus
    if days_apart <= config.window_days:
        return config.window_bonus
    return 0
