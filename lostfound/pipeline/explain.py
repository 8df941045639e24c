"""Human-readable reasons and a confidence figure for a scored pair.

Presentation only: nothing here feeds back into ranking.
"""

from typing import Any

from lostfound.core.config import ScoringConfig
from lostfound.core.schemas import Item, MatchResult
from lostfound.pipeline.scorer import ScoreBreakdown, score_breakdown

_SIGNAL_REASONS = {
    "category": "Category match",
    "location_exact": "Same location",
    "location_partial": "Nearby location",
    "recency": "Reported around the same time",
}


def describe_match(breakdown: ScoreBreakdown) -> list[str]:
    """List the reasons a pair scored, in contribution order."""
    reasons: list[str] = []
    for signal in breakdown.contributions:
        if signal in _SIGNAL_REASONS:
            reasons.append(_SIGNAL_REASONS[signal])
        elif signal == "keywords":
            reasons.append(f"{len(breakdown.shared_keywords)} shared keywords")
        else:
            terms = ", ".join(breakdown.matched_terms.get(signal, []))
            reasons.append(f"Shared {signal}: {terms}")
    return reasons or ["Basic similarity detected"]


def confidence(breakdown: ScoreBreakdown) -> int:
    """Percentage shown next to a match, bounded to 10-95."""
    return min(95, max(10, breakdown.score + len(breakdown.shared_keywords) * 5))


def explain_matches(
    reference: Item,
    matches: list[MatchResult],
    config: ScoringConfig,
) -> list[dict[str, Any]]:
    """Match payloads extended with ``confidence`` and ``matchReason``."""
    payloads = []
    for m in matches:
        breakdown = score_breakdown(reference, m.item, config)
        payload = m.to_payload()
        payload["confidence"] = confidence(breakdown)
        payload["matchReason"] = describe_match(breakdown)
        payloads.append(payload)
    return payloads
