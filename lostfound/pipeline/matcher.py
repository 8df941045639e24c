"""Matching: eligibility filters, scoring, dedup, and top-K selection.

Pipeline order for one reference item:
  1. EligibilityFilter  (opposite status, different reporter)
  2. score_pair         (per-pair heuristic score)
  3. threshold          (drop results below min_score)
  4. merge_best         (one result per item id, highest score wins)
  5. rank               (stable sort by score desc, truncate to top_k)
"""

import logging
from collections.abc import Callable, Iterable

from lostfound.core.config import ScoringConfig
from lostfound.core.schemas import Item, MatchResult
from lostfound.pipeline.scorer import score_pair

logger = logging.getLogger(__name__)

# A filter is a callable that takes candidates and returns a subset.
Filter = Callable[[list[Item]], list[Item]]


class EligibilityFilter:
    """Keep candidates a reference item may be matched against.

    A candidate must have the opposite status and come from another user.
    """

    def __init__(self, reference: Item) -> None:
        self._status = reference.status.opposite
        self._owner = reference.reported_by

    def __call__(self, candidates: list[Item]) -> list[Item]:
        result = [
            c for c in candidates
            if c.status is self._status and c.reported_by != self._owner
        ]
        excluded = len(candidates) - len(result)
        if excluded:
            logger.debug("EligibilityFilter: removed %d candidates", excluded)
        return result


class OpenItemsFilter:
    """Remove resolved reports."""

    def __call__(self, candidates: list[Item]) -> list[Item]:
        return [c for c in candidates if not c.is_resolved]


def run_filter_chain(candidates: list[Item], filters: list[Filter]) -> list[Item]:
    """Apply filters in order, returning the surviving candidates."""
    result = candidates
    for f in filters:
        result = f(result)
    return result


def merge_best(results: Iterable[MatchResult]) -> list[MatchResult]:
    """Collapse results to one per item id, keeping the highest score.

    The surviving entry keeps the position at which its id was first seen.
    """
    best: dict[str, MatchResult] = {}
    for r in results:
        current = best.get(r.item.id)
        if current is None or r.score > current.score:
            best[r.item.id] = r
    return list(best.values())


def rank(results: list[MatchResult], top_k: int) -> list[MatchResult]:
    """Stable sort by score descending, truncated to top_k."""
    return sorted(results, key=lambda r: r.score, reverse=True)[:top_k]


def score_pool(
    reference: Item,
    pool: list[Item],
    config: ScoringConfig,
    min_score: int,
) -> list[MatchResult]:
    """Score every eligible candidate, keeping those at or above min_score.

    Results are in pool order.
    """
    eligible = run_filter_chain(pool, [EligibilityFilter(reference), OpenItemsFilter()])
    results: list[MatchResult] = []
    for candidate in eligible:
        score = score_pair(reference, candidate, config)
        if score >= min_score:
            results.append(MatchResult(item=candidate, score=score))
    logger.debug(
        "Reference %s: %d eligible, %d above threshold %d",
        reference.id, len(eligible), len(results), min_score,
    )
    return results


def compute_matches(
    reference: Item,
    pool: list[Item],
    config: ScoringConfig,
    min_score: int = 15,
    top_k: int = 6,
) -> list[MatchResult]:
    """Rank the probable matches for a single reference item.

    Args:
        reference: Item with a known status.
        pool: Candidate items. Ineligible entries are skipped, not rejected.
        config: Scoring weights.
        min_score: Minimum clamped score a match needs.
        top_k: Maximum number of results.

    Returns:
        MatchResult list, highest score first, no duplicate item ids.
    """
    return rank(merge_best(score_pool(reference, pool, config, min_score)), top_k)


def compute_matches_for_references(
    references: list[Item],
    pool: list[Item],
    config: ScoringConfig,
    min_score: int = 15,
    top_k: int = 6,
) -> list[MatchResult]:
    """Rank matches across several reference items of the same user.

    A candidate that matches more than one reference appears once, with
    its best score.
    """
    scored: list[MatchResult] = []
    for reference in references:
        scored.extend(score_pool(reference, pool, config, min_score))
    return rank(merge_best(scored), top_k)
