"""Orchestrator: wires storage, pool construction, matcher, and cache.

Data flow for one user:
  1. Load the user's open reports (reference items)
  2. Build the candidate pool per opposite status, bounded by the pool window
  3. Matcher → ranked, deduplicated results
  4. Cache write (best-effort)
"""

import json
import logging
import sqlite3
import uuid
from datetime import datetime, timedelta

from pydantic import BaseModel

from lostfound.core.config import Settings
from lostfound.core.db import fetch_candidate_pool, items_for_user, users_with_open_items
from lostfound.core.schemas import Item, ItemStatus, MatchResult, to_utc, utc_now
from lostfound.pipeline.match_cache import MatchCache
from lostfound.pipeline.matcher import compute_matches, compute_matches_for_references

logger = logging.getLogger(__name__)


class SweepResult(BaseModel):
    """Summary of one pass over every user with open reports."""

    users: int
    matches: int
    started_at: datetime
    finished_at: datetime


def build_candidate_pool(
    conn: sqlite3.Connection,
    reference: Item,
    window_days: int | None,
    now: datetime | None = None,
) -> list[Item]:
    """Open opposite-status items of other users, created within the window."""
    since = None
    if window_days is not None:
        since = to_utc(now or utc_now()) - timedelta(days=window_days)
    return fetch_candidate_pool(
        conn, reference.status.opposite, reference.reported_by, since,
    )


def compute_user_matches(
    conn: sqlite3.Connection,
    user_id: str,
    settings: Settings,
    cache: MatchCache | None = None,
    now: datetime | None = None,
) -> list[MatchResult]:
    """Recompute the ranked matches across all of a user's open reports.

    Always computes from storage; the cache, when given, is refreshed with
    the result.
    """
    references = items_for_user(conn, user_id)
    if not references:
        logger.debug("User '%s' has no open reports", user_id)
        return []

    # One pool per opposite status; all references share the same owner.
    pool: list[Item] = []
    for status in sorted({r.status for r in references}, key=lambda s: s.value):
        reference = next(r for r in references if r.status is status)
        pool.extend(
            build_candidate_pool(conn, reference, settings.matching.pool_window_days, now),
        )

    matches = compute_matches_for_references(
        references,
        pool,
        settings.scoring,
        min_score=settings.matching.min_score,
        top_k=settings.matching.top_k,
    )
    logger.info(
        "User '%s': %d reports, pool of %d, %d matches",
        user_id, len(references), len(pool), len(matches),
    )

    if cache is not None:
        cache.set(user_id, matches, now)
    return matches


def get_user_matches(
    conn: sqlite3.Connection,
    user_id: str,
    settings: Settings,
    cache: MatchCache | None = None,
    now: datetime | None = None,
) -> list[MatchResult]:
    """Serve a user's matches from the cache, recomputing on a miss."""
    if cache is not None:
        cached = cache.get(user_id, now)
        if cached is not None:
            logger.debug("Serving %d cached matches for '%s'", len(cached), user_id)
            return cached
    return compute_user_matches(conn, user_id, settings, cache, now)


def build_query_item(
    query: str,
    status: ItemStatus,
    user_id: str,
    category: str = "",
    location: str = "",
) -> Item:
    """Wrap a free-text description in a transient, unsaved report."""
    if not query.strip():
        msg = "query must not be empty"
        raise ValueError(msg)
    return Item(
        id=f"query-{uuid.uuid4().hex}",
        status=status,
        title=query,
        category=category,
        location=location,
        reported_by=user_id,
    )


def find_similar_items(
    conn: sqlite3.Connection,
    reference: Item,
    settings: Settings,
) -> list[MatchResult]:
    """Rank stored items against a reference that need not be saved.

    The pool is every open opposite-status item of other users, with no
    time window.
    """
    pool = build_candidate_pool(conn, reference, window_days=None)
    logger.info("Similar-items query against %d candidates", len(pool))
    return compute_matches(
        reference,
        pool,
        settings.scoring,
        min_score=settings.matching.similar_min_score,
        top_k=settings.matching.similar_top_k,
    )


def run_sweep(
    conn: sqlite3.Connection,
    settings: Settings,
    cache: MatchCache,
    now: datetime | None = None,
) -> SweepResult:
    """Recompute and cache matches for every user with an open report.

    Each user's cache entry is replaced whole, so rerunning is harmless.
    """
    started_at = utc_now()
    cache.purge(now)
    users = users_with_open_items(conn)
    total = 0
    for user_id in users:
        total += len(compute_user_matches(conn, user_id, settings, cache, now))
    finished_at = utc_now()
    logger.info("Sweep complete: %d users, %d matches", len(users), total)
    return SweepResult(
        users=len(users),
        matches=total,
        started_at=started_at,
        finished_at=finished_at,
    )


def export_matches_json(matches: list[MatchResult]) -> str:
    """Export matches as a JSON string of ``{item, matchScore}`` objects."""
    return json.dumps([m.to_payload() for m in matches], indent=2)
