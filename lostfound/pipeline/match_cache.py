"""Match cache: per-user, time-boxed store of the latest computed matches.

Cache state lives in SQLite. Every read and write is best-effort: a failing
cache is logged and treated as a miss, never surfaced to the caller.
"""

import json
import logging
import sqlite3
from datetime import datetime

from pydantic import ValidationError

from lostfound.core.config import CacheConfig
from lostfound.core.db import get_cached_matches, purge_expired_cache, set_cached_matches
from lostfound.core.schemas import MatchResult

logger = logging.getLogger(__name__)


class MatchCache:
    """Stores each user's ranked matches for ``ttl_seconds``.

    Usage::

        cache = MatchCache(conn, CacheConfig(ttl_seconds=600))
        matches = cache.get("user-1")
        if matches is None:
            matches = ...  # recompute
            cache.set("user-1", matches)
    """

    def __init__(self, conn: sqlite3.Connection, config: CacheConfig) -> None:
        self._conn = conn
        self._config = config

    def get(self, user_id: str, now: datetime | None = None) -> list[MatchResult] | None:
        """Return cached matches, or None on a miss, an expiry, or an error."""
        if not self._config.enabled:
            return None
        try:
            payload = get_cached_matches(self._conn, user_id, now)
        except sqlite3.Error as e:
            logger.warning("Cache read failed for '%s': %s", user_id, e)
            return None
        if payload is None:
            logger.debug("Cache miss for '%s'", user_id)
            return None
        try:
            return [MatchResult.model_validate(d) for d in json.loads(payload)]
        except (ValueError, ValidationError) as e:
            logger.warning("Discarding unreadable cache entry for '%s': %s", user_id, e)
            return None

    def set(
        self,
        user_id: str,
        matches: list[MatchResult],
        now: datetime | None = None,
    ) -> None:
        """Replace the user's entry with a complete result list."""
        if not self._config.enabled:
            return
        payload = json.dumps([m.model_dump(mode="json") for m in matches])
        try:
            set_cached_matches(self._conn, user_id, payload, self._config.ttl_seconds, now)
        except sqlite3.Error as e:
            logger.warning("Cache write failed for '%s': %s", user_id, e)
            return
        logger.debug("Cached %d matches for '%s'", len(matches), user_id)

    def purge(self, now: datetime | None = None) -> int:
        """Drop expired entries. Returns the number removed, 0 on error."""
        try:
            purged = purge_expired_cache(self._conn, now)
        except sqlite3.Error as e:
            logger.warning("Cache purge failed: %s", e)
            return 0
        if purged:
            logger.debug("Purged %d expired cache entries", purged)
        return purged
