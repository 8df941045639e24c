"""Periodic background sweep that keeps every user's match cache warm.

Each pass runs in a worker thread with its own SQLite connection, so it
never blocks the event loop or shares a connection with request handling.
"""

import asyncio
import logging

from lostfound.core.config import Settings
from lostfound.core.db import init_db
from lostfound.pipeline.match_cache import MatchCache
from lostfound.pipeline.orchestrator import SweepResult, run_sweep

logger = logging.getLogger(__name__)


class MatchSweeper:
    """Runs ``run_sweep`` every ``settings.sweep.interval_seconds``."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def sweep_once(self) -> SweepResult:
        """Run a single blocking pass on a fresh connection."""
        conn = init_db(self._settings.database.path)
        try:
            cache = MatchCache(conn, self._settings.cache)
            return run_sweep(conn, self._settings, cache)
        finally:
            conn.close()

    async def run_forever(
        self,
        stop: asyncio.Event | None = None,
        max_runs: int | None = None,
    ) -> int:
        """Sweep on a fixed interval until ``stop`` is set or ``max_runs`` passes.

        A failed pass is logged and the next one still runs on schedule.
        Returns the number of passes attempted.
        """
        stop = stop or asyncio.Event()
        interval = self._settings.sweep.interval_seconds
        runs = 0
        while not stop.is_set():
            runs += 1
            try:
                result = await asyncio.to_thread(self.sweep_once)
                logger.info(
                    "Sweep %d: %d users, %d matches", runs, result.users, result.matches,
                )
            except Exception:
                logger.exception("Sweep %d failed", runs)
            if max_runs is not None and runs >= max_runs:
                break
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
        return runs
