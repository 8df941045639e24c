#!/usr/bin/env python3
"""Benchmark the matcher against a synthetic candidate pool.

Generates random lost/found reports from the scoring vocabularies, matches
a batch of reference items against the pool, and prints timing statistics
plus the score distribution.

Usage:
    python scripts/benchmark_matching.py
    python scripts/benchmark_matching.py --pool 5000 --references 50
    python scripts/benchmark_matching.py --config config/settings.yaml --seed 7
"""

import argparse
import logging
import random
import statistics
import sys
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Ensure project root is on the path when run as a script
sys.path.insert(0, str(Path(__file__).parent.parent))

from lostfound.core.config import ScoringConfig, Settings
from lostfound.core.schemas import Item, ItemStatus
from lostfound.pipeline.matcher import compute_matches

logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)

_CATEGORIES = ["Electronics", "Accessories", "Clothing", "Books", "Keys", "Bags"]
_LOCATIONS = ["Library", "Library 2nd floor", "Cafeteria", "Gym", "Main Hall", "Parking Lot B"]
_NOUNS = ["wallet", "phone", "laptop", "keys", "backpack", "jacket", "bottle", "headphones"]


def _random_item(
    rng: random.Random,
    item_id: str,
    status: ItemStatus,
    vocabulary: list[str],
    base: datetime,
) -> Item:
    words = rng.sample(vocabulary, k=3) + [rng.choice(_NOUNS)]
    return Item(
        id=item_id,
        status=status,
        title=" ".join(words[:2] + words[-1:]),
        description=" ".join(rng.sample(vocabulary, k=4)),
        category=rng.choice(_CATEGORIES),
        location=rng.choice(_LOCATIONS),
        reported_by=f"user-{rng.randint(1, 200)}",
        created_at=base - timedelta(hours=rng.randint(0, 24 * 45)),
    )


def _build_items(
    rng: random.Random,
    count: int,
    status: ItemStatus,
    config: ScoringConfig,
    prefix: str,
) -> list[Item]:
    vocabulary = [term for rule in config.vocabularies for term in rule.terms]
    base = datetime.now(timezone.utc)
    return [_random_item(rng, f"{prefix}-{i}", status, vocabulary, base) for i in range(count)]


def _print_report(timings: list[float], scores: list[int], pool_size: int) -> None:
    print(f"\nPool size: {pool_size}   References: {len(timings)}")
    print("=" * 48)
    print(f"{'mean':<10} {statistics.mean(timings) * 1000:>10.2f} ms")
    print(f"{'median':<10} {statistics.median(timings) * 1000:>10.2f} ms")
    print(f"{'max':<10} {max(timings) * 1000:>10.2f} ms")
    print("=" * 48)
    if scores:
        print(f"Returned matches: {len(scores)}")
        print(f"Score mean {statistics.mean(scores):.1f}, min {min(scores)}, max {max(scores)}")
    else:
        print("No matches above threshold.")


def main() -> None:
    parser = argparse.ArgumentParser(description="Benchmark the item matcher")
    parser.add_argument("--config", help="Optional settings YAML for weights and thresholds")
    parser.add_argument("--pool", type=int, default=2000, help="Candidate pool size")
    parser.add_argument("--references", type=int, default=25, help="Reference items to match")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    settings = Settings.from_yaml(args.config) if args.config else Settings()
    rng = random.Random(args.seed)

    pool = _build_items(rng, args.pool, ItemStatus.FOUND, settings.scoring, "found")
    references = _build_items(rng, args.references, ItemStatus.LOST, settings.scoring, "lost")

    timings: list[float] = []
    scores: list[int] = []
    for reference in references:
        start = time.perf_counter()
        matches = compute_matches(
            reference,
            pool,
            settings.scoring,
            min_score=settings.matching.min_score,
            top_k=settings.matching.top_k,
        )
        timings.append(time.perf_counter() - start)
        scores.extend(m.score for m in matches)

    _print_report(timings, scores, len(pool))


if __name__ == "__main__":
    main()
