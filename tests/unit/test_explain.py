"""Tests for match reasons and confidence."""

from datetime import datetime

from lostfound.core.config import ScoringConfig
from lostfound.core.schemas import Item, ItemStatus, MatchResult
from lostfound.pipeline.explain import confidence, describe_match, explain_matches
from lostfound.pipeline.scorer import ScoreBreakdown, score_breakdown


def _pair() -> tuple[Item, Item]:
    ref = Item(
        id="r",
        status=ItemStatus.LOST,
        title="black nike bag",
        category="Bags",
        location="Gym",
        reported_by="alice",
        created_at=datetime(2026, 3, 1),
    )
    cand = Item(
        id="c",
        status=ItemStatus.FOUND,
        title="nike bag, black",
        category="bags",
        location="Gym locker room",
        reported_by="bob",
        created_at=datetime(2026, 3, 2),
    )
    return ref, cand


class TestDescribeMatch:
    def test_lists_each_signal(self) -> None:
        ref, cand = _pair()
        reasons = describe_match(score_breakdown(ref, cand, ScoringConfig()))
        assert reasons == [
            "Category match",
            "Nearby location",
            "Shared color: black",
            "Shared brand: nike",
            "3 shared keywords",
            "Reported around the same time",
        ]

    def test_nothing_matched(self) -> None:
        assert describe_match(ScoreBreakdown()) == ["Basic similarity detected"]


class TestConfidence:
    def test_bounded_above(self) -> None:
        ref, cand = _pair()
        assert confidence(score_breakdown(ref, cand, ScoringConfig())) == 95

    def test_bounded_below(self) -> None:
        assert confidence(ScoreBreakdown()) == 10

    def test_adds_keyword_weight(self) -> None:
        breakdown = ScoreBreakdown(score=20, shared_keywords=["wallet", "leather"])
        assert confidence(breakdown) == 30


class TestExplainMatches:
    def test_extends_payload(self) -> None:
        ref, cand = _pair()
        payloads = explain_matches(ref, [MatchResult(item=cand, score=100)], ScoringConfig())
        assert len(payloads) == 1
        assert payloads[0]["item"]["id"] == "c"
        assert payloads[0]["matchScore"] == 100
        assert payloads[0]["confidence"] == 95
        assert payloads[0]["matchReason"][0] == "Category match"

    def test_empty(self) -> None:
        ref, _ = _pair()
        assert explain_matches(ref, [], ScoringConfig()) == []
