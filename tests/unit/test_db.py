"""Tests for the database layer: init, items, candidate pool, match cache."""

from datetime import datetime, timedelta, timezone

import pytest

from lostfound.core.db import (
    all_items,
    fetch_candidate_pool,
    get_cached_matches,
    get_item,
    init_db,
    insert_item,
    items_for_user,
    mark_resolved,
    purge_expired_cache,
    set_cached_matches,
    users_with_open_items,
)
from lostfound.core.schemas import Item, ItemStatus

_T0 = datetime(2026, 3, 1, 12, 0)


def _item(item_id: str = "1", **kw: object) -> Item:
    defaults: dict[str, object] = {
        "id": item_id,
        "status": ItemStatus.FOUND,
        "title": "Umbrella",
        "reported_by": "bob",
        "created_at": _T0,
    }
    defaults.update(kw)
    return Item(**defaults)  # type: ignore[arg-type]


@pytest.fixture()
def db(tmp_path):  # type: ignore[no-untyped-def]
    """Provide a fresh SQLite connection per test."""
    return init_db(tmp_path / "test.db")


class TestInitDb:
    def test_creates_tables(self, db) -> None:  # type: ignore[no-untyped-def]
        tables = {
            row[0]
            for row in db.execute(
                "SELECT name FROM sqlite_master WHERE type='table'"
            ).fetchall()
        }
        assert "items" in tables
        assert "match_cache" in tables

    def test_idempotent(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        """Calling init_db twice on the same path doesn't error."""
        p = tmp_path / "double.db"
        conn1 = init_db(p)
        conn1.close()
        conn2 = init_db(p)
        conn2.close()

    def test_creates_parent_dirs(self, tmp_path) -> None:  # type: ignore[no-untyped-def]
        conn = init_db(tmp_path / "nested" / "dir" / "lf.db")
        conn.close()
        assert (tmp_path / "nested" / "dir" / "lf.db").exists()


class TestItems:
    def test_insert_new(self, db) -> None:  # type: ignore[no-untyped-def]
        assert insert_item(db, _item("1")) is True

    def test_duplicate_ignored(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("1"))
        assert insert_item(db, _item("1", title="Other")) is False
        count = db.execute("SELECT COUNT(*) FROM items").fetchone()[0]
        assert count == 1

    def test_get_item_round_trip(self, db) -> None:  # type: ignore[no-untyped-def]
        item = _item(
            "1",
            status=ItemStatus.LOST,
            description="blue, folding",
            category="Misc",
            location="Gym",
            date_lost_found=_T0 - timedelta(days=2),
        )
        insert_item(db, item)
        assert get_item(db, "1") == item

    def test_timestamps_stored_as_fixed_width_utc(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("1", created_at="2026-03-01T07:00:00-05:00"))
        row = db.execute("SELECT created_at FROM items WHERE id = ?", ("1",)).fetchone()
        assert row["created_at"] == "2026-03-01T12:00:00.000000+00:00"
        loaded = get_item(db, "1")
        assert loaded is not None and loaded.created_at == _T0.replace(tzinfo=timezone.utc)

    def test_get_item_without_date_lost_found(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("1"))
        loaded = get_item(db, "1")
        assert loaded is not None
        assert loaded.date_lost_found is None

    def test_get_missing_item(self, db) -> None:  # type: ignore[no-untyped-def]
        assert get_item(db, "nope") is None

    def test_items_for_user(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("late", reported_by="alice", created_at=_T0 + timedelta(days=1)))
        insert_item(db, _item("early", reported_by="alice"))
        insert_item(db, _item("other", reported_by="bob"))
        assert [i.id for i in items_for_user(db, "alice")] == ["early", "late"]

    def test_items_for_user_open_only(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("open", reported_by="alice"))
        insert_item(db, _item("closed", reported_by="alice", is_resolved=True))
        assert [i.id for i in items_for_user(db, "alice")] == ["open"]
        assert len(items_for_user(db, "alice", open_only=False)) == 2

    def test_all_items_newest_first(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("old"))
        insert_item(db, _item("new", created_at=_T0 + timedelta(hours=1)))
        assert [i.id for i in all_items(db)] == ["new", "old"]

    def test_mark_resolved(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("1"))
        assert mark_resolved(db, "1") is True
        loaded = get_item(db, "1")
        assert loaded is not None and loaded.is_resolved is True
        assert all_items(db, open_only=True) == []

    def test_mark_resolved_missing(self, db) -> None:  # type: ignore[no-untyped-def]
        assert mark_resolved(db, "nope") is False

    def test_users_with_open_items(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("1", reported_by="bob"))
        insert_item(db, _item("2", reported_by="alice"))
        insert_item(db, _item("3", reported_by="alice"))
        insert_item(db, _item("4", reported_by="carol", is_resolved=True))
        assert users_with_open_items(db) == ["alice", "bob"]


class TestCandidatePool:
    def test_filters_status_user_and_resolved(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("ok"))
        insert_item(db, _item("wrong-status", status=ItemStatus.LOST))
        insert_item(db, _item("mine", reported_by="alice"))
        insert_item(db, _item("closed", is_resolved=True))
        pool = fetch_candidate_pool(db, ItemStatus.FOUND, "alice")
        assert [i.id for i in pool] == ["ok"]

    def test_since_bounds_pool(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("old", created_at=_T0 - timedelta(days=40)))
        insert_item(db, _item("recent", created_at=_T0 - timedelta(days=5)))
        pool = fetch_candidate_pool(db, ItemStatus.FOUND, "alice", since=_T0 - timedelta(days=30))
        assert [i.id for i in pool] == ["recent"]

    def test_ordered_by_creation(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("b", created_at=_T0 + timedelta(hours=2)))
        insert_item(db, _item("a", created_at=_T0))
        pool = fetch_candidate_pool(db, ItemStatus.FOUND, "alice")
        assert [i.id for i in pool] == ["a", "b"]

    def test_window_compares_offset_timestamps_in_utc(self, db) -> None:  # type: ignore[no-untyped-def]
        # 20:00 at -05:00 is 01:00 UTC the next day, just inside the window.
        insert_item(db, _item("inside", created_at="2026-09-18T20:00:00-05:00"))
        # 23:00 at +00:00 is an hour before the window opens.
        insert_item(db, _item("outside", created_at="2026-09-18T23:00:00+00:00"))
        pool = fetch_candidate_pool(db, ItemStatus.FOUND, "alice", since=datetime(2026, 9, 19))
        assert [i.id for i in pool] == ["inside"]

    def test_aware_since_converted_to_utc(self, db) -> None:  # type: ignore[no-untyped-def]
        insert_item(db, _item("recent", created_at=_T0))
        since = datetime(2026, 3, 1, 13, 0, tzinfo=timezone(timedelta(hours=2)))
        assert [i.id for i in fetch_candidate_pool(db, ItemStatus.FOUND, "alice", since)] == ["recent"]


class TestMatchCacheTable:
    def test_miss(self, db) -> None:  # type: ignore[no-untyped-def]
        assert get_cached_matches(db, "alice", now=_T0) is None

    def test_set_then_get(self, db) -> None:  # type: ignore[no-untyped-def]
        set_cached_matches(db, "alice", "[]", ttl_seconds=600, now=_T0)
        assert get_cached_matches(db, "alice", now=_T0 + timedelta(seconds=599)) == "[]"

    def test_expired(self, db) -> None:  # type: ignore[no-untyped-def]
        set_cached_matches(db, "alice", "[]", ttl_seconds=600, now=_T0)
        assert get_cached_matches(db, "alice", now=_T0 + timedelta(seconds=600)) is None

    def test_replace_is_last_writer_wins(self, db) -> None:  # type: ignore[no-untyped-def]
        set_cached_matches(db, "alice", "[1]", ttl_seconds=600, now=_T0)
        set_cached_matches(db, "alice", "[2]", ttl_seconds=600, now=_T0)
        assert get_cached_matches(db, "alice", now=_T0) == "[2]"
        count = db.execute("SELECT COUNT(*) FROM match_cache").fetchone()[0]
        assert count == 1

    def test_keyed_by_user(self, db) -> None:  # type: ignore[no-untyped-def]
        set_cached_matches(db, "alice", "[1]", ttl_seconds=600, now=_T0)
        set_cached_matches(db, "bob", "[2]", ttl_seconds=600, now=_T0)
        assert get_cached_matches(db, "alice", now=_T0) == "[1]"
        assert get_cached_matches(db, "bob", now=_T0) == "[2]"

    def test_purge_expired(self, db) -> None:  # type: ignore[no-untyped-def]
        set_cached_matches(db, "alice", "[]", ttl_seconds=60, now=_T0)
        set_cached_matches(db, "bob", "[]", ttl_seconds=600, now=_T0)
        assert purge_expired_cache(db, now=_T0 + timedelta(seconds=120)) == 1
        assert get_cached_matches(db, "bob", now=_T0) == "[]"

    def test_expiry_with_aware_now(self, db) -> None:  # type: ignore[no-untyped-def]
        set_cached_matches(db, "alice", "[]", ttl_seconds=600, now=_T0)
        # 13:05 at +01:00 is 12:05 UTC, still fresh.
        fresh = datetime(2026, 3, 1, 13, 5, tzinfo=timezone(timedelta(hours=1)))
        assert get_cached_matches(db, "alice", now=fresh) == "[]"
        assert get_cached_matches(db, "alice", now=fresh + timedelta(minutes=6)) is None
