"""SQLite database layer for item reports and the per-user match cache."""

import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

from lostfound.core.schemas import Item, ItemStatus, to_utc, utc_now

_ITEMS_TABLE = """
CREATE TABLE IF NOT EXISTS items (
    id              TEXT    PRIMARY KEY,
    status          TEXT    NOT NULL,
    title           TEXT    NOT NULL DEFAULT '',
    description     TEXT    NOT NULL DEFAULT '',
    category        TEXT    NOT NULL DEFAULT '',
    location        TEXT    NOT NULL DEFAULT '',
    reported_by     TEXT    NOT NULL,
    created_at      TEXT    NOT NULL,
    date_lost_found TEXT,
    is_resolved     INTEGER NOT NULL DEFAULT 0
);
"""

_ITEMS_INDEX = """
CREATE INDEX IF NOT EXISTS idx_items_pool
    ON items (status, is_resolved, created_at);
"""

_MATCH_CACHE_TABLE = """
CREATE TABLE IF NOT EXISTS match_cache (
    user_id         TEXT PRIMARY KEY,
    payload         TEXT NOT NULL,
    computed_at     TEXT NOT NULL,
    expires_at      TEXT NOT NULL
);
"""

def _timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO text, so stored timestamps compare correctly as strings."""
    return to_utc(value).isoformat(timespec="microseconds")


_ITEM_COLUMNS = (
    "id, status, title, description, category, location, reported_by, "
    "created_at, date_lost_found, is_resolved"
)


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_ITEMS_TABLE)
    conn.execute(_ITEMS_INDEX)
    conn.execute(_MATCH_CACHE_TABLE)
    conn.commit()
    return conn


def _row_to_item(row: sqlite3.Row) -> Item:
    date_lost_found = row["date_lost_found"]
    return Item(
        id=row["id"],
        status=ItemStatus(row["status"]),
        title=row["title"],
        description=row["description"],
        category=row["category"],
        location=row["location"],
        reported_by=row["reported_by"],
        created_at=datetime.fromisoformat(row["created_at"]),
        date_lost_found=datetime.fromisoformat(date_lost_found) if date_lost_found else None,
        is_resolved=bool(row["is_resolved"]),
    )


def insert_item(conn: sqlite3.Connection, item: Item) -> bool:
    """Insert an item report, ignoring it if the id already exists.

    Returns True if a new row was inserted, False if it was a duplicate.
    """
    try:
        conn.execute(
            f"""
            INSERT INTO items ({_ITEM_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                item.id,
                item.status.value,
                item.title,
                item.description,
                item.category,
                item.location,
                item.reported_by,
                _timestamp(item.created_at),
                _timestamp(item.date_lost_found) if item.date_lost_found else None,
                int(item.is_resolved),
            ),
        )
        conn.commit()
        return True
    except sqlite3.IntegrityError:
        return False


def get_item(conn: sqlite3.Connection, item_id: str) -> Item | None:
    row = conn.execute(
        f"SELECT {_ITEM_COLUMNS} FROM items WHERE id = ?",
        (item_id,),
    ).fetchone()
    return _row_to_item(row) if row is not None else None


def all_items(conn: sqlite3.Connection, open_only: bool = False) -> list[Item]:
    """Return every item, newest first."""
    where = "WHERE is_resolved = 0" if open_only else ""
    rows = conn.execute(
        f"SELECT {_ITEM_COLUMNS} FROM items {where} ORDER BY created_at DESC, id",
    ).fetchall()
    return [_row_to_item(r) for r in rows]


def items_for_user(
    conn: sqlite3.Connection,
    user_id: str,
    open_only: bool = True,
) -> list[Item]:
    """Return the user's reports in creation order."""
    query = f"SELECT {_ITEM_COLUMNS} FROM items WHERE reported_by = ?"
    if open_only:
        query += " AND is_resolved = 0"
    query += " ORDER BY created_at, id"
    rows = conn.execute(query, (user_id,)).fetchall()
    return [_row_to_item(r) for r in rows]


def fetch_candidate_pool(
    conn: sqlite3.Connection,
    status: ItemStatus,
    exclude_user: str,
    since: datetime | None = None,
) -> list[Item]:
    """Open items with the given status reported by anyone but ``exclude_user``.

    When ``since`` is given, only items created at or after it are returned.
    Ordered by creation time so pool order is deterministic.
    """
    query = (
        f"SELECT {_ITEM_COLUMNS} FROM items "
        "WHERE status = ? AND reported_by != ? AND is_resolved = 0"
    )
    params: list[str] = [status.value, exclude_user]
    if since is not None:
        query += " AND created_at >= ?"
        params.append(_timestamp(since))
    query += " ORDER BY created_at, id"
    rows = conn.execute(query, params).fetchall()
    return [_row_to_item(r) for r in rows]


def users_with_open_items(conn: sqlite3.Connection) -> list[str]:
    rows = conn.execute(
        "SELECT DISTINCT reported_by FROM items WHERE is_resolved = 0 ORDER BY reported_by",
    ).fetchall()
    return [r["reported_by"] for r in rows]


def mark_resolved(conn: sqlite3.Connection, item_id: str) -> bool:
    """Close a report. Returns False if no such item exists."""
    cursor = conn.execute("UPDATE items SET is_resolved = 1 WHERE id = ?", (item_id,))
    conn.commit()
    return cursor.rowcount > 0


def get_cached_matches(
    conn: sqlite3.Connection,
    user_id: str,
    now: datetime | None = None,
) -> str | None:
    """Return the cached payload for a user, or None if missing or expired."""
    now = now or utc_now()
    row = conn.execute(
        "SELECT payload FROM match_cache WHERE user_id = ? AND expires_at > ?",
        (user_id, _timestamp(now)),
    ).fetchone()
    return row["payload"] if row is not None else None


def set_cached_matches(
    conn: sqlite3.Connection,
    user_id: str,
    payload: str,
    ttl_seconds: int,
    now: datetime | None = None,
) -> None:
    """Replace the user's cache entry in a single statement (last writer wins)."""
    now = now or utc_now()
    expires_at = now + timedelta(seconds=ttl_seconds)
    conn.execute(
        """
        INSERT OR REPLACE INTO match_cache (user_id, payload, computed_at, expires_at)
        VALUES (?, ?, ?, ?)
        """,
        (user_id, payload, _timestamp(now), _timestamp(expires_at)),
    )
    conn.commit()


def purge_expired_cache(conn: sqlite3.Connection, now: datetime | None = None) -> int:
    """Delete expired cache rows. Returns the number removed."""
    now = now or utc_now()
    cursor = conn.execute("DELETE FROM match_cache WHERE expires_at <= ?", (_timestamp(now),))
    conn.commit()
    return cursor.rowcount
