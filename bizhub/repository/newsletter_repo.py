from __future__ import annotations

from sqlalchemy.engine import Connection

from ..db import execute, fetch_all, fetch_one, fetch_scalar
from .common import insert_row

_STATUS_WHERE = {
    "active": "WHERE is_active = 1",
    "inactive": "WHERE is_active = 0",
}


def get_by_email(conn: Connection, email: str) -> dict | None:
    return fetch_one(conn, "SELECT * FROM newsletter_subscribers WHERE email = :email", {"email": email})


def insert(conn: Connection, email: str, source: str, ts: str) -> int:
    return insert_row(
        conn,
        "newsletter_subscribers",
        {"email": email, "source": source, "subscribed_at": ts, "is_active": 1},
    )


def set_active(conn: Connection, email: str, active: bool, ts: str) -> int:
    if active:
        sql = (
            "UPDATE newsletter_subscribers SET is_active = 1, subscribed_at = :ts, "
            "unsubscribed_at = NULL WHERE email = :email"
        )
    else:
        sql = "UPDATE newsletter_subscribers SET is_active = 0, unsubscribed_at = :ts WHERE email = :email"
    return execute(conn, sql, {"email": email, "ts": ts}).rowcount


def list_page(conn: Connection, status: str, limit: int, offset: int) -> tuple[int, list[dict]]:
    wh = _STATUS_WHERE.get(status, "")
    total = fetch_scalar(conn, f"SELECT COUNT(*) FROM newsletter_subscribers {wh}")
    rows = fetch_all(
        conn,
        f"SELECT * FROM newsletter_subscribers {wh} ORDER BY subscribed_at DESC, id DESC LIMIT :limit OFFSET :offset",
        {"limit": limit, "offset": offset},
    )
    return total, rows
