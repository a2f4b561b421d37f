from __future__ import annotations

from sqlalchemy.engine import Connection

from ..db import execute, fetch_all, fetch_one, fetch_scalar
from .common import delete_row, get_row, insert_row, update_row

STATUS_RANK_SQL = (
    "CASE status WHEN 'Live Now' THEN 1 WHEN 'Featured' THEN 2 "
    "WHEN 'Upcoming' THEN 3 ELSE 4 END"
)


def insert(conn: Connection, values: dict) -> int:
    return insert_row(conn, "events", values)


def get(conn: Connection, event_id: int) -> dict | None:
    return get_row(conn, "events", event_id)


def update(conn: Connection, event_id: int, fields: dict) -> int:
    return update_row(conn, "events", event_id, fields)


def delete(conn: Connection, event_id: int) -> int:
    return delete_row(conn, "events", event_id)


def find_by_title(conn: Connection, title: str, exclude_id: int | None = None) -> dict | None:
    sql = "SELECT id, title FROM events WHERE LOWER(TRIM(title)) = LOWER(TRIM(:title))"
    params: dict = {"title": title}
    if exclude_id is not None:
        sql += " AND id <> :exclude_id"
        params["exclude_id"] = exclude_id
    return fetch_one(conn, sql, params)


def list_public(conn: Connection, status: str | None, etype: str | None, limit: int, offset: int) -> tuple[int, list[dict]]:
    wh = "WHERE COALESCE(is_archived, 0) = 0"
    params: dict = {}
    if status:
        wh += " AND status = :status"
        params["status"] = status
    if etype:
        wh += " AND LOWER(event_type) = LOWER(:etype)"
        params["etype"] = etype
    total = fetch_scalar(conn, f"SELECT COUNT(*) FROM events {wh}", params)
    rows = fetch_all(
        conn,
        f"SELECT * FROM events {wh} ORDER BY event_date DESC, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": limit, "offset": offset},
    )
    return total, rows


def list_pitch(conn: Connection) -> list[dict]:
    return fetch_all(
        conn,
        "SELECT * FROM events WHERE LOWER(event_type) = 'pitch' AND COALESCE(is_archived, 0) = 0 "
        f"ORDER BY {STATUS_RANK_SQL}, event_date DESC, id DESC",
    )


def list_admin(conn: Connection, limit: int, offset: int) -> tuple[int, list[dict]]:
    total = fetch_scalar(conn, "SELECT COUNT(*) FROM events")
    rows = fetch_all(
        conn,
        "SELECT e.*, (SELECT COUNT(*) FROM event_rsvps r WHERE r.event_id = e.id) AS rsvp_count "
        "FROM events e ORDER BY e.event_date DESC, e.id DESC LIMIT :limit OFFSET :offset",
        {"limit": limit, "offset": offset},
    )
    return total, rows


def list_dated(conn: Connection) -> list[dict]:
    return fetch_all(
        conn,
        "SELECT id, title, event_date, status FROM events WHERE event_date IS NOT NULL ORDER BY event_date, id",
    )


def featured(conn: Connection) -> dict | None:
    return fetch_one(
        conn,
        "SELECT * FROM events WHERE COALESCE(is_archived, 0) = 0 "
        "AND status IN ('Live Now', 'Featured', 'Upcoming') "
        f"ORDER BY {STATUS_RANK_SQL}, event_date ASC, id ASC LIMIT 1",
    )


# RSVPs

def add_rsvp(conn: Connection, event_id: int, user_id: int, ts: str) -> int:
    return insert_row(conn, "event_rsvps", {"event_id": event_id, "user_id": user_id, "rsvp_date": ts})


def remove_rsvp(conn: Connection, event_id: int, user_id: int) -> int:
    return execute(
        conn,
        "DELETE FROM event_rsvps WHERE event_id = :eid AND user_id = :uid",
        {"eid": event_id, "uid": user_id},
    ).rowcount


def has_rsvp(conn: Connection, event_id: int, user_id: int) -> bool:
    row = fetch_one(
        conn,
        "SELECT 1 AS x FROM event_rsvps WHERE event_id = :eid AND user_id = :uid",
        {"eid": event_id, "uid": user_id},
    )
    return row is not None


def rsvp_count(conn: Connection, event_id: int) -> int:
    return fetch_scalar(conn, "SELECT COUNT(*) FROM event_rsvps WHERE event_id = :eid", {"eid": event_id})


def rsvp_counts(conn: Connection, event_ids: list[int]) -> dict[int, int]:
    if not event_ids:
        return {}
    names = {f"e{i}": eid for i, eid in enumerate(event_ids)}
    placeholders = ", ".join(f":{k}" for k in names)
    rows = fetch_all(
        conn,
        f"SELECT event_id, COUNT(*) AS cnt FROM event_rsvps WHERE event_id IN ({placeholders}) GROUP BY event_id",
        names,
    )
    return {int(r["event_id"]): int(r["cnt"]) for r in rows}


def list_rsvps(conn: Connection, event_id: int, limit: int, offset: int) -> tuple[int, list[dict]]:
    total = rsvp_count(conn, event_id)
    rows = fetch_all(
        conn,
        "SELECT r.id, r.user_id, r.rsvp_date, u.name, u.email, u.phone "
        "FROM event_rsvps r INNER JOIN users u ON r.user_id = u.id "
        "WHERE r.event_id = :eid ORDER BY r.rsvp_date DESC, r.id DESC LIMIT :limit OFFSET :offset",
        {"eid": event_id, "limit": limit, "offset": offset},
    )
    return total, rows


def insert_pitch_entry(conn: Connection, values: dict) -> int:
    return insert_row(conn, "pitch_entries", values)


def find_pitch_entry(conn: Connection, event_id: int | None, business_name: str) -> dict | None:
    return fetch_one(
        conn,
        "SELECT id FROM pitch_entries WHERE COALESCE(event_id, 0) = COALESCE(:eid, 0) "
        "AND LOWER(business_name) = LOWER(:name)",
        {"eid": event_id, "name": business_name},
    )
