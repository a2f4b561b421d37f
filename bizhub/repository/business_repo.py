from __future__ import annotations

from sqlalchemy.engine import Connection

from ..db import fetch_all, fetch_one, fetch_scalar
from .common import get_row, insert_row, update_row

LISTED_STATUSES = ("Approved", "Verified Business")


def insert(conn: Connection, values: dict) -> int:
    return insert_row(conn, "businesses", values)


def get(conn: Connection, business_id: int) -> dict | None:
    return get_row(conn, "businesses", business_id)


def update(conn: Connection, business_id: int, fields: dict) -> int:
    return update_row(conn, "businesses", business_id, fields)


def find_by_user_and_name(conn: Connection, user_id: int, name: str) -> dict | None:
    return fetch_one(
        conn,
        "SELECT id, business_name FROM businesses "
        "WHERE user_id = :uid AND LOWER(TRIM(business_name)) = LOWER(TRIM(:name))",
        {"uid": user_id, "name": name},
    )


def _listed_where(search: str | None) -> tuple[str, dict]:
    wh = "WHERE b.status IN ('Approved', 'Verified Business')"
    params = {}
    if search:
        wh += " AND (b.business_name LIKE :q OR b.business_sector LIKE :q)"
        params["q"] = f"%{search}%"
    return wh, params


def list_listed(conn: Connection, search: str | None, limit: int, offset: int) -> tuple[int, list[dict]]:
    wh, params = _listed_where(search)
    total = fetch_scalar(conn, f"SELECT COUNT(*) FROM businesses b {wh}", params)
    rows = fetch_all(
        conn,
        f"SELECT b.*, u.email AS owner_email FROM businesses b "
        f"INNER JOIN users u ON b.user_id = u.id {wh} "
        "ORDER BY b.registered_date DESC, b.id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": limit, "offset": offset},
    )
    return total, rows


def list_admin(conn: Connection, status: str | None, limit: int, offset: int) -> tuple[int, list[dict]]:
    wh = ""
    params: dict = {}
    if status:
        wh = "WHERE b.status = :status"
        params["status"] = status
    total = fetch_scalar(conn, f"SELECT COUNT(*) FROM businesses b {wh}", params)
    rows = fetch_all(
        conn,
        f"SELECT b.*, u.email AS owner_email, u.name AS owner_user_name FROM businesses b "
        f"LEFT JOIN users u ON b.user_id = u.id {wh} "
        "ORDER BY b.created_at DESC, b.id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": limit, "offset": offset},
    )
    return total, rows


def featured(conn: Connection) -> dict | None:
    return fetch_one(
        conn,
        "SELECT id, business_name, business_sector, business_address, status, registered_date "
        "FROM businesses WHERE status IN ('Approved', 'Verified Business') "
        "ORDER BY CASE status WHEN 'Verified Business' THEN 1 ELSE 2 END, "
        "registered_date DESC, id DESC LIMIT 1",
    )
