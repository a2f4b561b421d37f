from __future__ import annotations

from sqlalchemy.engine import Connection

from ..db import fetch_all, fetch_one, fetch_scalar
from .common import delete_row, insert_row, update_row

PUBLIC_COLS = (
    "id, uuid, name, email, phone, avatar_url, title, occupation, state, country, "
    "is_active, last_login, created_at, updated_at"
)


def insert(conn: Connection, values: dict) -> int:
    return insert_row(conn, "users", values)


def get(conn: Connection, user_id: int) -> dict | None:
    return fetch_one(conn, f"SELECT {PUBLIC_COLS} FROM users WHERE id = :id", {"id": user_id})


def get_email(conn: Connection, user_id: int) -> str | None:
    return fetch_scalar(conn, "SELECT email FROM users WHERE id = :id", {"id": user_id}, default=None)


def update(conn: Connection, user_id: int, fields: dict) -> int:
    return update_row(conn, "users", user_id, fields)


def delete(conn: Connection, user_id: int) -> int:
    return delete_row(conn, "users", user_id)


def list_page(conn: Connection, limit: int, offset: int) -> list[dict]:
    return fetch_all(
        conn,
        f"SELECT {PUBLIC_COLS} FROM users ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset",
        {"limit": limit, "offset": offset},
    )


def count(conn: Connection) -> int:
    return fetch_scalar(conn, "SELECT COUNT(*) FROM users")


def businesses_of(conn: Connection, user_id: int, brief: bool = False) -> list[dict]:
    cols = "id, business_name, status, registered_date" if brief else "*"
    return fetch_all(
        conn,
        f"SELECT {cols} FROM businesses WHERE user_id = :uid ORDER BY registered_date DESC, id DESC",
        {"uid": user_id},
    )


def admin_ref(conn: Connection, admin_id) -> int | None:
    """admin_users.id when the token's admin still exists, else None."""
    if admin_id is None:
        return None
    row = fetch_one(conn, "SELECT id FROM admin_users WHERE id = :id", {"id": admin_id})
    return int(row["id"]) if row else None


def get_admin_by_username(conn: Connection, username: str) -> dict | None:
    return fetch_one(
        conn,
        "SELECT id, username, email, full_name, role, is_active FROM admin_users WHERE username = :u",
        {"u": username},
    )


def insert_admin(conn: Connection, values: dict) -> int:
    return insert_row(conn, "admin_users", values)


def get_by_email(conn: Connection, email: str) -> dict | None:
    return fetch_one(conn, f"SELECT {PUBLIC_COLS} FROM users WHERE LOWER(email) = LOWER(:e)", {"e": email})
