from __future__ import annotations

from sqlalchemy.engine import Connection

from ..db import execute, fetch_all, fetch_one
from .common import insert_row


def all_settings(conn: Connection) -> list[dict]:
    return fetch_all(conn, "SELECT * FROM settings ORDER BY setting_key")


def get(conn: Connection, key: str) -> dict | None:
    return fetch_one(conn, "SELECT * FROM settings WHERE setting_key = :k", {"k": key})


def insert(conn: Connection, key: str, value: str, stype: str, description: str, ts: str) -> None:
    execute(
        conn,
        "INSERT INTO settings (setting_key, setting_value, setting_type, description, updated_at) "
        "VALUES (:k, :v, :t, :d, :ts)",
        {"k": key, "v": value, "t": stype, "d": description, "ts": ts},
    )


def set_value(conn: Connection, key: str, value: str, updated_by, ts: str) -> int:
    return execute(
        conn,
        "UPDATE settings SET setting_value = :v, updated_by = :by, updated_at = :ts WHERE setting_key = :k",
        {"k": key, "v": value, "by": updated_by, "ts": ts},
    ).rowcount


def by_prefixes(conn: Connection, *prefixes: str) -> list[dict]:
    conds = " OR ".join(f"setting_key LIKE :p{i}" for i in range(len(prefixes)))
    params = {f"p{i}": f"{p}%" for i, p in enumerate(prefixes)}
    return fetch_all(
        conn,
        f"SELECT setting_key, setting_value, setting_type FROM settings WHERE {conds} ORDER BY setting_key",
        params,
    )


def custom_tools(conn: Connection) -> list[dict]:
    return fetch_all(conn, "SELECT * FROM custom_tools ORDER BY created_at DESC, id DESC")


def builtin_tools(conn: Connection, visible_only: bool = True) -> list[dict]:
    wh = "WHERE is_active = 1 AND is_visible = 1" if visible_only else ""
    return fetch_all(conn, f"SELECT * FROM builtin_tools {wh} ORDER BY display_order, id")


def insert_custom_tool(conn: Connection, values: dict) -> int:
    return insert_row(conn, "custom_tools", values)


def find_custom_tool(conn: Connection, name: str) -> dict | None:
    return fetch_one(conn, "SELECT id, name FROM custom_tools WHERE LOWER(name) = LOWER(:n)", {"n": name})
