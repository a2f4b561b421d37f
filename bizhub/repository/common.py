from __future__ import annotations

from sqlalchemy.engine import Connection

from ..db import execute, fetch_one


def insert_row(conn: Connection, table: str, values: dict) -> int:
    cols = list(values)
    sql = f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({', '.join(':' + c for c in cols)})"
    return execute(conn, sql, values).lastrowid


def update_row(conn: Connection, table: str, row_id: int, fields: dict) -> int:
    """UPDATE by primary key; returns affected rows. Column names come from callers' whitelists."""
    if not fields:
        return 0
    sets = ", ".join(f"{c} = :{c}" for c in fields)
    res = execute(conn, f"UPDATE {table} SET {sets} WHERE id = :_id", {**fields, "_id": row_id})
    return res.rowcount


def delete_row(conn: Connection, table: str, row_id: int) -> int:
    return execute(conn, f"DELETE FROM {table} WHERE id = :id", {"id": row_id}).rowcount


def get_row(conn: Connection, table: str, row_id: int) -> dict | None:
    return fetch_one(conn, f"SELECT * FROM {table} WHERE id = :id", {"id": row_id})
