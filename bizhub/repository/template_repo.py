from __future__ import annotations

from sqlalchemy.engine import Connection

from ..db import execute, fetch_all, fetch_one
from .common import insert_row


def list_templates(conn: Connection, category: str | None, active_only: bool = True) -> list[dict]:
    conds = []
    params: dict = {}
    if active_only:
        conds.append("t.is_active = 1")
    if category:
        conds.append("LOWER(t.category) = LOWER(:category)")
        params["category"] = category
    wh = ("WHERE " + " AND ".join(conds)) if conds else ""
    return fetch_all(
        conn,
        "SELECT t.*, (SELECT COUNT(*) FROM template_downloads d WHERE d.template_id = t.template_id) "
        f"AS download_count FROM templates t {wh} ORDER BY t.category, t.name",
        params,
    )


def get(conn: Connection, template_id: str) -> dict | None:
    return fetch_one(conn, "SELECT * FROM templates WHERE template_id = :tid", {"tid": template_id})


def update(conn: Connection, template_id: str, fields: dict, ts: str) -> int:
    sets = ", ".join(f"{c} = :{c}" for c in fields)
    return execute(
        conn,
        f"UPDATE templates SET {sets}, updated_at = :_ts WHERE template_id = :_tid",
        {**fields, "_ts": ts, "_tid": template_id},
    ).rowcount


def record_download(conn: Connection, values: dict) -> int:
    return insert_row(conn, "template_downloads", values)


def upsert_template(conn: Connection, values: dict, ts: str) -> bool:
    """Insert or refresh a catalogue row; True when inserted."""
    if get(conn, values["template_id"]) is None:
        insert_row(conn, "templates", {**values, "created_at": ts, "updated_at": ts})
        return True
    fields = {k: v for k, v in values.items() if k != "template_id"}
    update(conn, values["template_id"], fields, ts)
    return False


def upsert_builtin_tool(conn: Connection, values: dict) -> bool:
    existing = fetch_one(conn, "SELECT id FROM builtin_tools WHERE tool_id = :tid", {"tid": values["tool_id"]})
    if existing is None:
        insert_row(conn, "builtin_tools", values)
        return True
    sets = ", ".join(f"{c} = :{c}" for c in values if c != "tool_id")
    execute(conn, f"UPDATE builtin_tools SET {sets} WHERE tool_id = :tool_id", values)
    return False
