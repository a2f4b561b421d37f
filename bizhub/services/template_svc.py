from __future__ import annotations

import pandas as pd

from ..db import get_conn
from ..errors import NotFoundError, ValidationError
from ..logs import LogContext
from ..repository import template_repo, user_repo
from .utils import clean_str, now_ts

ADMIN_EDITABLE = ("name", "description", "category", "is_active")


def list_templates(category: str | None = None) -> list[dict]:
    with get_conn() as conn:
        return template_repo.list_templates(conn, clean_str(category))


def list_all_templates() -> list[dict]:
    with get_conn() as conn:
        return template_repo.list_templates(conn, None, active_only=False)


def record_download(template_id: str, user_id=None, ip: str | None = None, user_agent: str | None = None) -> dict:
    with get_conn() as conn:
        tpl = template_repo.get(conn, template_id)
        if not tpl or not tpl["is_active"]:
            raise NotFoundError("Template not found")
        # a token for a deleted user still downloads, anonymously
        if user_id is not None and not user_repo.get(conn, user_id):
            user_id = None
        template_repo.record_download(conn, {
            "template_id": template_id,
            "user_id": user_id,
            "downloaded_at": now_ts(),
            "ip_address": ip,
            "user_agent": (user_agent or "")[:500] or None,
        })
        conn.commit()
    return {"template_id": template_id, "name": tpl["name"], "file_path": tpl["file_path"]}


def update_template(template_id: str, data: dict, log: LogContext) -> dict:
    fields = {}
    for k in ADMIN_EDITABLE:
        if k in data and data[k] is not None:
            fields[k] = (1 if data[k] else 0) if k == "is_active" else clean_str(data[k])
    if not fields:
        raise ValidationError("No fields to update")
    with get_conn() as conn:
        before = template_repo.get(conn, template_id)
        if not before:
            raise NotFoundError("Template not found")
        template_repo.update(conn, template_id, fields, now_ts())
        conn.commit()
        after = template_repo.get(conn, template_id)
    log.set_entity("template", template_id)
    log.set_before({k: before[k] for k in fields})
    log.set_after({k: after[k] for k in fields})
    return after


def seed_catalogue(templates_csv: str, tools_csv: str, log: LogContext) -> dict:
    """Load the template and built-in tool catalogues from CSV; existing rows are refreshed."""
    tpl_df = pd.read_csv(templates_csv).fillna("")
    tool_df = pd.read_csv(tools_csv).fillna("")
    created_tpl = updated_tpl = created_tools = updated_tools = 0
    ts = now_ts()
    with get_conn() as conn:
        for _, r in tpl_df.iterrows():
            values = {
                "template_id": str(r["template_id"]).strip(),
                "name": str(r["name"]).strip(),
                "description": str(r.get("description", "")).strip() or None,
                "category": str(r.get("category", "")).strip() or None,
                "file_path": str(r.get("file_path", "")).strip() or None,
            }
            if template_repo.upsert_template(conn, values, ts):
                created_tpl += 1
            else:
                updated_tpl += 1
        for _, r in tool_df.iterrows():
            values = {
                "tool_id": str(r["tool_id"]).strip(),
                "name": str(r["name"]).strip(),
                "description": str(r.get("description", "")).strip() or None,
                "category": str(r.get("category", "")).strip() or None,
                "display_order": int(r.get("display_order") or 0),
            }
            if template_repo.upsert_builtin_tool(conn, values):
                created_tools += 1
            else:
                updated_tools += 1
        conn.commit()
    res = {
        "templates_created": created_tpl,
        "templates_updated": updated_tpl,
        "tools_created": created_tools,
        "tools_updated": updated_tools,
    }
    log.set_after(res)
    return res
