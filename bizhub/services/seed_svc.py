"""
Development seeding: default admin account and the sample data set in
seeds/test_data.yaml. Rows that already exist are reported and skipped, so the
loader can be re-run against a populated database.
"""
from __future__ import annotations

import json
import logging
import uuid

import yaml
from sqlalchemy.exc import IntegrityError

from ..auth import hash_password
from ..db import get_conn
from ..errors import is_duplicate_error
from ..repository import blog_repo, business_repo, event_repo, settings_repo, user_repo
from . import directory_svc
from .event_svc import normalize_event_type
from .utils import now_ts, today_str

logger = logging.getLogger(__name__)


def ensure_admin(username: str, password: str, email: str | None = None, full_name: str | None = None) -> dict:
    """Create the admin account unless the username is taken; the password is never updated."""
    with get_conn() as conn:
        existing = user_repo.get_admin_by_username(conn, username)
        if existing:
            return {"created": False, "id": existing["id"], "username": username}
        admin_id = user_repo.insert_admin(conn, {
            "username": username,
            "password_hash": hash_password(password),
            "email": email,
            "full_name": full_name,
            "role": "admin",
            "is_active": 1,
            "created_at": now_ts(),
        })
        conn.commit()
    logger.info(f"admin user '{username}' created")
    return {"created": True, "id": admin_id, "username": username}


def _insert(conn, fn, values: dict, label: str, stats: dict):
    """Insert and commit one row; a duplicate-key error counts as skipped."""
    try:
        new_id = fn(conn, values)
        conn.commit()
        stats["inserted"] += 1
        return new_id
    except IntegrityError as e:
        conn.rollback()
        if not is_duplicate_error(e):
            raise
        logger.warning(f"{label} already exists, skipped")
        stats["skipped"] += 1
        return None


def _counter() -> dict:
    return {"inserted": 0, "skipped": 0}


def _seed_users(conn, users: list[dict], ts: str) -> tuple[dict, dict]:
    u_stats, b_stats = _counter(), _counter()
    for u in users:
        existing = user_repo.get_by_email(conn, u["email"])
        if existing:
            u_stats["skipped"] += 1
            user_id = existing["id"]
        else:
            user_id = _insert(conn, user_repo.insert, {
                "uuid": str(uuid.uuid4()),
                "name": u["name"],
                "email": u["email"].lower(),
                "password_hash": hash_password(str(u.get("password") or uuid.uuid4().hex)),
                "phone": u.get("phone"),
                "is_active": 1,
                "created_at": ts,
                "updated_at": ts,
            }, f"user {u['email']}", u_stats)
        if user_id is None:
            continue
        for b in u.get("businesses") or []:
            if business_repo.find_by_user_and_name(conn, user_id, b["business_name"]):
                b_stats["skipped"] += 1
                continue
            values = {k: v for k, v in b.items()}
            for flag in ("cac_registered", "has_business_bank_account", "newsletter_optin"):
                values[flag] = 1 if values.get(flag) else 0
            values.update({
                "user_id": user_id,
                "registered_date": values.get("registered_date") or today_str(),
                "created_at": ts,
                "updated_at": ts,
            })
            _insert(conn, business_repo.insert, values, f"business {b['business_name']}", b_stats)
    return u_stats, b_stats


def _seed_events(conn, events: list[dict], admin_id, ts: str) -> dict:
    stats = _counter()
    for ev in events:
        if event_repo.find_by_title(conn, ev["title"]):
            stats["skipped"] += 1
            continue
        values = dict(ev)
        values["event_type"] = normalize_event_type(values.get("event_type"))
        values.update({"created_by": admin_id, "created_at": ts, "updated_at": ts})
        _insert(conn, event_repo.insert, values, f"event {ev['title']}", stats)
    return stats


def _seed_pitch_entries(conn, entries: list[dict], ts: str) -> dict:
    stats = _counter()
    for p in entries:
        ev = event_repo.find_by_title(conn, p["event"]) if p.get("event") else None
        event_id = ev["id"] if ev else None
        if event_repo.find_pitch_entry(conn, event_id, p["business_name"]):
            stats["skipped"] += 1
            continue
        _insert(conn, event_repo.insert_pitch_entry, {
            "event_id": event_id,
            "business_name": p["business_name"],
            "founder_name": p.get("founder_name"),
            "funding_amount": p.get("funding_amount") or 0,
            "status": p.get("status") or "Committed",
            "created_at": ts,
        }, f"pitch entry {p['business_name']}", stats)
    return stats


def _seed_posts(conn, posts: list[dict], admin_id, ts: str) -> dict:
    stats = _counter()
    for post in posts:
        if blog_repo.find_by_title(conn, post["title"]):
            stats["skipped"] += 1
            continue
        values = dict(post)
        values["is_published"] = 0 if values.get("is_published") is False else 1
        values.update({"created_by": admin_id, "created_at": ts, "updated_at": ts})
        _insert(conn, blog_repo.insert, values, f"blog post {post['title']}", stats)
    return stats


def _seed_tools(conn, tools: list[dict], ts: str) -> dict:
    stats = _counter()
    for tool in tools:
        if settings_repo.find_custom_tool(conn, tool["name"]):
            stats["skipped"] += 1
            continue
        values = dict(tool)
        if not isinstance(values.get("inputs"), str):
            values["inputs"] = json.dumps(values.get("inputs") or [])
        values["show_conversion"] = 1 if values.get("show_conversion") else 0
        values["created_at"] = ts
        _insert(conn, settings_repo.insert_custom_tool, values, f"tool {tool['name']}", stats)
    return stats


def seed_test_data(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    result = {}
    admin_id = None
    if data.get("admin"):
        a = data["admin"]
        admin = ensure_admin(a["username"], str(a["password"]), a.get("email"), a.get("full_name"))
        admin_id = admin["id"]
        result["admin"] = admin
    ts = now_ts()
    with get_conn() as conn:
        result["users"], result["businesses"] = _seed_users(conn, data.get("users") or [], ts)
        result["events"] = _seed_events(conn, data.get("events") or [], admin_id, ts)
        result["pitch_entries"] = _seed_pitch_entries(conn, data.get("pitch_entries") or [], ts)
        result["blog_posts"] = _seed_posts(conn, data.get("blog_posts") or [], admin_id, ts)
        result["custom_tools"] = _seed_tools(conn, data.get("custom_tools") or [], ts)
    for dtype, rows in (data.get("directories") or {}).items():
        result[f"directory_{dtype}"] = directory_svc.import_entries(dtype, rows or [])
    return result
