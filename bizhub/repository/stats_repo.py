from __future__ import annotations

from sqlalchemy.engine import Connection

from ..db import fetch_all, fetch_one, fetch_scalar

# One round trip for every dashboard figure.
DASHBOARD_SQL = """
SELECT
  (SELECT COUNT(*) FROM events) AS total_events,
  (SELECT COUNT(*) FROM blog_posts WHERE is_published = 1) AS total_blog_posts,
  (SELECT COUNT(*) FROM directory_members) AS total_members,
  (SELECT COUNT(*) FROM directory_partners) AS total_partners,
  (SELECT COUNT(*) FROM directory_businesses) AS total_directory_businesses,
  (SELECT COUNT(*) FROM users WHERE is_active = 1) AS total_registered_users,
  (SELECT COUNT(*) FROM businesses) AS total_registered_businesses,
  (SELECT COUNT(*) FROM template_downloads) AS total_template_downloads,
  (SELECT COUNT(DISTINCT template_id) FROM template_downloads) AS unique_templates_downloaded
"""

PUBLIC_SQL = """
SELECT
  (SELECT COUNT(*) FROM users WHERE is_active = 1) AS active_members,
  (SELECT COUNT(*) FROM businesses) AS businesses_listed,
  (SELECT COUNT(*) FROM events) AS events_hosted
"""

# Raw table counts used when reconciling API totals
RAW_COUNTS = {
    "events": "SELECT COUNT(*) FROM events",
    "public_events": "SELECT COUNT(*) FROM events WHERE COALESCE(is_archived, 0) = 0",
    "published_blog_posts": "SELECT COUNT(*) FROM blog_posts WHERE is_published = 1",
    "members": "SELECT COUNT(*) FROM directory_members",
    "partners": "SELECT COUNT(*) FROM directory_partners",
    "directory_businesses": "SELECT COUNT(*) FROM directory_businesses",
    "active_users": "SELECT COUNT(*) FROM users WHERE is_active = 1",
    "users": "SELECT COUNT(*) FROM users",
    "businesses": "SELECT COUNT(*) FROM businesses",
}


def dashboard_row(conn: Connection) -> dict:
    return fetch_one(conn, DASHBOARD_SQL) or {}


def public_row(conn: Connection) -> dict:
    return fetch_one(conn, PUBLIC_SQL) or {}


def funding_committed(conn: Connection) -> float:
    return float(fetch_scalar(conn, "SELECT COALESCE(SUM(funding_amount), 0) FROM pitch_entries"))


def raw_counts(conn: Connection) -> dict[str, int]:
    return {name: int(fetch_scalar(conn, sql)) for name, sql in RAW_COUNTS.items()}


def table_ids(conn: Connection, table: str, where: str | None = None) -> set[int]:
    wh = f" WHERE {where}" if where else ""
    return {int(r["id"]) for r in fetch_all(conn, f"SELECT id FROM {table}{wh}")}
