"""
Count reconciliation between raw tables and what the API reports.

``run_consistency_check`` talks HTTP through any requests-style client: a
``requests.Session`` against a running server, or FastAPI's ``TestClient``.
``check_in_process`` asks the service layer directly and backs the admin
maintenance endpoint.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..db import get_conn
from ..repository import stats_repo
from . import blog_svc, business_svc, dashboard_svc, directory_svc, event_svc, user_svc

logger = logging.getLogger(__name__)

FETCH_LIMIT = 500


@dataclass(frozen=True)
class Listing:
    name: str
    path: str
    list_key: str
    db_key: str
    table: str
    where: str | None = None
    admin: bool = False


LISTINGS = (
    Listing("members", "/api/directories/members", "members", "members", "directory_members"),
    Listing("partners", "/api/directories/partners", "partners", "partners", "directory_partners"),
    Listing("directory_businesses", "/api/directories/business", "businesses", "directory_businesses",
            "directory_businesses"),
    Listing("blog_posts", "/api/blog", "posts", "published_blog_posts", "blog_posts", "is_published = 1"),
    Listing("events", "/api/events", "events", "public_events", "events", "COALESCE(is_archived, 0) = 0"),
    Listing("admin_users", "/api/admin/users", "users", "users", "users", admin=True),
    Listing("admin_businesses", "/api/admin/businesses", "businesses", "businesses", "businesses", admin=True),
)

# dashboard key -> raw count key(s) it must equal
DASHBOARD_CHECKS = {
    "total_events": ("events",),
    "total_blog_posts": ("published_blog_posts",),
    "total_directory_entries": ("members", "partners", "directory_businesses"),
    "total_registered_users": ("active_users",),
    "total_members": ("members",),
    "total_registered_businesses": ("businesses",),
}


def collect_db_counts() -> dict[str, int]:
    with get_conn() as conn:
        counts = stats_repo.raw_counts(conn)
    counts["directory_entries"] = counts["members"] + counts["partners"] + counts["directory_businesses"]
    return counts


def collect_db_ids() -> dict[str, set[int]]:
    with get_conn() as conn:
        return {l.name: stats_repo.table_ids(conn, l.table, l.where) for l in LISTINGS}


def compare_dashboard(db_counts: dict, stats: dict) -> list[dict]:
    mismatches = []
    for key, parts in DASHBOARD_CHECKS.items():
        expected = sum(int(db_counts.get(p, 0)) for p in parts)
        got = stats.get(key)
        if got is None or int(got) != expected:
            mismatches.append({"name": f"dashboard.{key}", "db": expected, "api": got})
    return mismatches


def compare_listing(listing: Listing, db_count: int, body: dict, db_ids: set[int] | None = None) -> list[dict]:
    """Mismatches between a paginated response and the raw table."""
    out = []
    items = body.get(listing.list_key) or []
    total = (body.get("pagination") or {}).get("total")
    if total is None or int(total) != db_count:
        out.append({"name": f"{listing.name}.total", "db": db_count, "api": total})
    # only a complete page can be compared row by row
    if db_ids is not None and total is not None and len(items) >= int(total):
        api_ids = {int(i["id"]) for i in items if "id" in i}
        if api_ids != db_ids:
            out.append({
                "name": f"{listing.name}.ids",
                "db": sorted(db_ids - api_ids),
                "api": sorted(api_ids - db_ids),
            })
    return out


def _result(mismatches: list[dict], checked: int, skipped: list[str]) -> dict:
    for m in mismatches:
        logger.warning(f"count mismatch {m['name']}: db={m['db']} api={m['api']}")
    return {"ok": not mismatches, "checked": checked, "mismatches": mismatches, "skipped": skipped}


def run_consistency_check(http, token: str | None = None, base_url: str = "") -> dict:
    """Fetch the dashboard and list endpoints over HTTP and compare with the database."""
    base = base_url.rstrip("/")
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    db_counts = collect_db_counts()
    db_ids = collect_db_ids()
    mismatches: list[dict] = []
    skipped: list[str] = []
    checked = 0

    if token:
        r = http.get(f"{base}/api/admin/dashboard/stats", headers=headers)
        if r.status_code == 200:
            mismatches += compare_dashboard(db_counts, r.json())
            checked += 1
        else:
            skipped.append(f"dashboard ({r.status_code})")
    else:
        skipped.append("dashboard (no token)")

    for listing in LISTINGS:
        if listing.admin and not token:
            skipped.append(f"{listing.name} (no token)")
            continue
        r = http.get(f"{base}{listing.path}", params={"limit": FETCH_LIMIT}, headers=headers)
        if r.status_code != 200:
            skipped.append(f"{listing.name} ({r.status_code})")
            continue
        mismatches += compare_listing(listing, db_counts[listing.db_key], r.json(), db_ids[listing.name])
        checked += 1
    return _result(mismatches, checked, skipped)


def check_in_process() -> dict:
    db_counts = collect_db_counts()
    db_ids = collect_db_ids()
    mismatches = compare_dashboard(db_counts, dashboard_svc.dashboard_stats())
    bodies = {
        "members": directory_svc.list_entries("members", limit=FETCH_LIMIT),
        "partners": directory_svc.list_entries("partners", limit=FETCH_LIMIT),
        "directory_businesses": directory_svc.list_entries("business", limit=FETCH_LIMIT),
        "blog_posts": blog_svc.list_posts(limit=FETCH_LIMIT),
        "events": event_svc.list_events(limit=FETCH_LIMIT),
        "admin_users": user_svc.list_users(limit=FETCH_LIMIT),
        "admin_businesses": business_svc.list_admin(limit=FETCH_LIMIT),
    }
    for listing in LISTINGS:
        mismatches += compare_listing(listing, db_counts[listing.db_key], bodies[listing.name], db_ids[listing.name])
    return _result(mismatches, len(LISTINGS) + 1, [])
