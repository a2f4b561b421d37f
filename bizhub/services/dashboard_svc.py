from __future__ import annotations

from ..db import get_conn
from ..repository import blog_repo, business_repo, event_repo, stats_repo

DASHBOARD_KEYS = (
    "total_events",
    "total_blog_posts",
    "total_directory_entries",
    "total_registered_users",
    "total_members",
    "total_registered_businesses",
    "total_template_downloads",
    "unique_templates_downloaded",
)


def dashboard_stats() -> dict:
    """Admin dashboard figures; directory entries are members + partners + listed businesses."""
    with get_conn() as conn:
        row = stats_repo.dashboard_row(conn)
    n = {k: int(v or 0) for k, v in row.items()}
    return {
        "total_events": n.get("total_events", 0),
        "total_blog_posts": n.get("total_blog_posts", 0),
        "total_directory_entries": (
            n.get("total_members", 0) + n.get("total_partners", 0) + n.get("total_directory_businesses", 0)
        ),
        "total_registered_users": n.get("total_registered_users", 0),
        "total_members": n.get("total_members", 0),
        "total_registered_businesses": n.get("total_registered_businesses", 0),
        "total_template_downloads": n.get("total_template_downloads", 0),
        "unique_templates_downloaded": n.get("unique_templates_downloaded", 0),
    }


def public_stats() -> dict:
    with get_conn() as conn:
        row = stats_repo.public_row(conn)
        funding = stats_repo.funding_committed(conn)
    return {
        "activeMembers": int(row.get("active_members") or 0),
        "businessesListed": int(row.get("businesses_listed") or 0),
        "fundingCommitted": funding,
        "eventsHosted": int(row.get("events_hosted") or 0),
    }


def featured_content() -> dict:
    with get_conn() as conn:
        event = event_repo.featured(conn)
        posts = blog_repo.latest(conn, 1)
        business = business_repo.featured(conn)
    return {
        "featuredEvent": event,
        "featuredBlog": posts[0] if posts else None,
        "featuredBusiness": business,
    }


def testimonials(limit: int = 10) -> list[dict]:
    with get_conn() as conn:
        return blog_repo.testimonials(conn, limit)
