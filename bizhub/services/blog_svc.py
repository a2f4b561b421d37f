from __future__ import annotations

import datetime as dt
from email.utils import format_datetime
from xml.sax.saxutils import escape

from sqlalchemy.exc import IntegrityError

from ..db import get_conn
from ..errors import DuplicateEntryError, NotFoundError, ValidationError, is_duplicate_error
from ..logs import LogContext
from ..repository import blog_repo, user_repo
from .utils import clamp_limit, clean_str, now_ts, page_params, pagination, to_date, today_str

EDITABLE = (
    "title", "content", "excerpt", "author", "category",
    "featured_image_url", "tags", "published_date", "is_published",
)

RSS_TITLE = "Enterprise Room Business Hub - Blog"
RSS_DESCRIPTION = "Insights, research, and success stories from our ecosystem"

# public filter value -> lower-cased categories it matches
CATEGORY_GROUPS = {
    "testimonials": ("testimonials", "testimonial"),
    "articles": ("articles", "news", "strategy", "article"),
}
CATEGORY_ALIASES = {
    "case-studies": "Case Studies",
    "research": "Research",
}


def category_filter(category: str | None) -> tuple[str, dict]:
    """SQL fragment (starting with AND) and params for a public category filter."""
    if not category:
        return "", {}
    if category in CATEGORY_GROUPS:
        names = CATEGORY_GROUPS[category]
        params = {f"c{i}": n for i, n in enumerate(names)}
        return " AND LOWER(category) IN (" + ", ".join(f":{k}" for k in params) + ")", params
    value = CATEGORY_ALIASES.get(category, category)
    return " AND LOWER(category) = LOWER(:category)", {"category": value}


def list_posts(category: str | None = None, page=1, limit=10) -> dict:
    p, lim, offset = page_params(page, limit, 10)
    sql, params = category_filter(clean_str(category))
    with get_conn() as conn:
        total, rows = blog_repo.list_published(conn, sql, params, lim, offset)
    return {"posts": rows, "pagination": pagination(p, lim, total)}


def get_post(post_id: int) -> dict:
    with get_conn() as conn:
        post = blog_repo.get_published(conn, post_id)
        if not post:
            raise NotFoundError("Blog post not found")
        blog_repo.increment_views(conn, post_id)
        conn.commit()
        post["view_count"] = (post.get("view_count") or 0) + 1
    return post


def search_posts(q: str | None, category: str | None = None, limit=50) -> dict:
    term = (q or "").strip()
    if not term:
        return {"posts": [], "total": 0}
    lim = clamp_limit(limit, 50)
    with get_conn() as conn:
        rows = blog_repo.search(conn, term, clean_str(category), lim)
    return {"posts": rows, "total": len(rows)}


def popular_posts(limit=5) -> list[dict]:
    with get_conn() as conn:
        return blog_repo.popular(conn, clamp_limit(limit, 5))


def related_posts(post_id: int) -> list[dict]:
    with get_conn() as conn:
        post = blog_repo.get(conn, post_id)
        if not post:
            return []
        return blog_repo.related(conn, post)


def posts_by_author(author: str, limit=50) -> list[dict]:
    with get_conn() as conn:
        return blog_repo.by_author(conn, author, clamp_limit(limit, 50))


def save_post(user_id: int, post_id: int) -> None:
    with get_conn() as conn:
        if not blog_repo.get_published(conn, post_id):
            raise NotFoundError("Blog post not found")
        if blog_repo.is_saved(conn, user_id, post_id):
            raise DuplicateEntryError("Post already saved")
        try:
            blog_repo.save(conn, user_id, post_id, now_ts())
            conn.commit()
        except IntegrityError as e:
            conn.rollback()
            if is_duplicate_error(e):
                raise DuplicateEntryError("Post already saved")
            raise


def unsave_post(user_id: int, post_id: int) -> None:
    with get_conn() as conn:
        if blog_repo.unsave(conn, user_id, post_id) == 0:
            raise NotFoundError("Saved post not found")
        conn.commit()


def is_saved(user_id: int, post_id: int) -> bool:
    with get_conn() as conn:
        return blog_repo.is_saved(conn, user_id, post_id)


def saved_posts(user_id: int) -> list[dict]:
    with get_conn() as conn:
        return blog_repo.saved_by(conn, user_id)


def _rss_date(post: dict) -> str:
    d = post.get("published_date") or post.get("updated_at")
    if isinstance(d, dt.datetime):
        moment = d
    else:
        day = to_date(d) or dt.date.today()
        moment = dt.datetime(day.year, day.month, day.day)
    return format_datetime(moment.replace(tzinfo=dt.timezone.utc), usegmt=True)


def _esc(s: str) -> str:
    return escape(s, {'"': "&quot;", "'": "&#39;"})


def rss_feed(base_url: str) -> str:
    base = base_url.rstrip("/")
    with get_conn() as conn:
        posts = blog_repo.latest(conn, 20)
    now = format_datetime(dt.datetime.now(dt.timezone.utc), usegmt=True)
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">',
        "  <channel>",
        f"    <title>{_esc(RSS_TITLE)}</title>",
        f"    <link>{_esc(base)}/blog.html</link>",
        f"    <description>{_esc(RSS_DESCRIPTION)}</description>",
        "    <language>en-us</language>",
        f"    <lastBuildDate>{now}</lastBuildDate>",
    ]
    for post in posts:
        url = f"{base}/blog-post.html?id={post['id']}"
        content = post.get("content") or ""
        desc = post.get("excerpt") or (content[:200] + "..." if content else "")
        lines += [
            "    <item>",
            f"      <title>{_esc(post.get('title') or 'Untitled')}</title>",
            f"      <link>{_esc(url)}</link>",
            f'      <guid isPermaLink="true">{_esc(url)}</guid>',
            f"      <description>{_esc(desc)}</description>",
            f"      <author>{_esc(post.get('author') or 'Enterprise Room')}</author>",
            f"      <category>{_esc(post.get('category') or 'Uncategorized')}</category>",
            f"      <pubDate>{_rss_date(post)}</pubDate>",
            "    </item>",
        ]
    lines += ["  </channel>", "</rss>"]
    return "\n".join(lines)


# admin

def _clean_fields(data: dict) -> dict:
    fields = {}
    for k in EDITABLE:
        if k not in data:
            continue
        v = data[k]
        if k == "is_published":
            fields[k] = 1 if v else 0
        elif k in ("title", "author", "category", "tags", "featured_image_url", "published_date"):
            fields[k] = clean_str(v)
        else:
            fields[k] = v
    return fields


def list_all(page=1, limit=50) -> dict:
    p, lim, offset = page_params(page, limit, 50)
    with get_conn() as conn:
        total, rows = blog_repo.list_all(conn, lim, offset)
    return {"posts": rows, "pagination": pagination(p, lim, total)}


def get_any(post_id: int) -> dict:
    with get_conn() as conn:
        post = blog_repo.get(conn, post_id)
    if not post:
        raise NotFoundError("Blog post not found")
    return post


def create_post(data: dict, admin_id, log: LogContext) -> dict:
    fields = _clean_fields(data)
    if not fields.get("title") or not clean_str(fields.get("content")):
        raise ValidationError("Title and content are required")
    fields.setdefault("is_published", 1)
    fields["published_date"] = fields.get("published_date") or today_str()
    ts = now_ts()
    with get_conn() as conn:
        if blog_repo.find_by_title(conn, fields["title"]):
            raise DuplicateEntryError("A blog post with this title already exists")
        fields["created_by"] = user_repo.admin_ref(conn, admin_id)
        fields["created_at"] = fields["updated_at"] = ts
        post_id = blog_repo.insert(conn, fields)
        conn.commit()
        post = blog_repo.get(conn, post_id)
    log.set_entity("blog_post", post_id)
    log.set_after({"id": post_id, "title": post["title"]})
    return post


def update_post(post_id: int, data: dict, log: LogContext) -> dict:
    fields = _clean_fields(data)
    if "title" in fields and not fields["title"]:
        raise ValidationError("Title cannot be empty")
    if not fields:
        raise ValidationError("No fields to update")
    with get_conn() as conn:
        before = blog_repo.get(conn, post_id)
        if not before:
            raise NotFoundError("Blog post not found")
        if "title" in fields and blog_repo.find_by_title(conn, fields["title"], exclude_id=post_id):
            raise DuplicateEntryError("A blog post with this title already exists")
        blog_repo.update(conn, post_id, {**fields, "updated_at": now_ts()})
        conn.commit()
        after = blog_repo.get(conn, post_id)
    log.set_payload(sorted(fields))
    return after


def delete_post(post_id: int, log: LogContext) -> None:
    with get_conn() as conn:
        before = blog_repo.get(conn, post_id)
        if not before or blog_repo.delete(conn, post_id) == 0:
            raise NotFoundError("Blog post not found")
        conn.commit()
    log.set_before({"id": post_id, "title": before["title"]})
