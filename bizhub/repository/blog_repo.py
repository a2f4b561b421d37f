from __future__ import annotations

from sqlalchemy.engine import Connection

from ..db import execute, fetch_all, fetch_one, fetch_scalar
from .common import delete_row, get_row, insert_row, update_row

PUBLISHED = "is_published = 1"


def insert(conn: Connection, values: dict) -> int:
    return insert_row(conn, "blog_posts", values)


def get(conn: Connection, post_id: int) -> dict | None:
    return get_row(conn, "blog_posts", post_id)


def get_published(conn: Connection, post_id: int) -> dict | None:
    return fetch_one(conn, f"SELECT * FROM blog_posts WHERE id = :id AND {PUBLISHED}", {"id": post_id})


def update(conn: Connection, post_id: int, fields: dict) -> int:
    return update_row(conn, "blog_posts", post_id, fields)


def delete(conn: Connection, post_id: int) -> int:
    return delete_row(conn, "blog_posts", post_id)


def find_by_title(conn: Connection, title: str, exclude_id: int | None = None) -> dict | None:
    sql = "SELECT id, title FROM blog_posts WHERE LOWER(TRIM(title)) = LOWER(TRIM(:title))"
    params: dict = {"title": title}
    if exclude_id is not None:
        sql += " AND id <> :exclude_id"
        params["exclude_id"] = exclude_id
    return fetch_one(conn, sql, params)


def increment_views(conn: Connection, post_id: int) -> None:
    execute(conn, "UPDATE blog_posts SET view_count = COALESCE(view_count, 0) + 1 WHERE id = :id", {"id": post_id})


def list_published(conn: Connection, category_sql: str, category_params: dict, limit: int, offset: int) -> tuple[int, list[dict]]:
    wh = f"WHERE {PUBLISHED}{category_sql}"
    total = fetch_scalar(conn, f"SELECT COUNT(*) FROM blog_posts {wh}", category_params)
    rows = fetch_all(
        conn,
        f"SELECT * FROM blog_posts {wh} ORDER BY published_date DESC, id DESC LIMIT :limit OFFSET :offset",
        {**category_params, "limit": limit, "offset": offset},
    )
    return total, rows


def list_all(conn: Connection, limit: int, offset: int) -> tuple[int, list[dict]]:
    total = fetch_scalar(conn, "SELECT COUNT(*) FROM blog_posts")
    rows = fetch_all(
        conn,
        "SELECT * FROM blog_posts ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset",
        {"limit": limit, "offset": offset},
    )
    return total, rows


def search(conn: Connection, term: str, category: str | None, limit: int) -> list[dict]:
    sql = (
        f"SELECT * FROM blog_posts WHERE {PUBLISHED} AND ("
        "LOWER(title) LIKE :p OR LOWER(content) LIKE :p OR LOWER(excerpt) LIKE :p "
        "OR LOWER(author) LIKE :p OR LOWER(tags) LIKE :p)"
    )
    params: dict = {"p": f"%{term.lower()}%", "limit": limit}
    if category:
        sql += " AND LOWER(category) = LOWER(:category)"
        params["category"] = category
    sql += " ORDER BY published_date DESC, id DESC LIMIT :limit"
    return fetch_all(conn, sql, params)


def popular(conn: Connection, limit: int) -> list[dict]:
    return fetch_all(
        conn,
        f"SELECT * FROM blog_posts WHERE {PUBLISHED} "
        "ORDER BY COALESCE(view_count, 0) DESC, published_date DESC, id DESC LIMIT :limit",
        {"limit": limit},
    )


def related(conn: Connection, post: dict, limit: int = 4) -> list[dict]:
    conds = []
    params: dict = {"id": post["id"], "limit": limit}
    if post.get("category"):
        conds.append("LOWER(category) = LOWER(:category)")
        params["category"] = post["category"]
    if post.get("author"):
        conds.append("LOWER(author) = LOWER(:author)")
        params["author"] = post["author"]
    if not conds:
        return []
    return fetch_all(
        conn,
        f"SELECT * FROM blog_posts WHERE {PUBLISHED} AND id <> :id AND ({' OR '.join(conds)}) "
        "ORDER BY published_date DESC, id DESC LIMIT :limit",
        params,
    )


def by_author(conn: Connection, author: str, limit: int) -> list[dict]:
    return fetch_all(
        conn,
        f"SELECT * FROM blog_posts WHERE {PUBLISHED} AND LOWER(author) = LOWER(:author) "
        "ORDER BY published_date DESC, id DESC LIMIT :limit",
        {"author": author, "limit": limit},
    )


def latest(conn: Connection, limit: int) -> list[dict]:
    return fetch_all(
        conn,
        f"SELECT * FROM blog_posts WHERE {PUBLISHED} ORDER BY published_date DESC, id DESC LIMIT :limit",
        {"limit": limit},
    )


def testimonials(conn: Connection, limit: int) -> list[dict]:
    return fetch_all(
        conn,
        f"SELECT * FROM blog_posts WHERE {PUBLISHED} "
        "AND LOWER(category) IN ('testimonials', 'testimonial') "
        "ORDER BY published_date DESC, id DESC LIMIT :limit",
        {"limit": limit},
    )


# saved posts

def save(conn: Connection, user_id: int, post_id: int, ts: str) -> int:
    return insert_row(conn, "saved_blog_posts", {"user_id": user_id, "blog_post_id": post_id, "saved_at": ts})


def unsave(conn: Connection, user_id: int, post_id: int) -> int:
    return execute(
        conn,
        "DELETE FROM saved_blog_posts WHERE user_id = :uid AND blog_post_id = :pid",
        {"uid": user_id, "pid": post_id},
    ).rowcount


def is_saved(conn: Connection, user_id: int, post_id: int) -> bool:
    row = fetch_one(
        conn,
        "SELECT 1 AS x FROM saved_blog_posts WHERE user_id = :uid AND blog_post_id = :pid",
        {"uid": user_id, "pid": post_id},
    )
    return row is not None


def saved_by(conn: Connection, user_id: int) -> list[dict]:
    return fetch_all(
        conn,
        "SELECT bp.*, sbp.saved_at FROM blog_posts bp "
        "INNER JOIN saved_blog_posts sbp ON bp.id = sbp.blog_post_id "
        f"WHERE sbp.user_id = :uid AND bp.{PUBLISHED} ORDER BY sbp.saved_at DESC, sbp.id DESC",
        {"uid": user_id},
    )
