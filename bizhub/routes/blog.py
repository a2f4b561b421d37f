from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from pydantic import BaseModel

from ..auth import require_admin, require_user
from ..logs import LogContext
from ..services import blog_svc

router = APIRouter()


class BlogPostBody(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    author: Optional[str] = None
    category: Optional[str] = None
    featured_image_url: Optional[str] = None
    tags: Optional[str] = None
    published_date: Optional[str] = None
    is_published: Optional[bool] = None


@router.get("/api/blog")
def api_blog(category: Optional[str] = None, page: int = 1, limit: int = 10):
    return blog_svc.list_posts(category, page, limit)


# fixed paths before /api/blog/{post_id}
@router.get("/api/blog/search")
def api_blog_search(q: Optional[str] = None, category: Optional[str] = None, limit: int = 50):
    return blog_svc.search_posts(q, category, limit)


@router.get("/api/blog/popular")
def api_blog_popular(limit: int = 5):
    return {"posts": blog_svc.popular_posts(limit)}


@router.get("/api/blog/rss")
def api_blog_rss(request: Request):
    xml = blog_svc.rss_feed(str(request.base_url))
    return Response(content=xml, media_type="application/rss+xml; charset=utf-8")


@router.get("/api/blog/saved")
def api_blog_saved(claims: dict = Depends(require_user)):
    return {"posts": blog_svc.saved_posts(claims["id"])}


@router.get("/api/blog/author/{author}")
def api_blog_author(author: str, limit: int = 50):
    return {"posts": blog_svc.posts_by_author(author, limit), "author": author}


@router.get("/api/blog/{post_id}")
def api_blog_post(post_id: int):
    return blog_svc.get_post(post_id)


@router.get("/api/blog/{post_id}/related")
def api_blog_related(post_id: int):
    return {"posts": blog_svc.related_posts(post_id)}


@router.post("/api/blog/{post_id}/save")
def api_blog_save(post_id: int, claims: dict = Depends(require_user)):
    blog_svc.save_post(claims["id"], post_id)
    return {"success": True, "message": "Post saved"}


@router.delete("/api/blog/{post_id}/save")
def api_blog_unsave(post_id: int, claims: dict = Depends(require_user)):
    blog_svc.unsave_post(claims["id"], post_id)
    return {"success": True, "message": "Post unsaved"}


@router.get("/api/blog/{post_id}/saved")
def api_blog_is_saved(post_id: int, claims: dict = Depends(require_user)):
    return {"saved": blog_svc.is_saved(claims["id"], post_id)}


# admin

@router.get("/api/admin/blog")
def api_admin_blog(page: int = 1, limit: int = 50, _admin: dict = Depends(require_admin)):
    return blog_svc.list_all(page, limit)


@router.get("/api/admin/blog/{post_id}")
def api_admin_blog_get(post_id: int, _admin: dict = Depends(require_admin)):
    return blog_svc.get_any(post_id)


@router.post("/api/admin/blog", status_code=201)
def api_admin_blog_create(body: BlogPostBody, admin: dict = Depends(require_admin)):
    log = LogContext("BLOG_CREATE")
    log.set_user(admin)
    try:
        post = blog_svc.create_post(body.model_dump(exclude_unset=True), admin.get("id"), log)
        log.write("OK")
        return post
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.put("/api/admin/blog/{post_id}")
def api_admin_blog_update(post_id: int, body: BlogPostBody, admin: dict = Depends(require_admin)):
    log = LogContext("BLOG_UPDATE")
    log.set_user(admin)
    log.set_entity("blog_post", post_id)
    try:
        post = blog_svc.update_post(post_id, body.model_dump(exclude_unset=True), log)
        log.write("OK")
        return post
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.delete("/api/admin/blog/{post_id}")
def api_admin_blog_delete(post_id: int, admin: dict = Depends(require_admin)):
    log = LogContext("BLOG_DELETE")
    log.set_user(admin)
    log.set_entity("blog_post", post_id)
    try:
        blog_svc.delete_post(post_id, log)
        log.write("OK")
        return {"message": "Blog post deleted successfully"}
    except Exception as e:
        log.write("ERROR", str(e))
        raise
