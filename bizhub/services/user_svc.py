from __future__ import annotations

from ..db import get_conn
from ..errors import NotFoundError, ValidationError
from ..logs import LogContext
from ..repository import user_repo
from .utils import clean_str, now_ts, page_params, pagination

PROFILE_FIELDS = ("name", "phone", "avatar_url", "title", "occupation", "state", "country")
ADMIN_EDIT_FIELDS = ("name", "phone")


def _pick(data: dict, allowed: tuple[str, ...]) -> dict:
    return {k: clean_str(v) if isinstance(v, str) else v for k, v in data.items() if k in allowed and v is not None}


def get_profile(user_id: int) -> dict:
    with get_conn() as conn:
        user = user_repo.get(conn, user_id)
        if not user:
            raise NotFoundError("User not found")
        user["businesses"] = user_repo.businesses_of(conn, user_id, brief=True)
    return user


def update_profile(user_id: int, data: dict) -> dict:
    fields = _pick(data, PROFILE_FIELDS)
    if "name" in fields and not fields["name"]:
        raise ValidationError("Name cannot be empty")
    if not fields:
        raise ValidationError("No fields to update")
    with get_conn() as conn:
        if not user_repo.get(conn, user_id):
            raise NotFoundError("User not found")
        user_repo.update(conn, user_id, {**fields, "updated_at": now_ts()})
        conn.commit()
        return user_repo.get(conn, user_id)


def list_user_businesses(user_id: int) -> list[dict]:
    with get_conn() as conn:
        return user_repo.businesses_of(conn, user_id)


def list_users(page=1, limit=20) -> dict:
    p, lim, offset = page_params(page, limit, 20)
    with get_conn() as conn:
        total = user_repo.count(conn)
        users = user_repo.list_page(conn, lim, offset)
    return {"users": users, "pagination": pagination(p, lim, total)}


def admin_update_user(user_id: int, data: dict, log: LogContext) -> dict:
    fields = _pick(data, ADMIN_EDIT_FIELDS)
    if "name" in fields and not fields["name"]:
        raise ValidationError("Name cannot be empty")
    if not fields:
        raise ValidationError("No fields to update")
    with get_conn() as conn:
        before = user_repo.get(conn, user_id)
        if not before:
            raise NotFoundError("User not found")
        user_repo.update(conn, user_id, {**fields, "updated_at": now_ts()})
        conn.commit()
        after = user_repo.get(conn, user_id)
    log.set_before(before)
    log.set_after(after)
    return after


def admin_delete_user(user_id: int, log: LogContext) -> None:
    with get_conn() as conn:
        before = user_repo.get(conn, user_id)
        if not before or user_repo.delete(conn, user_id) == 0:
            raise NotFoundError("User not found")
        conn.commit()
    log.set_before(before)
