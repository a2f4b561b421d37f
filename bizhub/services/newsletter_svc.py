from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..db import get_conn
from ..errors import ConflictError, NotFoundError, ValidationError, is_duplicate_error
from ..logs import LogContext
from ..repository import newsletter_repo
from .utils import is_valid_email, now_ts, page_params, pagination

STATUSES = ("all", "active", "inactive")


def subscribe(email: str | None, source: str = "homepage") -> dict:
    """New address -> subscribed; inactive -> reactivated; active -> ALREADY_SUBSCRIBED."""
    raw = (email or "").strip()
    if not raw:
        raise ValidationError("Email is required")
    if not is_valid_email(raw):
        raise ValidationError("Invalid email format")
    addr = raw.lower()
    ts = now_ts()
    with get_conn() as conn:
        existing = newsletter_repo.get_by_email(conn, addr)
        if existing:
            if existing["is_active"]:
                raise ConflictError("Email is already subscribed", "ALREADY_SUBSCRIBED")
            newsletter_repo.set_active(conn, addr, True, ts)
            conn.commit()
            return {"success": True, "message": "Successfully resubscribed to newsletter"}
        try:
            newsletter_repo.insert(conn, addr, source, ts)
            conn.commit()
        except IntegrityError as e:
            conn.rollback()
            if is_duplicate_error(e):
                raise ConflictError("Email is already subscribed", "ALREADY_SUBSCRIBED")
            raise
    return {"success": True, "message": "Successfully subscribed to newsletter"}


def set_active(email: str, active: bool, log: LogContext) -> None:
    addr = (email or "").strip().lower()
    with get_conn() as conn:
        if newsletter_repo.set_active(conn, addr, active, now_ts()) == 0:
            raise NotFoundError("Subscriber not found")
        conn.commit()
    log.set_entity("newsletter_subscriber", addr)


def list_subscribers(status: str = "all", page=1, limit=50) -> dict:
    if status not in STATUSES:
        raise ValidationError("status must be one of: all, active, inactive")
    p, lim, offset = page_params(page, limit, 50)
    with get_conn() as conn:
        total, rows = newsletter_repo.list_page(conn, status, lim, offset)
    return {"subscribers": rows, "pagination": pagination(p, lim, total)}
