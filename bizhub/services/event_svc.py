from __future__ import annotations

import datetime as dt
import logging

from sqlalchemy.exc import IntegrityError

from ..db import get_conn
from ..errors import DuplicateEntryError, EventClosedError, NotFoundError, ValidationError, is_duplicate_error
from ..logs import LogContext
from ..repository import event_repo, user_repo
from .utils import clean_str, now_ts, page_params, pagination, to_date, to_int_safe

logger = logging.getLogger(__name__)

UPCOMING = "Upcoming"
LIVE_NOW = "Live Now"
FEATURED = "Featured"
HISTORICAL = "Historical"
VALID_STATUSES = (UPCOMING, LIVE_NOW, FEATURED, HISTORICAL)

EDITABLE = (
    "title", "description", "event_date", "event_time", "date_display",
    "event_type", "status", "flier_url", "social_links",
)


def normalize_event_type(value) -> str:
    return "pitch" if (value or "").strip().lower() == "pitch" else "regular"


def next_status(event_date, current: str | None, today: dt.date) -> str | None:
    """
    Status an event should move to given its date, or None to leave it alone.

    Past dates become Historical. Today becomes Live Now unless the event is
    already live or historical. Future events become Upcoming unless they are
    historical, featured, live or already upcoming.
    """
    d = to_date(event_date)
    if d is None:
        return None
    cur = (current or "").strip().lower()
    if d < today:
        return None if cur == "historical" else HISTORICAL
    if d == today:
        return None if cur in ("live now", "historical") else LIVE_NOW
    if cur in ("historical", "upcoming", "featured", "live now"):
        return None
    return UPCOMING


def apply_status_rules(today: dt.date | None = None) -> dict:
    today = today or dt.date.today()
    summary = {"totalEvents": 0, "updated": 0, "liveNow": 0, "historical": 0, "upcoming": 0, "unchanged": 0}
    updates = []
    with get_conn() as conn:
        events = event_repo.list_dated(conn)
        ts = now_ts()
        for ev in events:
            new = next_status(ev["event_date"], ev["status"], today)
            if new is None:
                continue
            event_repo.update(conn, ev["id"], {"status": new, "updated_at": ts})
            updates.append({"id": ev["id"], "title": ev["title"], "oldStatus": ev["status"], "newStatus": new})
            logger.info(f"event {ev['id']} ({ev['title']}): {ev['status']} -> {new}")
        conn.commit()
    summary["totalEvents"] = len(events)
    summary["updated"] = len(updates)
    summary["liveNow"] = sum(1 for u in updates if u["newStatus"] == LIVE_NOW)
    summary["historical"] = sum(1 for u in updates if u["newStatus"] == HISTORICAL)
    summary["upcoming"] = sum(1 for u in updates if u["newStatus"] == UPCOMING)
    summary["unchanged"] = len(events) - len(updates)
    return {"summary": summary, "updates": updates}


# public

def list_events(status: str | None = None, etype: str | None = None, page=1, limit=20) -> dict:
    p, lim, offset = page_params(page, limit, 20)
    with get_conn() as conn:
        total, rows = event_repo.list_public(conn, clean_str(status), clean_str(etype), lim, offset)
    return {"events": rows, "pagination": pagination(p, lim, total)}


def list_pitch_events() -> list[dict]:
    with get_conn() as conn:
        return event_repo.list_pitch(conn)


def rsvp(event_id: int, user_id: int, today: dt.date | None = None) -> dict:
    today = today or dt.date.today()
    with get_conn() as conn:
        ev = event_repo.get(conn, event_id)
        if not ev:
            raise NotFoundError("Event not found")
        d = to_date(ev.get("event_date"))
        if d is not None and d < today:
            raise EventClosedError("Cannot register for past events", "EVENT_PAST")
        if (ev.get("status") or "").lower() == "historical":
            raise EventClosedError("Cannot register for historical events", "EVENT_HISTORICAL")
        if event_repo.has_rsvp(conn, event_id, user_id):
            raise DuplicateEntryError("Already RSVPed to this event")
        try:
            rsvp_id = event_repo.add_rsvp(conn, event_id, user_id, now_ts())
            conn.commit()
        except IntegrityError as e:
            conn.rollback()
            if is_duplicate_error(e):
                raise DuplicateEntryError("Already RSVPed to this event")
            raise
    return {"id": rsvp_id, "event_id": event_id, "user_id": user_id}


def cancel_rsvp(event_id: int, user_id: int) -> None:
    with get_conn() as conn:
        if event_repo.remove_rsvp(conn, event_id, user_id) == 0:
            raise NotFoundError("RSVP not found")
        conn.commit()


def rsvp_status(event_id: int, user_id: int) -> bool:
    with get_conn() as conn:
        return event_repo.has_rsvp(conn, event_id, user_id)


def rsvp_count(event_id: int) -> int:
    with get_conn() as conn:
        return event_repo.rsvp_count(conn, event_id)


def rsvp_counts(event_ids) -> dict[str, int]:
    """Counts keyed by event id (as JSON object keys); missing events count 0."""
    if not isinstance(event_ids, list):
        return {}
    ids = [i for i in (to_int_safe(x) for x in event_ids) if i is not None]
    if not ids:
        return {}
    with get_conn() as conn:
        found = event_repo.rsvp_counts(conn, ids)
    return {str(i): found.get(i, 0) for i in ids}


# admin

def _clean_fields(data: dict) -> dict:
    fields = {}
    for k in EDITABLE:
        if k not in data:
            continue
        v = data[k]
        fields[k] = clean_str(v) if isinstance(v, str) and k != "description" else v
    if "event_type" in fields:
        fields["event_type"] = normalize_event_type(fields["event_type"])
    if fields.get("status") is not None and fields["status"] not in VALID_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")
    if fields.get("event_date") is not None and to_date(fields["event_date"]) is None:
        raise ValidationError("event_date must be YYYY-MM-DD")
    return fields


def list_admin(page=1, limit=100) -> dict:
    p, lim, offset = page_params(page, limit, 100)
    with get_conn() as conn:
        total, rows = event_repo.list_admin(conn, lim, offset)
    return {"events": rows, "pagination": pagination(p, lim, total)}


def create_event(data: dict, admin_id, log: LogContext) -> dict:
    fields = _clean_fields(data)
    if not fields.get("title"):
        raise ValidationError("Title is required")
    fields.setdefault("event_type", "regular")
    fields["status"] = fields.get("status") or UPCOMING
    ts = now_ts()
    with get_conn() as conn:
        if event_repo.find_by_title(conn, fields["title"]):
            raise DuplicateEntryError("An event with this title already exists")
        fields["created_by"] = user_repo.admin_ref(conn, admin_id)
        fields["created_at"] = fields["updated_at"] = ts
        try:
            event_id = event_repo.insert(conn, fields)
            conn.commit()
        except IntegrityError as e:
            conn.rollback()
            if is_duplicate_error(e):
                raise DuplicateEntryError("Duplicate entry detected")
            raise
        event = event_repo.get(conn, event_id)
    log.set_entity("event", event_id)
    log.set_after(event)
    return event


def update_event(event_id: int, data: dict, log: LogContext) -> dict:
    fields = _clean_fields(data)
    if "title" in fields and not fields["title"]:
        raise ValidationError("Title cannot be empty")
    if not fields:
        raise ValidationError("No fields to update")
    with get_conn() as conn:
        if "title" in fields and event_repo.find_by_title(conn, fields["title"], exclude_id=event_id):
            raise DuplicateEntryError("An event with this title already exists")
        before = event_repo.get(conn, event_id)
        if not before:
            raise NotFoundError("Event not found")
        event_repo.update(conn, event_id, {**fields, "updated_at": now_ts()})
        conn.commit()
        after = event_repo.get(conn, event_id)
    log.set_before(before)
    log.set_after(after)
    return after


def delete_event(event_id: int, log: LogContext) -> None:
    with get_conn() as conn:
        before = event_repo.get(conn, event_id)
        if not before:
            raise NotFoundError("Event not found")
        event_repo.delete(conn, event_id)
        conn.commit()
    log.set_before(before)


def set_status(event_id: int, status: str | None, log: LogContext) -> dict:
    if status not in VALID_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")
    with get_conn() as conn:
        before = event_repo.get(conn, event_id)
        if not before:
            raise NotFoundError("Event not found")
        event_repo.update(conn, event_id, {"status": status, "updated_at": now_ts()})
        conn.commit()
        after = event_repo.get(conn, event_id)
    log.set_before({"status": before["status"]})
    log.set_after({"status": status})
    return after


def copy_event(event_id: int, admin_id, log: LogContext) -> dict:
    with get_conn() as conn:
        src = event_repo.get(conn, event_id)
        if not src:
            raise NotFoundError("Event not found")
        ts = now_ts()
        values = {k: src.get(k) for k in EDITABLE}
        values.update({
            "title": f"Copy of {src['title']}",
            "status": UPCOMING,
            "created_by": user_repo.admin_ref(conn, admin_id),
            "created_at": ts,
            "updated_at": ts,
        })
        new_id = event_repo.insert(conn, values)
        conn.commit()
        event = event_repo.get(conn, new_id)
    log.set_payload({"source_id": event_id})
    log.set_after(event)
    return event


def archive_event(event_id: int, log: LogContext) -> None:
    with get_conn() as conn:
        if not event_repo.get(conn, event_id):
            raise NotFoundError("Event not found")
        event_repo.update(conn, event_id, {"is_archived": 1, "updated_at": now_ts()})
        conn.commit()
    log.set_after({"is_archived": True})


def list_rsvps(event_id: int, page=1, limit=50) -> dict:
    p, lim, offset = page_params(page, limit, 50)
    with get_conn() as conn:
        if not event_repo.get(conn, event_id):
            raise NotFoundError("Event not found")
        total, rows = event_repo.list_rsvps(conn, event_id, lim, offset)
    return {"rsvps": rows, "pagination": pagination(p, lim, total)}
