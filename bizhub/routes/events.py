from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from ..auth import require_admin, require_user
from ..logs import LogContext
from ..services import event_svc

router = APIRouter()


class EventBody(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    event_date: Optional[str] = None
    event_time: Optional[str] = None
    date_display: Optional[str] = None
    event_type: Optional[str] = None
    status: Optional[str] = None
    flier_url: Optional[str] = None
    social_links: Optional[str] = None


class StatusBody(BaseModel):
    status: Optional[str] = None


@router.get("/api/events")
def api_events(
    status: Optional[str] = None,
    type: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
):
    return event_svc.list_events(status, type, page, limit)


@router.get("/api/events/pitch")
def api_events_pitch():
    return {"events": event_svc.list_pitch_events()}


# must precede /api/events/{event_id}/...
@router.post("/api/events/rsvp/counts")
def api_rsvp_counts(payload: Any = Body(None)):
    ids = payload.get("eventIds") if isinstance(payload, dict) else None
    return event_svc.rsvp_counts(ids)


@router.post("/api/events/{event_id}/rsvp", status_code=201)
def api_rsvp(event_id: int, claims: dict = Depends(require_user)):
    rsvp = event_svc.rsvp(event_id, claims["id"])
    return {"message": "RSVP successful", "rsvp": rsvp}


@router.delete("/api/events/{event_id}/rsvp")
def api_rsvp_cancel(event_id: int, claims: dict = Depends(require_user)):
    event_svc.cancel_rsvp(event_id, claims["id"])
    return {"message": "RSVP cancelled"}


@router.get("/api/events/{event_id}/rsvp")
def api_rsvp_status(event_id: int, claims: dict = Depends(require_user)):
    return {"is_rsvped": event_svc.rsvp_status(event_id, claims["id"])}


@router.get("/api/events/{event_id}/rsvp/count")
def api_rsvp_count(event_id: int):
    return {"count": event_svc.rsvp_count(event_id)}


# admin

@router.get("/api/admin/events")
def api_admin_events(page: int = 1, limit: int = 100, _admin: dict = Depends(require_admin)):
    return event_svc.list_admin(page, limit)


@router.post("/api/admin/events", status_code=201)
def api_admin_event_create(body: EventBody, admin: dict = Depends(require_admin)):
    log = LogContext("EVENT_CREATE")
    log.set_user(admin)
    log.set_payload(body.model_dump(exclude_unset=True, exclude={"flier_url"}))
    try:
        event = event_svc.create_event(body.model_dump(exclude_unset=True), admin.get("id"), log)
        log.write("OK")
        return {"message": "Event created", "event": event}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


# must precede /api/admin/events/{event_id}
@router.post("/api/admin/events/update-statuses")
def api_admin_events_update_statuses(admin: dict = Depends(require_admin)):
    log = LogContext("EVENT_STATUS_BULK")
    log.set_user(admin)
    try:
        res = event_svc.apply_status_rules()
        log.set_after(res["summary"])
        log.write("OK")
        return {"message": "Event statuses updated successfully", **res}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.put("/api/admin/events/{event_id}")
def api_admin_event_update(event_id: int, body: EventBody, admin: dict = Depends(require_admin)):
    log = LogContext("EVENT_UPDATE")
    log.set_user(admin)
    log.set_entity("event", event_id)
    try:
        event = event_svc.update_event(event_id, body.model_dump(exclude_unset=True), log)
        log.write("OK")
        return {"message": "Event updated", "event": event}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.delete("/api/admin/events/{event_id}")
def api_admin_event_delete(event_id: int, admin: dict = Depends(require_admin)):
    log = LogContext("EVENT_DELETE")
    log.set_user(admin)
    log.set_entity("event", event_id)
    try:
        event_svc.delete_event(event_id, log)
        log.write("OK")
        return {"message": "Event deleted"}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.patch("/api/admin/events/{event_id}/status")
def api_admin_event_status(event_id: int, body: StatusBody, admin: dict = Depends(require_admin)):
    log = LogContext("EVENT_STATUS")
    log.set_user(admin)
    log.set_entity("event", event_id)
    try:
        event_svc.set_status(event_id, body.status, log)
        log.write("OK")
        return {"message": "Event status updated successfully", "status": body.status}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.post("/api/admin/events/{event_id}/copy", status_code=201)
def api_admin_event_copy(event_id: int, admin: dict = Depends(require_admin)):
    log = LogContext("EVENT_COPY")
    log.set_user(admin)
    try:
        event = event_svc.copy_event(event_id, admin.get("id"), log)
        log.set_entity("event", event["id"])
        log.write("OK")
        return {"message": "Event copied successfully", "event": event}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.post("/api/admin/events/{event_id}/archive")
def api_admin_event_archive(event_id: int, admin: dict = Depends(require_admin)):
    log = LogContext("EVENT_ARCHIVE")
    log.set_user(admin)
    log.set_entity("event", event_id)
    try:
        event_svc.archive_event(event_id, log)
        log.write("OK")
        return {"message": "Event archived successfully"}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.get("/api/admin/events/{event_id}/rsvps")
def api_admin_event_rsvps(event_id: int, page: int = 1, limit: int = 50, _admin: dict = Depends(require_admin)):
    return event_svc.list_rsvps(event_id, page, limit)
