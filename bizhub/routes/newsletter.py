from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..auth import require_admin
from ..logs import LogContext
from ..services import newsletter_svc

router = APIRouter()


class SubscribeBody(BaseModel):
    email: Optional[str] = None


@router.post("/api/newsletter/subscribe")
def api_newsletter_subscribe(body: SubscribeBody):
    return newsletter_svc.subscribe(body.email)


@router.get("/api/admin/newsletter/subscribers")
def api_admin_subscribers(
    status: str = "all",
    page: int = 1,
    limit: int = 50,
    _admin: dict = Depends(require_admin),
):
    return newsletter_svc.list_subscribers(status, page, limit)


def _set_active(email: str, active: bool, admin: dict) -> None:
    log = LogContext("NEWSLETTER_RESUBSCRIBE" if active else "NEWSLETTER_UNSUBSCRIBE")
    log.set_user(admin)
    try:
        newsletter_svc.set_active(email, active, log)
        log.write("OK")
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.post("/api/admin/newsletter/subscribers/{email}/unsubscribe")
def api_admin_unsubscribe(email: str, admin: dict = Depends(require_admin)):
    _set_active(email, False, admin)
    return {"success": True, "message": "Subscriber unsubscribed successfully"}


@router.post("/api/admin/newsletter/subscribers/{email}/resubscribe")
def api_admin_resubscribe(email: str, admin: dict = Depends(require_admin)):
    _set_active(email, True, admin)
    return {"success": True, "message": "Subscriber resubscribed successfully"}
