from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from ..auth import require_admin
from ..logs import LogContext
from ..services import settings_svc

router = APIRouter()


@router.get("/api/admin/settings")
def api_settings_get(_admin: dict = Depends(require_admin)):
    return {"settings": settings_svc.get_settings()}


@router.put("/api/admin/settings")
def api_settings_update(updates: dict = Body(...), admin: dict = Depends(require_admin)):
    log = LogContext("SETTINGS_UPDATE")
    log.set_user(admin)
    log.set_payload(updates)
    try:
        updated_keys = settings_svc.update_settings(updates, admin.get("id"), log)
        log.write("OK")
        return {"message": "Settings updated", "updated": updated_keys}
    except Exception as e:
        log.write("ERROR", str(e))
        raise
