from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

from ..auth import require_admin
from ..logs import LogContext
from ..services import directory_svc

router = APIRouter()


@router.get("/api/directories/business")
def api_directory_business(page: int = 1, limit: int = 30, search: Optional[str] = None):
    return directory_svc.list_entries("business", page, limit, search)


@router.get("/api/directories/members")
def api_directory_members(page: int = 1, limit: int = 30, search: Optional[str] = None):
    return directory_svc.list_entries("members", page, limit, search)


@router.get("/api/directories/partners")
def api_directory_partners(page: int = 1, limit: int = 30, search: Optional[str] = None):
    return directory_svc.list_entries("partners", page, limit, search)


# admin; the body columns depend on the directory type

@router.get("/api/admin/directories/{dtype}")
def api_admin_directory(
    dtype: str,
    page: int = 1,
    limit: int = 30,
    search: Optional[str] = None,
    _admin: dict = Depends(require_admin),
):
    return directory_svc.list_entries(dtype, page, limit, search, key="entries")


@router.post("/api/admin/directories/{dtype}", status_code=201)
def api_admin_directory_create(dtype: str, body: dict = Body(...), admin: dict = Depends(require_admin)):
    log = LogContext("DIRECTORY_CREATE")
    log.set_user(admin)
    log.set_payload({"type": dtype, **body})
    try:
        entry = directory_svc.create_entry(dtype, body, admin.get("id"), log)
        log.write("OK")
        return {"message": "Directory entry created", "entry": entry}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.put("/api/admin/directories/{dtype}/{entry_id}")
def api_admin_directory_update(
    dtype: str, entry_id: int, body: dict = Body(...), admin: dict = Depends(require_admin)
):
    log = LogContext("DIRECTORY_UPDATE")
    log.set_user(admin)
    log.set_payload({"type": dtype, **body})
    try:
        entry = directory_svc.update_entry(dtype, entry_id, body, log)
        log.write("OK")
        return {"success": True, "message": "Entry updated successfully", "entry": entry}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.delete("/api/admin/directories/{dtype}/{entry_id}")
def api_admin_directory_delete(dtype: str, entry_id: int, admin: dict = Depends(require_admin)):
    log = LogContext("DIRECTORY_DELETE")
    log.set_user(admin)
    log.set_payload({"type": dtype})
    try:
        directory_svc.delete_entry(dtype, entry_id, log)
        log.write("OK")
        return {"success": True, "message": "Entry deleted successfully"}
    except Exception as e:
        log.write("ERROR", str(e))
        raise
