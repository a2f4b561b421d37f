from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..auth import require_admin, require_user
from ..logs import LogContext
from ..services import user_svc

router = APIRouter()


class ProfileUpdateBody(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    title: Optional[str] = None
    occupation: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None


class AdminUserUpdateBody(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None


@router.get("/api/users/profile")
def api_profile(claims: dict = Depends(require_user)):
    return user_svc.get_profile(claims["id"])


@router.put("/api/users/profile")
def api_profile_update(body: ProfileUpdateBody, claims: dict = Depends(require_user)):
    user = user_svc.update_profile(claims["id"], body.model_dump(exclude_unset=True))
    return {"message": "Profile updated", "user": user}


@router.get("/api/users/businesses")
def api_user_businesses(claims: dict = Depends(require_user)):
    return {"businesses": user_svc.list_user_businesses(claims["id"])}


@router.get("/api/admin/users")
def api_admin_users(page: int = 1, limit: int = 20, _admin: dict = Depends(require_admin)):
    return user_svc.list_users(page, limit)


@router.put("/api/admin/users/{user_id}")
def api_admin_user_update(user_id: int, body: AdminUserUpdateBody, admin: dict = Depends(require_admin)):
    log = LogContext("USER_UPDATE")
    log.set_user(admin)
    log.set_entity("user", user_id)
    log.set_payload(body.model_dump(exclude_unset=True))
    try:
        user = user_svc.admin_update_user(user_id, body.model_dump(exclude_unset=True), log)
        log.write("OK")
        return {"message": "User updated successfully", "user": user}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.delete("/api/admin/users/{user_id}")
def api_admin_user_delete(user_id: int, admin: dict = Depends(require_admin)):
    log = LogContext("USER_DELETE")
    log.set_user(admin)
    log.set_entity("user", user_id)
    try:
        user_svc.admin_delete_user(user_id, log)
        log.write("OK")
        return {"message": "User deleted successfully"}
    except Exception as e:
        log.write("ERROR", str(e))
        raise
