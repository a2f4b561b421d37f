from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from ..auth import optional_user, require_admin
from ..logs import LogContext
from ..services import template_svc

router = APIRouter()


class TemplateUpdateBody(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    is_active: Optional[bool] = None


@router.get("/api/templates")
def api_templates(category: Optional[str] = None):
    return {"templates": template_svc.list_templates(category)}


@router.post("/api/templates/{template_id}/download")
def api_template_download(template_id: str, request: Request, claims: Optional[dict] = Depends(optional_user)):
    user_id = claims.get("id") if claims and not claims.get("isAdmin") else None
    ip = request.client.host if request.client else None
    return template_svc.record_download(template_id, user_id, ip, request.headers.get("user-agent"))


@router.get("/api/admin/templates")
def api_admin_templates(_admin: dict = Depends(require_admin)):
    return {"templates": template_svc.list_all_templates()}


@router.put("/api/admin/templates/{template_id}")
def api_admin_template_update(template_id: str, body: TemplateUpdateBody, admin: dict = Depends(require_admin)):
    log = LogContext("TEMPLATE_UPDATE")
    log.set_user(admin)
    log.set_payload(body.model_dump(exclude_unset=True))
    try:
        tpl = template_svc.update_template(template_id, body.model_dump(exclude_unset=True), log)
        log.write("OK")
        return tpl
    except Exception as e:
        log.write("ERROR", str(e))
        raise
