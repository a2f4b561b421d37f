from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..auth import require_admin
from ..logs import LogContext
from ..services import consistency_svc, duplicate_svc

router = APIRouter()


class DuplicateRemoveBody(BaseModel):
    dry_run: bool = False
    rules: Optional[List[str]] = None


class ConstraintsBody(BaseModel):
    rules: Optional[List[str]] = None


@router.get("/api/admin/maintenance/duplicates")
def api_duplicates(rule: Optional[List[str]] = Query(None), _admin: dict = Depends(require_admin)):
    return duplicate_svc.report(rule)


@router.post("/api/admin/maintenance/duplicates/remove")
def api_duplicates_remove(body: Optional[DuplicateRemoveBody] = None, admin: dict = Depends(require_admin)):
    body = body or DuplicateRemoveBody()
    log = LogContext("DUPLICATES_REMOVE")
    log.set_user(admin)
    log.set_payload(body.model_dump())
    try:
        res = duplicate_svc.remove_duplicates(dry_run=body.dry_run, names=body.rules)
        if not body.dry_run:
            log.set_after(res)
        log.write("OK")
        return {"dry_run": body.dry_run, "results": res}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.post("/api/admin/maintenance/constraints")
def api_constraints(body: Optional[ConstraintsBody] = None, admin: dict = Depends(require_admin)):
    body = body or ConstraintsBody()
    log = LogContext("CONSTRAINTS_APPLY")
    log.set_user(admin)
    log.set_payload(body.model_dump())
    try:
        res = duplicate_svc.apply_unique_constraints(body.rules)
        log.set_after(res)
        log.write("OK")
        return {"results": res}
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.get("/api/admin/maintenance/consistency")
def api_consistency(_admin: dict = Depends(require_admin)):
    return consistency_svc.check_in_process()
