from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..auth import require_admin, require_user
from ..logs import LogContext
from ..services import business_svc

router = APIRouter()


class BusinessBody(BaseModel):
    business_name: Optional[str] = None
    business_address: Optional[str] = None
    business_sector: Optional[str] = None
    year_of_formation: Optional[Union[int, str]] = None
    number_of_employees: Optional[str] = None
    cac_registered: bool = False
    cac_certificate_url: Optional[str] = None
    has_business_bank_account: bool = False
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    account_name: Optional[str] = None
    owner_name: Optional[str] = None
    owner_relationship: Optional[str] = None
    newsletter_optin: bool = False


@router.post("/api/businesses", status_code=201)
def api_business_register(body: BusinessBody, claims: dict = Depends(require_user)):
    business = business_svc.register_business(claims["id"], body.model_dump())
    return {"message": "Business registered and added to directory", "business": business}


# must precede /api/businesses/{business_id}
@router.get("/api/businesses/approved")
def api_businesses_approved(page: int = 1, limit: int = 30, search: Optional[str] = None):
    return business_svc.list_listed(page, limit, search)


@router.get("/api/businesses/{business_id}")
def api_business_get(business_id: int):
    return business_svc.get_business(business_id)


@router.get("/api/admin/businesses")
def api_admin_businesses(
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    _admin: dict = Depends(require_admin),
):
    return business_svc.list_admin(page, limit, status)


def _set_status(business_id: int, status: str, action: str, admin: dict) -> dict:
    log = LogContext(action)
    log.set_user(admin)
    log.set_entity("business", business_id)
    try:
        business = business_svc.set_status(business_id, status, log)
        log.write("OK")
        return business
    except Exception as e:
        log.write("ERROR", str(e))
        raise


@router.put("/api/admin/businesses/{business_id}/approve")
def api_business_approve(business_id: int, admin: dict = Depends(require_admin)):
    _set_status(business_id, business_svc.STATUS_APPROVED, "BUSINESS_APPROVE", admin)
    return {"message": "Business approved"}


@router.put("/api/admin/businesses/{business_id}/verify")
def api_business_verify(business_id: int, admin: dict = Depends(require_admin)):
    _set_status(business_id, business_svc.STATUS_VERIFIED, "BUSINESS_VERIFY", admin)
    return {"message": "Business verified"}
