from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..db import get_conn
from ..errors import DuplicateEntryError, NotFoundError, ValidationError, is_duplicate_error
from ..logs import LogContext
from ..repository import business_repo, directory_repo, user_repo
from .utils import clean_str, now_ts, page_params, pagination, today_str

logger = logging.getLogger(__name__)

REQUIRED = ("business_name", "business_address", "owner_name", "owner_relationship")
OPTIONAL = (
    "business_sector", "year_of_formation", "number_of_employees", "cac_certificate_url",
    "bank_name", "account_number", "account_name",
)
FLAGS = ("cac_registered", "has_business_bank_account", "newsletter_optin")

STATUS_PENDING = "Pending Review"
STATUS_APPROVED = "Approved"
STATUS_VERIFIED = "Verified Business"


def register_business(user_id: int, data: dict) -> dict:
    """
    Register a business for a user and list it in the public business directory.

    The directory row is only added when no listing with the same name exists;
    a user cannot register the same business name twice.
    """
    values = {k: clean_str(data.get(k)) for k in REQUIRED}
    if not all(values.values()):
        raise ValidationError("Business name, address, owner name, and relationship are required")
    for k in OPTIONAL:
        v = data.get(k)
        values[k] = clean_str(v) if isinstance(v, str) else v
    for k in FLAGS:
        values[k] = 1 if data.get(k) else 0
    values["status"] = STATUS_VERIFIED if values.get("cac_certificate_url") else STATUS_PENDING
    values["registered_date"] = today_str()
    values["user_id"] = user_id
    ts = now_ts()
    values["created_at"] = values["updated_at"] = ts

    with get_conn() as conn:
        if business_repo.find_by_user_and_name(conn, user_id, values["business_name"]):
            raise DuplicateEntryError("You have already registered a business with this name")
        try:
            business_id = business_repo.insert(conn, values)
            if not directory_repo.find_business_by_name(conn, values["business_name"]):
                directory_repo.insert(conn, "business", {
                    "business_name": values["business_name"],
                    "address": values["business_address"],
                    "email": user_repo.get_email(conn, user_id),
                    "added_date": ts,
                    "updated_at": ts,
                })
            conn.commit()
        except IntegrityError as e:
            conn.rollback()
            if is_duplicate_error(e):
                raise DuplicateEntryError("Duplicate entry detected. This business name is already registered.")
            raise
        logger.info(f"business {business_id} registered by user {user_id} ({values['status']})")
        return business_repo.get(conn, business_id)


def get_business(business_id: int) -> dict:
    with get_conn() as conn:
        row = business_repo.get(conn, business_id)
    if not row:
        raise NotFoundError("Business not found")
    return row


def list_listed(page=1, limit=30, search: str | None = None) -> dict:
    p, lim, offset = page_params(page, limit, 30)
    with get_conn() as conn:
        total, rows = business_repo.list_listed(conn, clean_str(search), lim, offset)
    return {"businesses": rows, "pagination": pagination(p, lim, total)}


def list_admin(page=1, limit=20, status: str | None = None) -> dict:
    p, lim, offset = page_params(page, limit, 20)
    with get_conn() as conn:
        total, rows = business_repo.list_admin(conn, clean_str(status), lim, offset)
    return {"businesses": rows, "pagination": pagination(p, lim, total)}


def set_status(business_id: int, status: str, log: LogContext) -> dict:
    with get_conn() as conn:
        before = business_repo.get(conn, business_id)
        if not before:
            raise NotFoundError("Business not found")
        business_repo.update(conn, business_id, {"status": status, "updated_at": now_ts()})
        conn.commit()
        after = business_repo.get(conn, business_id)
    log.set_before({"status": before["status"]})
    log.set_after({"status": after["status"]})
    return after
