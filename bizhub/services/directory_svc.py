from __future__ import annotations

import logging

import pandas as pd
from sqlalchemy.exc import IntegrityError

from ..db import get_conn
from ..errors import DuplicateEntryError, NotFoundError, ValidationError, is_duplicate_error
from ..logs import LogContext
from ..repository import directory_repo
from ..repository.directory_repo import DIRECTORIES
from .utils import clean_str, now_ts, page_params, pagination

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGES = {
    "members": "A member with this name and organization already exists",
    "partners": "A partner with this email already exists",
    "business": "A business with this name already exists in the directory",
}


def check_type(dtype: str) -> dict:
    if dtype not in DIRECTORIES:
        raise ValidationError("Invalid directory type")
    return DIRECTORIES[dtype]


def list_entries(dtype: str, page=1, limit=30, search: str | None = None, key: str | None = None) -> dict:
    d = check_type(dtype)
    p, lim, offset = page_params(page, limit, 30)
    with get_conn() as conn:
        total, rows = directory_repo.list_page(conn, dtype, clean_str(search), lim, offset)
    return {key or d["list_key"]: rows, "pagination": pagination(p, lim, total)}


def _clean_values(dtype: str, data: dict) -> dict:
    fields = DIRECTORIES[dtype]["fields"]
    return {k: clean_str(data.get(k)) for k in fields if k in data}


def find_duplicate(conn, dtype: str, values: dict) -> dict | None:
    """Existing entry that the new values would duplicate, if any."""
    if dtype == "members":
        if not values.get("name"):
            return None
        return directory_repo.find_member(conn, values["name"], values.get("organization"))
    if dtype == "partners":
        if not values.get("email"):
            return None
        return directory_repo.find_partner_by_email(conn, values["email"])
    if not values.get("business_name"):
        return None
    return directory_repo.find_business_by_name(conn, values["business_name"])


def create_entry(dtype: str, data: dict, admin_id, log: LogContext) -> dict:
    d = check_type(dtype)
    values = _clean_values(dtype, data)
    if not values.get(d["name_col"]):
        raise ValidationError(f"{d['name_col']} is required")
    ts = now_ts()
    with get_conn() as conn:
        if find_duplicate(conn, dtype, values):
            raise DuplicateEntryError(DUPLICATE_MESSAGES[dtype])
        values.update({"added_by": admin_id, "added_date": ts, "updated_at": ts})
        try:
            entry_id = directory_repo.insert(conn, dtype, values)
            conn.commit()
        except IntegrityError as e:
            conn.rollback()
            if is_duplicate_error(e):
                raise DuplicateEntryError("Duplicate entry detected. This entry already exists.")
            raise
        entry = directory_repo.get(conn, dtype, entry_id)
    log.set_entity(d["table"], entry_id)
    log.set_after(entry)
    return entry


def update_entry(dtype: str, entry_id: int, data: dict, log: LogContext) -> dict:
    d = check_type(dtype)
    fields = _clean_values(dtype, data)
    if d["name_col"] in fields and not fields[d["name_col"]]:
        raise ValidationError(f"{d['name_col']} cannot be empty")
    if not fields:
        raise ValidationError("No fields to update")
    with get_conn() as conn:
        before = directory_repo.get(conn, dtype, entry_id)
        if not before:
            raise NotFoundError("Entry not found")
        merged = {**before, **fields}
        dup = find_duplicate(conn, dtype, merged)
        if dup and int(dup["id"]) != entry_id:
            raise DuplicateEntryError(DUPLICATE_MESSAGES[dtype])
        try:
            directory_repo.update(conn, dtype, entry_id, {**fields, "updated_at": now_ts()})
            conn.commit()
        except IntegrityError as e:
            conn.rollback()
            if is_duplicate_error(e):
                raise DuplicateEntryError("Duplicate entry detected. This entry already exists.")
            raise
        after = directory_repo.get(conn, dtype, entry_id)
    log.set_entity(d["table"], entry_id)
    log.set_before(before)
    log.set_after(after)
    return after


def delete_entry(dtype: str, entry_id: int, log: LogContext) -> None:
    d = check_type(dtype)
    with get_conn() as conn:
        if directory_repo.delete(conn, dtype, entry_id) == 0:
            raise NotFoundError("Entry not found")
        conn.commit()
    log.set_entity(d["table"], entry_id)


def import_entries(dtype: str, records: list[dict]) -> dict:
    """Bulk insert; rows that duplicate an existing entry are skipped."""
    d = check_type(dtype)
    inserted, skipped, invalid = 0, 0, 0
    ts = now_ts()
    with get_conn() as conn:
        for rec in records:
            values = {k: clean_str(rec.get(k)) for k in d["fields"]}
            if not values.get(d["name_col"]):
                invalid += 1
                continue
            if find_duplicate(conn, dtype, values):
                skipped += 1
                continue
            try:
                directory_repo.insert(conn, dtype, {**values, "added_date": ts, "updated_at": ts})
                conn.commit()
                inserted += 1
            except IntegrityError as e:
                conn.rollback()
                if not is_duplicate_error(e):
                    raise
                skipped += 1
    logger.info(f"{d['table']} import: inserted={inserted} skipped={skipped} invalid={invalid}")
    return {"inserted": inserted, "skipped": skipped, "invalid": invalid}


def import_csv(dtype: str, csv_path: str, log: LogContext) -> dict:
    """CSV columns must match the directory's fields; unknown columns are ignored."""
    d = check_type(dtype)
    df = pd.read_csv(csv_path, dtype=str).fillna("")
    if d["name_col"] not in df.columns:
        raise ValidationError(f"CSV must contain a '{d['name_col']}' column")
    records = [{k: r.get(k) for k in d["fields"] if k in df.columns} for _, r in df.iterrows()]
    res = import_entries(dtype, records)
    log.set_entity(d["table"], None)
    log.set_payload({"file": csv_path, "rows": len(records)})
    log.set_after(res)
    return res
