from __future__ import annotations

from sqlalchemy.engine import Connection

from ..db import fetch_all, fetch_one, fetch_scalar
from .common import delete_row, get_row, insert_row, update_row

MEMBER_FIELDS = (
    "name", "title", "organization", "website",
    "linkedin_url", "twitter_url", "facebook_url", "instagram_url",
    "tiktok_url", "threads_url", "youtube_url", "reddit_url", "avatar_url",
)
CONTACT_FIELDS = ("address", "email", "phone", "website")

# directory type (as used in URLs) -> table layout
DIRECTORIES = {
    "members": {
        "table": "directory_members",
        "name_col": "name",
        "fields": MEMBER_FIELDS,
        "search": ("name", "title", "organization"),
        "list_key": "members",
    },
    "partners": {
        "table": "directory_partners",
        "name_col": "partner_name",
        "fields": ("partner_name",) + CONTACT_FIELDS,
        "search": ("partner_name", "email", "address"),
        "list_key": "partners",
    },
    "business": {
        "table": "directory_businesses",
        "name_col": "business_name",
        "fields": ("business_name",) + CONTACT_FIELDS,
        "search": ("business_name", "address", "email"),
        "list_key": "businesses",
    },
}


def list_page(conn: Connection, dtype: str, search: str | None, limit: int, offset: int) -> tuple[int, list[dict]]:
    d = DIRECTORIES[dtype]
    wh = ""
    params: dict = {}
    if search:
        wh = "WHERE (" + " OR ".join(f"{c} LIKE :q" for c in d["search"]) + ")"
        params["q"] = f"%{search}%"
    total = fetch_scalar(conn, f"SELECT COUNT(*) FROM {d['table']} {wh}", params)
    rows = fetch_all(
        conn,
        f"SELECT * FROM {d['table']} {wh} ORDER BY added_date DESC, id DESC LIMIT :limit OFFSET :offset",
        {**params, "limit": limit, "offset": offset},
    )
    return total, rows


def get(conn: Connection, dtype: str, entry_id: int) -> dict | None:
    return get_row(conn, DIRECTORIES[dtype]["table"], entry_id)


def insert(conn: Connection, dtype: str, values: dict) -> int:
    return insert_row(conn, DIRECTORIES[dtype]["table"], values)


def update(conn: Connection, dtype: str, entry_id: int, fields: dict) -> int:
    return update_row(conn, DIRECTORIES[dtype]["table"], entry_id, fields)


def delete(conn: Connection, dtype: str, entry_id: int) -> int:
    return delete_row(conn, DIRECTORIES[dtype]["table"], entry_id)


def find_member(conn: Connection, name: str, organization: str | None) -> dict | None:
    return fetch_one(
        conn,
        "SELECT id FROM directory_members WHERE LOWER(TRIM(name)) = LOWER(TRIM(:name)) "
        "AND LOWER(TRIM(COALESCE(organization, ''))) = LOWER(TRIM(:org))",
        {"name": name, "org": organization or ""},
    )


def find_partner_by_email(conn: Connection, email: str) -> dict | None:
    return fetch_one(
        conn,
        "SELECT id FROM directory_partners WHERE LOWER(TRIM(email)) = LOWER(TRIM(:email))",
        {"email": email},
    )


def find_business_by_name(conn: Connection, name: str) -> dict | None:
    return fetch_one(
        conn,
        "SELECT id FROM directory_businesses WHERE LOWER(TRIM(business_name)) = LOWER(TRIM(:name))",
        {"name": name},
    )
