from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Connection

from ..db import execute, fetch_all


@dataclass(frozen=True)
class DuplicateRule:
    name: str
    table: str
    label: str
    key_exprs: tuple[str, ...]
    index_name: str
    mysql_cols: str
    sqlite_cols: str
    where: str | None = None

    def index_sql(self, dialect: str) -> str:
        if dialect == "mysql":
            return f"ALTER TABLE {self.table} ADD UNIQUE KEY {self.index_name} ({self.mysql_cols})"
        return f"CREATE UNIQUE INDEX {self.index_name} ON {self.table} ({self.sqlite_cols})"


RULES = (
    DuplicateRule(
        name="members",
        table="directory_members",
        label="Directory Members: unique name + organization",
        key_exprs=("LOWER(TRIM(COALESCE(name, '')))", "LOWER(TRIM(COALESCE(organization, '')))"),
        index_name="unique_member_name_org",
        mysql_cols="name(100), organization(100)",
        sqlite_cols="name COLLATE NOCASE, organization COLLATE NOCASE",
    ),
    DuplicateRule(
        name="partners",
        table="directory_partners",
        label="Directory Partners: unique email",
        key_exprs=("LOWER(TRIM(email))",),
        index_name="unique_partner_email",
        mysql_cols="email",
        sqlite_cols="email COLLATE NOCASE",
        where="email IS NOT NULL AND TRIM(email) <> ''",
    ),
    DuplicateRule(
        name="directory_businesses",
        table="directory_businesses",
        label="Directory Businesses: unique business name",
        key_exprs=("LOWER(TRIM(COALESCE(business_name, '')))",),
        index_name="unique_directory_business_name",
        mysql_cols="business_name",
        sqlite_cols="business_name COLLATE NOCASE",
    ),
    DuplicateRule(
        name="businesses",
        table="businesses",
        label="Businesses: unique user_id + business_name",
        key_exprs=("user_id", "LOWER(TRIM(COALESCE(business_name, '')))"),
        index_name="unique_user_business_name",
        mysql_cols="user_id, business_name(100)",
        sqlite_cols="user_id, business_name COLLATE NOCASE",
    ),
)

RULES_BY_NAME = {r.name: r for r in RULES}


def _where(rule: DuplicateRule, extra: list[str] | None = None) -> str:
    conds = ([rule.where] if rule.where else []) + (extra or [])
    return (" WHERE " + " AND ".join(conds)) if conds else ""


def duplicate_groups(conn: Connection, rule: DuplicateRule) -> list[dict]:
    """Key values, size and lowest id of every group with more than one row."""
    keys = ", ".join(f"{e} AS k{i}" for i, e in enumerate(rule.key_exprs))
    group_by = ", ".join(rule.key_exprs)
    return fetch_all(
        conn,
        f"SELECT {keys}, COUNT(*) AS cnt, MIN(id) AS keep_id FROM {rule.table}"
        f"{_where(rule)} GROUP BY {group_by} HAVING COUNT(*) > 1 ORDER BY keep_id",
    )


def group_ids(conn: Connection, rule: DuplicateRule, group: dict) -> list[int]:
    conds = [f"{e} = :k{i}" for i, e in enumerate(rule.key_exprs)]
    params = {f"k{i}": group[f"k{i}"] for i in range(len(rule.key_exprs))}
    rows = fetch_all(conn, f"SELECT id FROM {rule.table}{_where(rule, conds)} ORDER BY id", params)
    return [int(r["id"]) for r in rows]


def delete_ids(conn: Connection, table: str, ids: list[int]) -> int:
    if not ids:
        return 0
    names = {f"i{n}": v for n, v in enumerate(ids)}
    placeholders = ", ".join(f":{k}" for k in names)
    return execute(conn, f"DELETE FROM {table} WHERE id IN ({placeholders})", names).rowcount


def create_unique_index(conn: Connection, rule: DuplicateRule) -> None:
    execute(conn, rule.index_sql(conn.dialect.name))
