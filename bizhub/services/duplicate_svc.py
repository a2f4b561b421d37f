"""
Duplicate management for the directory tables and user businesses.

Each rule names a table, the normalised key that makes two rows the same
entry, and the unique index that keeps it that way. Cleanup keeps the lowest
id of every group; the index is only added once a table is clean.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import DBAPIError

from ..db import get_conn
from ..errors import ValidationError, db_error_code
from ..repository import duplicate_repo
from ..repository.duplicate_repo import RULES, RULES_BY_NAME, DuplicateRule

logger = logging.getLogger(__name__)


def _rules(names: list[str] | None) -> list[DuplicateRule]:
    if not names:
        return list(RULES)
    unknown = [n for n in names if n not in RULES_BY_NAME]
    if unknown:
        raise ValidationError(f"Unknown duplicate rule(s): {', '.join(unknown)}")
    return [RULES_BY_NAME[n] for n in names]


def find_duplicates(rule: str | DuplicateRule) -> list[dict]:
    """Groups sharing a key: ``{"key": [...], "count": n, "ids": [lowest, ...]}``."""
    r = RULES_BY_NAME[rule] if isinstance(rule, str) else rule
    out = []
    with get_conn() as conn:
        for g in duplicate_repo.duplicate_groups(conn, r):
            ids = duplicate_repo.group_ids(conn, r, g)
            out.append({
                "key": [g[f"k{i}"] for i in range(len(r.key_exprs))],
                "count": int(g["cnt"]),
                "ids": ids,
            })
    return out


def report(names: list[str] | None = None) -> dict:
    result = {}
    for r in _rules(names):
        groups = find_duplicates(r)
        result[r.name] = {
            "table": r.table,
            "groups": len(groups),
            "duplicate_rows": sum(len(g["ids"]) - 1 for g in groups),
            "details": groups,
        }
    return result


def _remove_for_rule(r: DuplicateRule, dry_run: bool) -> dict:
    groups = find_duplicates(r)
    kept, to_delete = [], []
    for g in groups:
        kept.append(g["ids"][0])
        to_delete.extend(g["ids"][1:])
    deleted = 0
    if to_delete and not dry_run:
        with get_conn() as conn:
            deleted = duplicate_repo.delete_ids(conn, r.table, to_delete)
            conn.commit()
        logger.info(f"{r.table}: kept {kept}, deleted {deleted} duplicate row(s)")
    return {
        "table": r.table,
        "groups": len(groups),
        "kept_ids": kept,
        "delete_ids": to_delete,
        "deleted": deleted,
        "dry_run": dry_run,
    }


def remove_duplicates(dry_run: bool = False, names: list[str] | None = None) -> dict:
    """Per-rule report; a failing rule is reported and the others still run."""
    results = {}
    for r in _rules(names):
        try:
            results[r.name] = _remove_for_rule(r, dry_run)
        except DBAPIError as e:
            logger.error(f"duplicate cleanup failed for {r.table}: {e}")
            results[r.name] = {"table": r.table, "error": str(e.orig if e.orig is not None else e)}
    return results


def apply_unique_constraints(names: list[str] | None = None) -> dict:
    """
    Add each rule's unique index. Outcome per rule is one of ``applied``,
    ``exists``, ``skipped`` (duplicates remain) or ``error``.
    """
    results = {}
    for r in _rules(names):
        with get_conn() as conn:
            groups = duplicate_repo.duplicate_groups(conn, r)
            if groups:
                logger.warning(f"{r.label}: {len(groups)} duplicate group(s) remain, constraint skipped")
                results[r.name] = {"status": "skipped", "duplicates": len(groups), "index": r.index_name}
                continue
            try:
                duplicate_repo.create_unique_index(conn, r)
                conn.commit()
                results[r.name] = {"status": "applied", "index": r.index_name}
                logger.info(f"{r.label}: constraint applied")
            except DBAPIError as e:
                conn.rollback()
                code = db_error_code(e)
                if code == "ER_DUP_KEYNAME":
                    results[r.name] = {"status": "exists", "index": r.index_name}
                elif code == "ER_DUP_ENTRY":
                    results[r.name] = {"status": "skipped", "index": r.index_name,
                                       "error": "duplicate entries found"}
                else:
                    logger.error(f"{r.label}: {e}")
                    results[r.name] = {"status": "error", "index": r.index_name, "error": str(e.orig or e)}
    return results
