"""
Database connection diagnostics for operators.

``check_connection`` opens a connection with the configured URL, runs a test
query and reports the server version. Failures are classified by driver error
code and come with a hint on what to check.
"""
from __future__ import annotations

import logging
import os

from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError

from ..db import fetch_scalar, get_conn, get_database_url, ssl_enabled
from ..errors import db_error_code

logger = logging.getLogger(__name__)

HINTS = {
    "ECONNREFUSED": "Check if the host and port are correct and the server accepts remote connections.",
    "ENOTFOUND": "The host name could not be resolved, or the database file cannot be opened.",
    "ER_ACCESS_DENIED_ERROR": "Check if the username and password are correct.",
    "ER_BAD_DB_ERROR": "Database does not exist. You may need to create it first.",
}

ENV_VARS = ("DB_HOST", "DB_PORT", "DB_USER", "DB_PASSWORD", "DB_NAME", "DB_SSL")


def connection_info(url: str | None = None) -> dict:
    """Target of the connection, password masked."""
    u = make_url(url or get_database_url())
    if u.get_backend_name() == "sqlite":
        return {"backend": "sqlite", "database": u.database}
    return {
        "backend": u.get_backend_name(),
        "host": u.host,
        "port": u.port or 3306,
        "database": u.database,
        "user": u.username,
        "password": "***" if u.password else None,
        "ssl": ssl_enabled(),
    }


def env_issues() -> list[str]:
    """Common .env mistakes: stray whitespace and quoted values."""
    issues = []
    for name in ENV_VARS:
        value = os.environ.get(name)
        if value is None:
            continue
        if value != value.strip():
            issues.append(f"{name} has leading/trailing whitespace")
        if value[:1] in ("'", '"') or value[-1:] in ("'", '"'):
            issues.append(f"{name} is wrapped in quotes")
        if "\n" in value or "\r" in value:
            issues.append(f"{name} contains newline characters")
    return issues


def _server_version(conn) -> str:
    if conn.dialect.name == "sqlite":
        return str(fetch_scalar(conn, "SELECT sqlite_version()", default=""))
    return str(fetch_scalar(conn, "SELECT VERSION()", default=""))


def check_connection(url: str | None = None) -> dict:
    info = connection_info(url)
    result = {"ok": False, "target": info, "env_issues": env_issues()}
    try:
        with get_conn(url) as conn:
            result["test_query"] = int(fetch_scalar(conn, "SELECT 1 AS test"))
            result["server_version"] = _server_version(conn)
        result["ok"] = True
        logger.info(f"database connection ok ({info['backend']} {result['server_version']})")
    except DBAPIError as e:
        code = db_error_code(e)
        result["error"] = str(e.orig if e.orig is not None else e)
        result["code"] = code
        if code in HINTS:
            result["hint"] = HINTS[code]
        logger.error(f"database connection failed: {result['error']}")
    return result
