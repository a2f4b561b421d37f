from __future__ import annotations

# bizhub/db.py
import logging
import os
from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import URL, Connection, Engine

from .config import PROJECT_ROOT, read_config_yaml

logger = logging.getLogger(__name__)

POOL_SIZE = 10

# Database URL resolution order:
# 1) BIZHUB_DB_PATH (SQLite file, highest priority; used by the test suite)
# 2) DATABASE_URL (any SQLAlchemy URL)
# 3) config.yaml test_db_path when running under pytest
# 4) DB_HOST / DB_PORT / DB_USER / DB_PASSWORD / DB_NAME / DB_SSL (MySQL)
# 5) config.yaml database_url, then db_path
# 6) fallback: bizhub.db at the project root
_ROOT_DB = os.path.join(PROJECT_ROOT, "bizhub.db")


def _sqlite_url(path: str) -> str:
    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)
    return f"sqlite:///{path}"


def _mysql_url() -> URL:
    return URL.create(
        "mysql+pymysql",
        username=os.environ.get("DB_USER", "root"),
        password=os.environ.get("DB_PASSWORD") or None,
        host=os.environ.get("DB_HOST", "localhost"),
        port=int(os.environ.get("DB_PORT") or 3306),
        database=os.environ.get("DB_NAME", "bizhub"),
        query={"charset": "utf8mb4"},
    )


def ssl_enabled() -> bool:
    return os.environ.get("DB_SSL", "").strip().lower() == "true"


def get_database_url() -> str:
    env_path = os.environ.get("BIZHUB_DB_PATH")
    if env_path:
        return _sqlite_url(env_path)
    env_url = os.environ.get("DATABASE_URL")
    if env_url:
        return env_url
    cfg = read_config_yaml()
    is_test = os.environ.get("APP_ENV") == "test" or os.environ.get("PYTEST_CURRENT_TEST") is not None
    if is_test and cfg.get("test_db_path"):
        return _sqlite_url(str(cfg["test_db_path"]))
    if os.environ.get("DB_HOST"):
        return _mysql_url().render_as_string(hide_password=False)
    if cfg.get("database_url"):
        return str(cfg["database_url"])
    if cfg.get("db_path"):
        return _sqlite_url(str(cfg["db_path"]))
    return _sqlite_url(_ROOT_DB)


def _enable_sqlite_fk(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys = ON")
    cur.close()


@lru_cache(maxsize=None)
def _engine_for(url: str) -> Engine:
    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False}, future=True)
        event.listen(engine, "connect", _enable_sqlite_fk)
        return engine
    connect_args = {}
    if ssl_enabled():
        # TLS on, certificate not verified (managed MySQL hosts with self-signed chains)
        connect_args["ssl"] = {"check_hostname": False, "verify_mode": "none"}
    logger.info("MySQL pool: pool_size=%s", POOL_SIZE)
    return create_engine(
        url,
        pool_size=POOL_SIZE,
        max_overflow=0,
        pool_pre_ping=True,
        pool_recycle=1500,
        connect_args=connect_args,
        future=True,
    )


def get_engine(url: str | None = None) -> Engine:
    return _engine_for(url or get_database_url())


@contextmanager
def get_conn(url: str | None = None) -> Iterator[Connection]:
    """
    Pooled connection. Callers commit explicitly; anything uncommitted is
    rolled back when the block exits.
    """
    with get_engine(url).connect() as conn:
        yield conn


def _stmt(sql):
    return text(sql) if isinstance(sql, str) else sql


def fetch_all(conn: Connection, sql, params: dict | None = None) -> list[dict]:
    return [dict(r) for r in conn.execute(_stmt(sql), params or {}).mappings().fetchall()]


def fetch_one(conn: Connection, sql, params: dict | None = None) -> dict | None:
    row = conn.execute(_stmt(sql), params or {}).mappings().fetchone()
    return dict(row) if row is not None else None


def fetch_scalar(conn: Connection, sql, params: dict | None = None, default=0):
    val = conn.execute(_stmt(sql), params or {}).scalar()
    return default if val is None else val


def execute(conn: Connection, sql, params: dict | None = None):
    return conn.execute(_stmt(sql), params or {})
