import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

os.environ.setdefault("JWT_SECRET", "test-secret")

# children before parents
TABLES = [
    "operation_log",
    "template_downloads",
    "templates",
    "builtin_tools",
    "custom_tools",
    "settings",
    "saved_blog_posts",
    "blog_posts",
    "pitch_entries",
    "event_rsvps",
    "events",
    "password_reset_tokens",
    "businesses",
    "newsletter_subscribers",
    "directory_members",
    "directory_partners",
    "directory_businesses",
    "users",
    "admin_users",
]

UNIQUE_INDEXES = [
    "unique_member_name_org",
    "unique_partner_email",
    "unique_directory_business_name",
    "unique_user_business_name",
]


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "bizhub_test.db"
    # Point bizhub to this temp DB
    os.environ["BIZHUB_DB_PATH"] = str(path)
    from bizhub.schema import ensure_schema
    ensure_schema()
    return str(path)


@pytest.fixture()
def client(tmp_db_path):
    # Startup hooks are not run without a lifespan context; seed what they would
    from bizhub.logs import ensure_log_schema
    from bizhub.services.settings_svc import ensure_default_settings
    ensure_log_schema()
    ensure_default_settings()
    from bizhub.api import app
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Clean tables before each test for isolation
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("BIZHUB_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in TABLES:
            conn.execute(f"DELETE FROM {t}")
        # unique indexes are added by tests that apply constraints
        for name in UNIQUE_INDEXES:
            conn.execute(f"DROP INDEX IF EXISTS {name}")
        conn.commit()
    finally:
        conn.close()
    yield


@pytest.fixture()
def make_user(tmp_db_path):
    from bizhub.db import get_conn
    from bizhub.repository import user_repo

    def _make(email="test@example.com", name="Test User", is_active=1, **extra):
        with get_conn() as conn:
            uid = user_repo.insert(conn, {"name": name, "email": email, "password_hash": "x", "is_active": is_active, **extra})
            conn.commit()
        return uid

    return _make


@pytest.fixture()
def user_id(make_user):
    return make_user()


@pytest.fixture()
def user_headers(user_id):
    from bizhub.auth import user_token
    return {"Authorization": f"Bearer {user_token(user_id, 'test@example.com')}"}


@pytest.fixture()
def admin_id(tmp_db_path):
    from bizhub.db import get_conn
    from bizhub.repository import user_repo
    with get_conn() as conn:
        aid = user_repo.insert_admin(conn, {"username": "admin", "password_hash": "x", "role": "admin"})
        conn.commit()
    return aid


@pytest.fixture()
def admin_headers(admin_id):
    from bizhub.auth import admin_token
    return {"Authorization": f"Bearer {admin_token(admin_id, 'admin')}"}
