from pathlib import Path

import bcrypt
import pytest
from sqlalchemy.exc import IntegrityError

from bizhub.db import get_conn, fetch_scalar
from bizhub.repository import user_repo
from bizhub.services import seed_svc

TEST_DATA = Path(__file__).resolve().parents[2] / "seeds" / "test_data.yaml"


def test_ensure_admin(tmp_db_path):
    res = seed_svc.ensure_admin("root", "s3cret", "root@example.com")
    assert res["created"] is True
    again = seed_svc.ensure_admin("root", "different")
    assert again == {"created": False, "id": res["id"], "username": "root"}
    with get_conn() as conn:
        admin = user_repo.get_admin_by_username(conn, "root")
        stored = fetch_scalar(conn, "SELECT password_hash FROM admin_users WHERE id = :id", {"id": admin["id"]})
    assert "password_hash" not in admin
    assert bcrypt.checkpw(b"s3cret", stored.encode("utf-8"))


def test_seed_test_data_rerun_skips(tmp_db_path):
    first = seed_svc.seed_test_data(str(TEST_DATA))
    assert first["admin"]["created"] is True
    assert first["users"]["inserted"] == 1
    assert first["events"]["inserted"] == 5
    assert first["blog_posts"]["inserted"] == 3
    assert first["custom_tools"]["inserted"] == 2
    assert first["pitch_entries"]["inserted"] == 2

    second = seed_svc.seed_test_data(str(TEST_DATA))
    assert second["admin"]["created"] is False
    for key in ("users", "businesses", "events", "pitch_entries", "blog_posts", "custom_tools"):
        assert second[key]["inserted"] == 0, key
    assert all(v["inserted"] == 0 for k, v in second.items() if k.startswith("directory_"))

    with get_conn() as conn:
        assert fetch_scalar(conn, "SELECT COUNT(*) FROM events") == 5
        assert fetch_scalar(conn, "SELECT COUNT(*) FROM events WHERE event_type = 'pitch'") == 2


def test_seeded_data_is_consistent(client, tmp_db_path):
    from bizhub.services.consistency_svc import check_in_process

    seed_svc.seed_test_data(str(TEST_DATA))
    res = check_in_process()
    assert res["ok"], res["mismatches"]
    assert client.get("/api/stats").json()["fundingCommitted"] > 0


def test_insert_skips_duplicate_and_reraises_other_errors(make_user):
    make_user("dup@example.com")
    stats = {"inserted": 0, "skipped": 0}
    with get_conn() as conn:
        new_id = seed_svc._insert(conn, user_repo.insert, {"name": "Dup", "email": "dup@example.com",
                                                           "password_hash": "x"}, "user dup", stats)
        assert new_id is None
        assert stats == {"inserted": 0, "skipped": 1}

        with pytest.raises(IntegrityError):
            seed_svc._insert(conn, user_repo.insert, {"email": "noname@example.com"}, "user noname", stats)
        assert stats == {"inserted": 0, "skipped": 1}
        assert fetch_scalar(conn, "SELECT COUNT(*) FROM users") == 1
