import pytest

from bizhub.db import fetch_all, get_conn
from bizhub.errors import ValidationError
from bizhub.repository import business_repo, directory_repo
from bizhub.repository.directory_repo import DIRECTORIES
from bizhub.services import duplicate_svc


def _members(*rows):
    with get_conn() as conn:
        ids = [directory_repo.insert(conn, "members", {"name": n, "organization": o}) for n, o in rows]
        conn.commit()
    return ids


def _ids(dtype):
    with get_conn() as conn:
        return [r["id"] for r in fetch_all(conn, f"SELECT id FROM {DIRECTORIES[dtype]['table']} ORDER BY id")]


def test_report_groups_case_and_whitespace(tmp_db_path):
    a, b, c, d = _members(("Ada", "Acme"), (" ada ", "ACME"), ("Ada", "Globex"), ("ADA", "acme "))
    rep = duplicate_svc.report(["members"])["members"]
    assert rep["groups"] == 1
    assert rep["duplicate_rows"] == 2
    assert rep["details"][0]["ids"] == [a, b, d]
    assert rep["details"][0]["count"] == 3


def test_remove_keeps_lowest_id(tmp_db_path):
    a, b, c = _members(("Ada", "Acme"), ("ada", "acme"), ("Bola", None))
    dry = duplicate_svc.remove_duplicates(dry_run=True, names=["members"])["members"]
    assert dry["delete_ids"] == [b] and dry["deleted"] == 0
    assert _ids("members") == [a, b, c]

    res = duplicate_svc.remove_duplicates(names=["members"])["members"]
    assert res["kept_ids"] == [a]
    assert res["deleted"] == 1
    assert _ids("members") == [a, c]


def test_partners_without_email_are_not_duplicates(tmp_db_path):
    with get_conn() as conn:
        for name, email in (("P1", None), ("P2", ""), ("P3", "x@y.com"), ("P4", "X@Y.com ")):
            directory_repo.insert(conn, "partners", {"partner_name": name, "email": email})
        conn.commit()
    rep = duplicate_svc.report(["partners"])["partners"]
    assert rep["groups"] == 1
    assert rep["duplicate_rows"] == 1


def test_business_rule_is_per_user(make_user):
    u1, u2 = make_user("a@x.com"), make_user("b@x.com")
    with get_conn() as conn:
        for uid in (u1, u1, u2):
            business_repo.insert(conn, {"user_id": uid, "business_name": "Acme Ltd"})
        conn.commit()
    rep = duplicate_svc.report(["businesses"])["businesses"]
    assert rep["groups"] == 1
    assert rep["details"][0]["key"][0] == u1


def test_unknown_rule_rejected(tmp_db_path):
    with pytest.raises(ValidationError):
        duplicate_svc.report(["vendors"])


def test_apply_constraints_lifecycle(tmp_db_path):
    _members(("Ada", "Acme"), ("ADA", "acme"))
    res = duplicate_svc.apply_unique_constraints(["members", "partners"])
    assert res["members"]["status"] == "skipped"
    assert res["partners"]["status"] == "applied"

    duplicate_svc.remove_duplicates(names=["members"])
    res = duplicate_svc.apply_unique_constraints(["members"])
    assert res["members"] == {"status": "applied", "index": "unique_member_name_org"}

    res = duplicate_svc.apply_unique_constraints(["members"])
    assert res["members"]["status"] == "exists"


def test_maintenance_endpoints(client, admin_headers):
    _members(("Ada", "Acme"), ("ada", "Acme"))
    r = client.get("/api/admin/maintenance/duplicates", params={"rule": "members"}, headers=admin_headers)
    assert r.status_code == 200
    assert list(r.json()) == ["members"]
    assert r.json()["members"]["groups"] == 1

    r = client.post("/api/admin/maintenance/duplicates/remove", json={"dry_run": True}, headers=admin_headers)
    assert r.json()["dry_run"] is True
    assert r.json()["results"]["members"]["deleted"] == 0

    r = client.post("/api/admin/maintenance/duplicates/remove", headers=admin_headers)
    assert r.json()["results"]["members"]["deleted"] == 1

    r = client.post("/api/admin/maintenance/constraints", json={"rules": ["members"]}, headers=admin_headers)
    assert r.json()["results"]["members"]["status"] == "applied"

    r = client.get("/api/admin/maintenance/duplicates", params={"rule": "nope"}, headers=admin_headers)
    assert r.status_code == 400
