import pytest

from bizhub.db import fetch_scalar, get_conn
from bizhub.errors import ValidationError
from bizhub.logs import LogContext
from bizhub.services import directory_svc, duplicate_svc


def test_member_crud(client, admin_headers):
    r = client.post("/api/admin/directories/members",
                    json={"name": "Ada Obi", "organization": "Acme", "title": "CEO"}, headers=admin_headers)
    assert r.status_code == 201
    entry = r.json()["entry"]
    assert entry["name"] == "Ada Obi"

    # same name + organization, different case and spacing
    r = client.post("/api/admin/directories/members",
                    json={"name": " ada obi ", "organization": "ACME"}, headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["code"] == "DUPLICATE_ENTRY"

    # same name at another organization is fine
    r = client.post("/api/admin/directories/members",
                    json={"name": "Ada Obi", "organization": "Globex"}, headers=admin_headers)
    assert r.status_code == 201

    r = client.put(f"/api/admin/directories/members/{entry['id']}", json={"title": "CTO"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["entry"]["title"] == "CTO"

    # renaming onto the other entry collides
    r = client.put(f"/api/admin/directories/members/{entry['id']}",
                   json={"organization": "globex"}, headers=admin_headers)
    assert r.status_code == 409

    public = client.get("/api/directories/members").json()
    assert public["pagination"]["total"] == 2
    assert len(public["members"]) == 2

    admin = client.get("/api/admin/directories/members", params={"search": "globex"}, headers=admin_headers).json()
    assert [e["organization"] for e in admin["entries"]] == ["Globex"]

    assert client.delete(f"/api/admin/directories/members/{entry['id']}", headers=admin_headers).status_code == 200
    r = client.delete(f"/api/admin/directories/members/{entry['id']}", headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["code"] == "NOT_FOUND"


def test_partner_email_unique(client, admin_headers):
    body = {"partner_name": "Bank A", "email": "Hello@BankA.com"}
    assert client.post("/api/admin/directories/partners", json=body, headers=admin_headers).status_code == 201
    r = client.post("/api/admin/directories/partners",
                    json={"partner_name": "Bank A2", "email": "hello@banka.com"}, headers=admin_headers)
    assert r.status_code == 409
    assert "email" in r.json()["message"]


def test_business_directory_requires_name(client, admin_headers):
    r = client.post("/api/admin/directories/business", json={"email": "x@y.com"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"


def test_unknown_directory_type(client, admin_headers):
    r = client.get("/api/admin/directories/vendors", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid directory type"


def test_admin_directory_requires_admin(client, user_headers):
    r = client.get("/api/admin/directories/members", headers=user_headers)
    assert r.status_code == 403


def test_public_search_and_pagination(client):
    directory_svc.import_entries("business", [{"business_name": f"Shop {i}"} for i in range(5)])
    r = client.get("/api/directories/business", params={"limit": 2, "page": 2})
    body = r.json()
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 5, "pages": 3, "has_next": True, "has_prev": True}
    assert len(body["businesses"]) == 2
    r = client.get("/api/directories/business", params={"search": "shop 3"})
    assert [b["business_name"] for b in r.json()["businesses"]] == ["Shop 3"]


def test_import_entries_skips_duplicates(tmp_db_path):
    res = directory_svc.import_entries("partners", [
        {"partner_name": "P1", "email": "p@x.com"},
        {"partner_name": "P2", "email": "P@X.com"},
        {"partner_name": "", "email": "q@x.com"},
    ])
    assert res == {"inserted": 1, "skipped": 1, "invalid": 1}


def test_import_entries_keeps_earlier_rows_on_unique_index_hit(tmp_db_path, monkeypatch):
    duplicate_svc.apply_unique_constraints(["members"])
    monkeypatch.setattr(directory_svc, "find_duplicate", lambda *a: None)
    res = directory_svc.import_entries("members", [
        {"name": "Ada", "organization": "Acme"},
        {"name": "Bola"},
        {"name": "ADA", "organization": "acme"},
        {"name": "Chi"},
    ])
    assert res == {"inserted": 3, "skipped": 1, "invalid": 0}
    with get_conn() as conn:
        assert fetch_scalar(conn, "SELECT COUNT(*) FROM directory_members") == 3


def test_import_csv(tmp_path, tmp_db_path):
    csv = tmp_path / "members.csv"
    csv.write_text("name,organization,unknown\nAda,Acme,zzz\nBola,,\n,Orphan,\n", encoding="utf-8")
    res = directory_svc.import_csv("members", str(csv), LogContext("DIRECTORY_IMPORT"))
    assert res == {"inserted": 2, "skipped": 0, "invalid": 1}


def test_import_csv_requires_name_column(tmp_path, tmp_db_path):

    csv = tmp_path / "partners.csv"
    csv.write_text("email\na@b.com\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        directory_svc.import_csv("partners", str(csv), LogContext("DIRECTORY_IMPORT"))
