from pathlib import Path

from bizhub.db import get_conn, fetch_all
from bizhub.logs import LogContext
from bizhub.services import template_svc

SEEDS = Path(__file__).resolve().parents[2] / "seeds"


def _seed():
    return template_svc.seed_catalogue(str(SEEDS / "templates.csv"), str(SEEDS / "builtin_tools.csv"),
                                       LogContext("CATALOGUE_SEED"))


def test_seed_catalogue_is_idempotent(tmp_db_path):
    res = _seed()
    assert res == {"templates_created": 33, "templates_updated": 0, "tools_created": 10, "tools_updated": 0}
    res = _seed()
    assert res == {"templates_created": 0, "templates_updated": 33, "tools_created": 0, "tools_updated": 10}


def test_list_and_filter(client):
    _seed()
    templates = client.get("/api/templates").json()["templates"]
    assert len(templates) == 33
    legal = client.get("/api/templates", params={"category": "legal & compliance"}).json()["templates"]
    assert {t["template_id"] for t in legal} >= {"nda", "privacy-policy"}
    assert all(t["category"] == "Legal & Compliance" for t in legal)
    tools = client.get("/api/tools/builtin").json()["tools"]
    assert [t["tool_id"] for t in tools][:2] == ["savings", "loan"]


def test_download_tracking(client, user_headers, user_id, admin_headers):
    _seed()
    r = client.post("/api/templates/nda/download", headers={**user_headers, "User-Agent": "pytest"})
    assert r.status_code == 200
    assert r.json() == {"template_id": "nda", "name": "Non-Disclosure Agreement (NDA)",
                        "file_path": "templates/nda.html"}
    client.post("/api/templates/nda/download")
    client.post("/api/templates/nda/download", headers=admin_headers)

    with get_conn() as conn:
        rows = fetch_all(conn, "SELECT user_id, user_agent FROM template_downloads ORDER BY id")
    assert [r["user_id"] for r in rows] == [user_id, None, None]
    assert rows[0]["user_agent"] == "pytest"

    nda = next(t for t in client.get("/api/templates").json()["templates"] if t["template_id"] == "nda")
    assert nda["download_count"] == 3

    stats = client.get("/api/admin/dashboard/stats", headers=admin_headers).json()
    assert stats["total_template_downloads"] == 3
    assert stats["unique_templates_downloaded"] == 1


def test_download_unknown_or_inactive(client, admin_headers):
    _seed()
    assert client.post("/api/templates/nope/download").status_code == 404
    r = client.put("/api/admin/templates/nda", json={"is_active": False}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["is_active"] == 0
    assert client.post("/api/templates/nda/download").status_code == 404
    assert "nda" not in {t["template_id"] for t in client.get("/api/templates").json()["templates"]}
    admin = client.get("/api/admin/templates", headers=admin_headers).json()["templates"]
    assert len(admin) == 33


def test_admin_template_update_errors(client, admin_headers):
    _seed()
    assert client.put("/api/admin/templates/nda", json={}, headers=admin_headers).status_code == 400
    assert client.put("/api/admin/templates/nope", json={"name": "x"}, headers=admin_headers).status_code == 404
