import json

from bizhub.db import get_conn
from bizhub.repository import settings_repo
from bizhub.repository.common import insert_row


def test_tool_settings_are_typed(client):
    body = client.get("/api/tools/settings").json()
    assert body["exchange_rates"] == {"eur": 1650.0, "gbp": 1900.0, "usd": 1500.0}
    assert body["defaults"]["tax_rate"] == 7.5
    assert body["defaults"]["loan_term"] == 12.0


def test_update_settings_ignores_unknown_keys(client, admin_headers):
    r = client.put("/api/admin/settings", json={"exchange_rate_usd": 1600, "made_up": "x"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Settings updated", "updated": ["exchange_rate_usd"]}

    settings = {s["setting_key"]: s for s in client.get("/api/admin/settings", headers=admin_headers).json()["settings"]}
    assert "made_up" not in settings
    assert settings["exchange_rate_usd"]["setting_value"] == "1600"
    assert client.get("/api/tools/settings").json()["exchange_rates"]["usd"] == 1600.0


def test_settings_require_admin(client, user_headers):
    assert client.get("/api/admin/settings", headers=user_headers).status_code == 403


def test_default_settings_not_overwritten(client, admin_headers):
    from bizhub.services.settings_svc import ensure_default_settings

    client.put("/api/admin/settings", json={"site_name": "Renamed Hub"}, headers=admin_headers)
    ensure_default_settings()
    settings = {s["setting_key"]: s["setting_value"]
                for s in client.get("/api/admin/settings", headers=admin_headers).json()["settings"]}
    assert settings["site_name"] == "Renamed Hub"


def test_custom_tools_inputs_decoded(client):
    with get_conn() as conn:
        settings_repo.insert_custom_tool(conn, {
            "name": "Margin",
            "inputs": json.dumps([{"id": "cost", "type": "number"}]),
            "function_code": "function calculate(c) { return c; }",
        })
        settings_repo.insert_custom_tool(conn, {"name": "Broken", "inputs": "[not json"})
        conn.commit()
    tools = {t["name"]: t for t in client.get("/api/tools/custom").json()["tools"]}
    assert tools["Margin"]["inputs"] == [{"id": "cost", "type": "number"}]
    assert tools["Broken"]["inputs"] == "[not json"


def test_builtin_tools_visible_only(client):
    with get_conn() as conn:
        for tid, order, visible in (("b", 2, 1), ("a", 1, 1), ("hidden", 0, 0)):
            insert_row(conn, "builtin_tools", {
                "tool_id": tid, "name": tid.upper(), "display_order": order, "is_visible": visible,
            })
        conn.commit()
    tools = client.get("/api/tools/builtin").json()["tools"]
    assert [t["tool_id"] for t in tools] == ["a", "b"]
