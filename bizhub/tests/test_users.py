from bizhub.db import get_conn
from bizhub.repository import user_repo


def test_profile(client, user_headers, user_id):
    r = client.get("/api/users/profile", headers=user_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["id"] == user_id
    assert "password_hash" not in body
    assert body["businesses"] == []

    r = client.put("/api/users/profile", json={"name": "  Renamed ", "state": "Lagos"}, headers=user_headers)
    assert r.json()["message"] == "Profile updated"
    assert r.json()["user"]["name"] == "Renamed"
    assert r.json()["user"]["state"] == "Lagos"

    r = client.put("/api/users/profile", json={"name": ""}, headers=user_headers)
    assert r.status_code == 400


def test_profile_of_deleted_user(client, user_headers, user_id, admin_headers):
    assert client.delete(f"/api/admin/users/{user_id}", headers=admin_headers).status_code == 200
    r = client.get("/api/users/profile", headers=user_headers)
    assert r.status_code == 404


def test_user_businesses(client, user_headers):
    client.post("/api/businesses", json={
        "business_name": "Acme", "business_address": "Addr", "owner_name": "Me", "owner_relationship": "Owner",
    }, headers=user_headers)
    r = client.get("/api/users/businesses", headers=user_headers)
    assert [b["business_name"] for b in r.json()["businesses"]] == ["Acme"]


def test_admin_users(client, admin_headers, make_user):
    uid = make_user("a@x.com", name="A")
    make_user("b@x.com", name="B")
    r = client.get("/api/admin/users", params={"limit": 1}, headers=admin_headers)
    body = r.json()
    assert body["pagination"]["total"] == 2
    assert len(body["users"]) == 1

    r = client.put(f"/api/admin/users/{uid}", json={"phone": "0800"}, headers=admin_headers)
    assert r.json()["message"] == "User updated successfully"
    assert r.json()["user"]["phone"] == "0800"

    assert client.put(f"/api/admin/users/{uid}", json={}, headers=admin_headers).status_code == 400
    r = client.put(f"/api/admin/users/{uid}", json={"name": "   "}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"
    with get_conn() as conn:
        assert user_repo.get(conn, uid)["name"] == "A"
    assert client.put("/api/admin/users/999999", json={"name": "x"}, headers=admin_headers).status_code == 404
    assert client.delete("/api/admin/users/999999", headers=admin_headers).status_code == 404
