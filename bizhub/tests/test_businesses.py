from bizhub.db import get_conn, fetch_scalar

BUSINESS = {
    "business_name": "Acme Foods",
    "business_address": "1 Market Road",
    "owner_name": "Test User",
    "owner_relationship": "Owner",
    "business_sector": "Agriculture",
    "cac_registered": True,
}


def test_register_business(client, user_headers, user_id):
    r = client.post("/api/businesses", json=BUSINESS, headers=user_headers)
    assert r.status_code == 201
    b = r.json()["business"]
    assert b["status"] == "Pending Review"
    assert b["user_id"] == user_id
    assert b["cac_registered"] == 1

    # mirrored into the public business directory
    entries = client.get("/api/directories/business").json()["businesses"]
    assert [(e["business_name"], e["email"]) for e in entries] == [("Acme Foods", "test@example.com")]

    r = client.post("/api/businesses", json={**BUSINESS, "business_name": " acme foods "}, headers=user_headers)
    assert r.status_code == 409
    assert r.json()["code"] == "DUPLICATE_ENTRY"


def test_register_with_certificate_is_verified(client, user_headers):
    r = client.post("/api/businesses", json={**BUSINESS, "cac_certificate_url": "https://x/cert.pdf"},
                    headers=user_headers)
    assert r.json()["business"]["status"] == "Verified Business"


def test_register_requires_fields(client, user_headers):
    r = client.post("/api/businesses", json={"business_name": "Half"}, headers=user_headers)
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION_ERROR"
    assert client.post("/api/businesses", json=BUSINESS).status_code == 401


def test_directory_listing_not_duplicated(client, user_headers, make_user):
    from bizhub.auth import user_token

    other = make_user("other@example.com")
    client.post("/api/businesses", json=BUSINESS, headers=user_headers)
    r = client.post("/api/businesses", json=BUSINESS,
                    headers={"Authorization": f"Bearer {user_token(other, 'other@example.com')}"})
    assert r.status_code == 201
    with get_conn() as conn:
        assert fetch_scalar(conn, "SELECT COUNT(*) FROM businesses") == 2
        assert fetch_scalar(conn, "SELECT COUNT(*) FROM directory_businesses") == 1


def test_approve_and_list(client, user_headers, admin_headers):
    bid = client.post("/api/businesses", json=BUSINESS, headers=user_headers).json()["business"]["id"]
    assert client.get("/api/businesses/approved").json()["pagination"]["total"] == 0

    r = client.put(f"/api/admin/businesses/{bid}/approve", headers=admin_headers)
    assert r.json() == {"message": "Business approved"}
    listed = client.get("/api/businesses/approved", params={"search": "agri"}).json()
    assert [b["id"] for b in listed["businesses"]] == [bid]
    assert listed["businesses"][0]["owner_email"] == "test@example.com"

    client.put(f"/api/admin/businesses/{bid}/verify", headers=admin_headers)
    assert client.get(f"/api/businesses/{bid}").json()["status"] == "Verified Business"

    admin = client.get("/api/admin/businesses", params={"status": "Verified Business"}, headers=admin_headers)
    assert admin.json()["pagination"]["total"] == 1

    assert client.put("/api/admin/businesses/999999/approve", headers=admin_headers).status_code == 404
    assert client.get("/api/businesses/999999").status_code == 404
