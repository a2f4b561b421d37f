from bizhub.db import get_conn, fetch_scalar
from bizhub.repository import event_repo


def _event(title="Launch Night", date="2999-01-01", status="Upcoming", **extra):
    with get_conn() as conn:
        eid = event_repo.insert(conn, {"title": title, "event_date": date, "status": status, **extra})
        conn.commit()
    return eid


def test_public_list_hides_archived(client):
    _event("Visible")
    _event("Archived", is_archived=1)
    _event("Pitch Day", event_type="pitch")
    r = client.get("/api/events")
    assert r.status_code == 200
    body = r.json()
    titles = {e["title"] for e in body["events"]}
    assert titles == {"Visible", "Pitch Day"}
    assert body["pagination"]["total"] == 2

    r = client.get("/api/events", params={"type": "PITCH"})
    assert [e["title"] for e in r.json()["events"]] == ["Pitch Day"]

    r = client.get("/api/events/pitch")
    assert [e["title"] for e in r.json()["events"]] == ["Pitch Day"]


def test_rsvp_flow(client, user_headers):
    eid = _event()
    r = client.post(f"/api/events/{eid}/rsvp", headers=user_headers)
    assert r.status_code == 201
    assert r.json()["message"] == "RSVP successful"

    r = client.post(f"/api/events/{eid}/rsvp", headers=user_headers)
    assert r.status_code == 409
    assert r.json()["code"] == "DUPLICATE_ENTRY"

    assert client.get(f"/api/events/{eid}/rsvp", headers=user_headers).json() == {"is_rsvped": True}
    assert client.get(f"/api/events/{eid}/rsvp/count").json() == {"count": 1}

    r = client.post("/api/events/rsvp/counts", json={"eventIds": [eid, 999999]})
    assert r.json() == {str(eid): 1, "999999": 0}

    assert client.delete(f"/api/events/{eid}/rsvp", headers=user_headers).status_code == 200
    assert client.get(f"/api/events/{eid}/rsvp/count").json() == {"count": 0}
    r = client.delete(f"/api/events/{eid}/rsvp", headers=user_headers)
    assert r.status_code == 404


def test_rsvp_counts_bad_payload(client):
    assert client.post("/api/events/rsvp/counts", json={"eventIds": "1,2"}).json() == {}
    assert client.post("/api/events/rsvp/counts", json={}).json() == {}


def test_rsvp_rejects_past_and_historical(client, user_headers):
    past = _event("Old", date="2000-01-01")
    r = client.post(f"/api/events/{past}/rsvp", headers=user_headers)
    assert r.status_code == 400
    assert r.json()["code"] == "EVENT_PAST"

    hist = _event("Closed", status="Historical")
    r = client.post(f"/api/events/{hist}/rsvp", headers=user_headers)
    assert r.status_code == 400
    assert r.json()["code"] == "EVENT_HISTORICAL"

    r = client.post("/api/events/999999/rsvp", headers=user_headers)
    assert r.status_code == 404


def test_rsvp_requires_user(client):
    eid = _event()
    assert client.post(f"/api/events/{eid}/rsvp").status_code == 401


def test_admin_event_crud(client, admin_headers, admin_id):
    r = client.post("/api/admin/events", json={"title": "Demo Day", "event_date": "2999-05-01", "event_type": "Pitch"},
                    headers=admin_headers)
    assert r.status_code == 201
    ev = r.json()["event"]
    assert ev["event_type"] == "pitch"
    assert ev["status"] == "Upcoming"
    assert ev["created_by"] == admin_id

    r = client.post("/api/admin/events", json={"title": "Demo Day"}, headers=admin_headers)
    assert r.status_code == 409

    r = client.post("/api/admin/events", json={"description": "no title"}, headers=admin_headers)
    assert r.status_code == 400

    r = client.put(f"/api/admin/events/{ev['id']}", json={"description": "Updated"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["event"]["description"] == "Updated"

    r = client.patch(f"/api/admin/events/{ev['id']}/status", json={"status": "Bogus"}, headers=admin_headers)
    assert r.status_code == 400
    r = client.patch(f"/api/admin/events/{ev['id']}/status", json={"status": "Featured"}, headers=admin_headers)
    assert r.json()["status"] == "Featured"

    r = client.post(f"/api/admin/events/{ev['id']}/copy", headers=admin_headers)
    assert r.status_code == 201
    copy = r.json()["event"]
    assert copy["title"] == "Copy of Demo Day"
    assert copy["status"] == "Upcoming"

    assert client.post(f"/api/admin/events/{copy['id']}/archive", headers=admin_headers).status_code == 200
    public = {e["id"] for e in client.get("/api/events").json()["events"]}
    assert copy["id"] not in public and ev["id"] in public

    admin_list = client.get("/api/admin/events", headers=admin_headers).json()
    assert admin_list["pagination"]["total"] == 2

    assert client.delete(f"/api/admin/events/{ev['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/admin/events/{ev['id']}", headers=admin_headers).status_code == 404

    with get_conn() as conn:
        n = fetch_scalar(conn, "SELECT COUNT(*) FROM operation_log WHERE action = 'EVENT_CREATE' AND result = 'OK'")
    assert n == 1


def test_admin_rsvp_listing(client, admin_headers, user_headers):
    eid = _event()
    client.post(f"/api/events/{eid}/rsvp", headers=user_headers)
    r = client.get(f"/api/admin/events/{eid}/rsvps", headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["pagination"]["total"] == 1
    assert body["rsvps"][0]["email"] == "test@example.com"


def test_update_statuses_endpoint(client, admin_headers):
    _event("Was upcoming", date="2000-01-01")
    r = client.post("/api/admin/events/update-statuses", headers=admin_headers)
    assert r.status_code == 200
    body = r.json()
    assert body["summary"]["historical"] == 1
    assert body["updates"][0]["newStatus"] == "Historical"
