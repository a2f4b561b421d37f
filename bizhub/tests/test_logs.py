from bizhub.logs import LogContext, search_logs


def test_log_context_writes_record(tmp_db_path):
    log = LogContext("TEST_ACTION")
    log.set_user({"username": "admin", "id": 1})
    log.set_entity("event", 42)
    log.set_before({"status": "Upcoming"})
    log.set_after({"status": "Historical"})
    log.write("OK")
    total, rows = search_logs(None, "TEST_ACTION", None, None, 1, 20)
    assert total == 1
    rec = rows[0]
    assert rec["user"] == "admin"
    assert rec["entity_id"] == "42"
    assert rec["result"] == "OK"
    assert '"Historical"' in rec["after_json"]


def test_failed_mutation_is_logged(client, admin_headers):
    r = client.delete("/api/admin/events/999999", headers=admin_headers)
    assert r.status_code == 404
    body = client.get("/api/admin/logs/search", params={"action": "EVENT_DELETE"}, headers=admin_headers).json()
    assert body["total"] == 1
    assert body["items"][0]["result"] == "ERROR"
    assert body["items"][0]["err_msg"] == "Event not found"


def test_search_by_query(client, admin_headers):
    client.post("/api/admin/directories/members", json={"name": "Zed Unique"}, headers=admin_headers)
    client.post("/api/admin/directories/members", json={"name": "Other"}, headers=admin_headers)
    body = client.get("/api/admin/logs/search", params={"query": "Zed Unique"}, headers=admin_headers).json()
    assert body["total"] == 1
    body = client.get("/api/admin/logs/search", params={"size": 1}, headers=admin_headers).json()
    assert body["total"] == 2 and len(body["items"]) == 1
