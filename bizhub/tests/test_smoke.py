from bizhub import __version__


def test_health_and_version(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["timestamp"]

    v = client.get("/version")
    assert v.status_code == 200
    assert v.json() == {"app": "bizhub-api", "version": __version__}


def test_index_lists_endpoint_groups(client):
    body = client.get("/").json()
    assert body["status"] == "running"
    assert body["endpoints"]["directories"] == "/api/directories"


def test_unknown_route_uses_error_envelope(client):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert r.json() == {"error": True, "message": "Not Found", "code": "NOT_FOUND"}


def test_bad_path_param_is_validation_error(client):
    r = client.get("/api/businesses/abc")
    assert r.status_code == 400
    body = r.json()
    assert body["error"] is True
    assert body["code"] == "VALIDATION_ERROR"
