import datetime as dt

import jwt

from bizhub.auth import create_access_token, decode_token, user_token


def test_decode_valid_and_forged():
    token = user_token(7, "a@b.co")
    claims = decode_token(token)
    assert claims["id"] == 7 and claims["isAdmin"] is False
    forged = jwt.encode({"id": 7, "isAdmin": True}, "some-other-secret", algorithm="HS256")
    assert decode_token(forged) is None


def test_expired_token_rejected():
    token = create_access_token({"id": 1, "isAdmin": True}, ttl=dt.timedelta(seconds=-5))
    assert decode_token(token) is None


def test_missing_token_is_401(client):
    r = client.get("/api/users/profile")
    assert r.status_code == 401
    assert r.json()["code"] == "AUTH_REQUIRED"


def test_invalid_token_is_403(client):
    r = client.get("/api/users/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 403
    assert r.json()["code"] == "AUTH_INVALID"


def test_user_token_cannot_reach_admin_routes(client, user_headers):
    r = client.get("/api/admin/dashboard/stats", headers=user_headers)
    assert r.status_code == 403
    assert r.json()["code"] == "PERMISSION_DENIED"
