"""
Bearer-token verification for protected routes.

Tokens are HS256 JWTs signed with JWT_SECRET. User tokens carry
``{"id", "email", "isAdmin": false}``; admin tokens carry
``{"id", "username", "role", "isAdmin": true}``. Issuing tokens to end users
(login, registration) lives outside this API; ``create_access_token`` exists
for operator tooling and tests.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import jwt_secret
from .errors import AppError, AuthError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
TOKEN_TTL = dt.timedelta(hours=24)

_bearer = HTTPBearer(auto_error=False)


def create_access_token(claims: dict, ttl: dt.timedelta = TOKEN_TTL) -> str:
    payload = dict(claims)
    payload["exp"] = dt.datetime.now(dt.timezone.utc) + ttl
    return jwt.encode(payload, jwt_secret(), algorithm=ALGORITHM)


def user_token(user_id: int, email: str) -> str:
    return create_access_token({"id": user_id, "email": email, "isAdmin": False})


def admin_token(admin_id: int, username: str, role: str = "admin") -> str:
    return create_access_token({"id": admin_id, "username": username, "role": role, "isAdmin": True})


def hash_password(password: str) -> str:
    """bcrypt hash for seeded accounts; input beyond 72 bytes is ignored by bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8")[:72], bcrypt.gensalt(rounds=12)).decode("utf-8")


def decode_token(token: str) -> Optional[dict]:
    """Claims of a valid token, or None when expired or tampered with."""
    try:
        return jwt.decode(token, jwt_secret(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.info("invalid token: %s", e)
        return None


def require_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> dict:
    if creds is None or not creds.credentials:
        raise AuthError("Access token required", "AUTH_REQUIRED", 401)
    claims = decode_token(creds.credentials)
    if claims is None:
        raise AppError("Invalid or expired token", "AUTH_INVALID", 403)
    return claims


def require_admin(claims: dict = Depends(require_user)) -> dict:
    if not claims.get("isAdmin"):
        raise AppError("Admin access required", "PERMISSION_DENIED", 403)
    return claims


def optional_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> Optional[dict]:
    if creds is None or not creds.credentials:
        return None
    return decode_token(creds.credentials)
