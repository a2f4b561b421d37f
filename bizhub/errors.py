"""
Application errors and database error classification.

Services raise ``AppError`` subclasses; the handlers registered by
``setup_exception_handlers`` render every failure as
``{"error": true, "message": ..., "code": ...}``.

Database driver errors are reduced to the MySQL symbolic names (ER_DUP_ENTRY,
ER_DUP_KEYNAME, ...) whether they come from PyMySQL or from sqlite3, so
callers can decide between "already exists, fine" and "re-raise".
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    code = "SERVER_ERROR"

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": True, "message": self.message, "code": self.code}


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class DuplicateEntryError(AppError):
    status_code = 409
    code = "DUPLICATE_ENTRY"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class EventClosedError(AppError):
    status_code = 400
    code = "EVENT_PAST"


class AuthError(AppError):
    status_code = 401
    code = "AUTH_REQUIRED"


# MySQL server error numbers -> symbolic names
MYSQL_CODES = {
    1045: "ER_ACCESS_DENIED_ERROR",
    1049: "ER_BAD_DB_ERROR",
    1050: "ER_TABLE_EXISTS_ERROR",
    1060: "ER_DUP_FIELDNAME",
    1061: "ER_DUP_KEYNAME",
    1062: "ER_DUP_ENTRY",
    1146: "ER_NO_SUCH_TABLE",
    2003: "ECONNREFUSED",
    2005: "ENOTFOUND",
}

# sqlite3 message fragments -> the same names
_SQLITE_PATTERNS = (
    ("unique constraint failed", "ER_DUP_ENTRY"),
    ("duplicate column name", "ER_DUP_FIELDNAME"),
    ("index", "ER_DUP_KEYNAME"),
    ("table", "ER_TABLE_EXISTS_ERROR"),
    ("no such table", "ER_NO_SUCH_TABLE"),
    ("unable to open database", "ENOTFOUND"),
)


def db_error_code(exc: BaseException) -> str | None:
    """Symbolic error name for a driver or SQLAlchemy exception, or None."""
    orig = getattr(exc, "orig", None) or exc
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return MYSQL_CODES.get(args[0])
    msg = str(orig).lower()
    for fragment, name in _SQLITE_PATTERNS:
        if fragment in ("index", "table"):
            if msg.startswith(fragment) and msg.endswith("already exists"):
                return name
            continue
        if fragment in msg:
            return name
    return None


def is_duplicate_error(exc: BaseException) -> bool:
    return db_error_code(exc) == "ER_DUP_ENTRY"


_STATUS_CODES = {
    400: "VALIDATION_ERROR",
    401: "AUTH_REQUIRED",
    403: "PERMISSION_DENIED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "DUPLICATE_ENTRY",
}


def error_body(message: str, code: str) -> dict:
    return {"error": True, "message": message, "code": code}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _STATUS_CODES.get(exc.status_code, "SERVER_ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), code),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    if errs:
        first = errs[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=error_body(message, "VALIDATION_ERROR"))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception in %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    if is_duplicate_error(exc):
        return JSONResponse(status_code=409, content=error_body("Duplicate entry", "DUPLICATE_ENTRY"))
    return JSONResponse(status_code=500, content=error_body("Internal server error", "SERVER_ERROR"))


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
