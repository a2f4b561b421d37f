import datetime as dt
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

from .. import __version__
from ..config import APP_NAME
from ..db import fetch_scalar, get_conn

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/")
def index():
    return {
        "message": "Enterprise Room Business Hub API",
        "version": __version__,
        "status": "running",
        "endpoints": {
            "users": "/api/users",
            "businesses": "/api/businesses",
            "events": "/api/events",
            "blog": "/api/blog",
            "directories": "/api/directories",
            "templates": "/api/templates",
            "tools": "/api/tools",
            "admin": "/api/admin",
        },
    }


@router.get("/api/health")
def health():
    try:
        with get_conn() as conn:
            fetch_scalar(conn, "SELECT 1 AS test")
    except DBAPIError as e:
        logger.error(f"health check failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"status": "unhealthy", "database": "disconnected", "error": str(e.orig or e)},
        )
    return {
        "status": "healthy",
        "database": "connected",
        "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
    }


@router.get("/version")
def version():
    return {"app": APP_NAME, "version": __version__}
