"""
FastAPI app entry point aggregating per-domain routers under bizhub/routes.
Run as `uvicorn bizhub.api:app`.
"""
from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import APP_NAME, cors_origins, log_level, templates_dir, uploads_dir
from .errors import setup_exception_handlers
from .logs import LogContext, ensure_log_schema
from .services.settings_svc import ensure_default_settings

logging.basicConfig(level=log_level(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title=APP_NAME, version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)


@app.on_event("startup")
def on_startup():
    ensure_log_schema()
    try:
        ensure_default_settings()
    except Exception as e:
        LogContext("STARTUP").write("ERROR", f"ensure_default_settings_failed: {e}")
        raise


# Include routers (split by business domain)
from .routes import base as base_routes
from .routes import users as users_routes
from .routes import businesses as businesses_routes
from .routes import events as events_routes
from .routes import blog as blog_routes
from .routes import directories as directories_routes
from .routes import home as home_routes
from .routes import tools as tools_routes
from .routes import newsletter as newsletter_routes
from .routes import templates as templates_routes
from .routes import dashboard as dashboard_routes
from .routes import settings as settings_routes
from .routes import logs as logs_routes
from .routes import maintenance as maintenance_routes

app.include_router(base_routes.router)
app.include_router(users_routes.router)
app.include_router(businesses_routes.router)
app.include_router(events_routes.router)
app.include_router(blog_routes.router)
app.include_router(directories_routes.router)
app.include_router(home_routes.router)
app.include_router(tools_routes.router)
app.include_router(newsletter_routes.router)
app.include_router(templates_routes.router)
app.include_router(dashboard_routes.router)
app.include_router(settings_routes.router)
app.include_router(logs_routes.router)
app.include_router(maintenance_routes.router)

# Static directories are only served when present on disk
for _prefix, _path in (("/uploads", uploads_dir()), ("/templates", templates_dir())):
    if os.path.isdir(_path):
        app.mount(_prefix, StaticFiles(directory=_path), name=_prefix.strip("/"))
    else:
        logger.info(f"{_path} not found, {_prefix} not served")
