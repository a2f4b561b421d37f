from __future__ import annotations

# bizhub/config.py
import logging
import os

import yaml
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
CONFIG_YAML = os.path.join(PROJECT_ROOT, "config.yaml")

APP_NAME = "bizhub-api"
DEFAULT_JWT_SECRET = "bizhub-dev-secret-change-me"
DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

_YAML_KEYS = (
    "database_url",
    "db_path",
    "test_db_path",
    "cors_origins",
    "uploads_dir",
    "templates_dir",
    "jwt_secret",
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def read_config_yaml() -> dict:
    """Optional config.yaml at the project root; unknown keys are ignored."""
    if not os.path.exists(CONFIG_YAML):
        return {}
    try:
        with open(CONFIG_YAML, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("config.yaml unreadable, ignoring: %s", e)
        return {}
    return {k: cfg[k] for k in _YAML_KEYS if cfg.get(k) not in (None, "")}


def jwt_secret() -> str:
    secret = _env("JWT_SECRET") or str(read_config_yaml().get("jwt_secret", ""))
    if not secret:
        logger.warning("JWT_SECRET not set, using the development secret")
        return DEFAULT_JWT_SECRET
    return secret


def cors_origins() -> list[str]:
    raw = _env("CORS_ORIGINS")
    if raw:
        return [o.strip() for o in raw.split(",") if o.strip()]
    cfg = read_config_yaml().get("cors_origins")
    if isinstance(cfg, list) and cfg:
        return [str(o) for o in cfg]
    return list(DEFAULT_CORS_ORIGINS)


def uploads_dir() -> str:
    return _env("UPLOADS_DIR") or str(read_config_yaml().get("uploads_dir") or os.path.join(PROJECT_ROOT, "uploads"))


def templates_dir() -> str:
    return _env("TEMPLATES_DIR") or str(read_config_yaml().get("templates_dir") or os.path.join(PROJECT_ROOT, "templates"))


def log_level() -> str:
    return _env("LOG_LEVEL", "INFO").upper()
