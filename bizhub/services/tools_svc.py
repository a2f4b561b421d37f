from __future__ import annotations

import json

from ..db import get_conn
from ..repository import settings_repo
from .settings_svc import typed_value

RATE_PREFIX = "exchange_rate_"
DEFAULT_PREFIX = "calculator_default_"


def tool_settings() -> dict:
    with get_conn() as conn:
        rows = settings_repo.by_prefixes(conn, RATE_PREFIX, DEFAULT_PREFIX)
    rates, defaults = {}, {}
    for r in rows:
        key = r["setting_key"]
        if key.startswith(RATE_PREFIX):
            rates[key[len(RATE_PREFIX):]] = typed_value(r)
        elif key.startswith(DEFAULT_PREFIX):
            defaults[key[len(DEFAULT_PREFIX):]] = typed_value(r)
    return {"exchange_rates": rates, "defaults": defaults}


def _decode_inputs(tool: dict) -> dict:
    raw = tool.get("inputs")
    if isinstance(raw, str) and raw.strip().startswith("["):
        try:
            tool["inputs"] = json.loads(raw)
        except json.JSONDecodeError:
            pass
    return tool


def custom_tools() -> list[dict]:
    with get_conn() as conn:
        return [_decode_inputs(t) for t in settings_repo.custom_tools(conn)]


def builtin_tools() -> list[dict]:
    with get_conn() as conn:
        return settings_repo.builtin_tools(conn)
