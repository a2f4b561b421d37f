# bizhub/services/settings_svc.py
from ..db import get_conn
from ..logs import LogContext
from ..repository import settings_repo
from .utils import now_ts, to_float_safe

# key -> (value, type, description)
DEFAULTS = {
    "site_name": ("Enterprise Room Business Hub", "string", "Site display name"),
    "exchange_rate_usd": ("1500", "number", "NGN per 1 USD"),
    "exchange_rate_gbp": ("1900", "number", "NGN per 1 GBP"),
    "exchange_rate_eur": ("1650", "number", "NGN per 1 EUR"),
    "calculator_default_interest_rate": ("18", "number", "Default loan interest rate (%)"),
    "calculator_default_loan_term": ("12", "number", "Default loan term (months)"),
    "calculator_default_tax_rate": ("7.5", "number", "Default VAT rate (%)"),
}


def ensure_default_settings():
    """Seed missing settings without overwriting existing values."""
    ts = now_ts()
    with get_conn() as conn:
        for key, (value, stype, desc) in DEFAULTS.items():
            if settings_repo.get(conn, key) is None:
                settings_repo.insert(conn, key, value, stype, desc, ts)
        conn.commit()


def typed_value(row: dict):
    if row.get("setting_type") == "number":
        return to_float_safe(row.get("setting_value"))
    if row.get("setting_type") == "boolean":
        return str(row.get("setting_value")).lower() in ("1", "true", "yes")
    return row.get("setting_value")


def get_settings() -> list[dict]:
    with get_conn() as conn:
        return settings_repo.all_settings(conn)


def update_settings(updates: dict, admin_id, log: LogContext) -> list[str]:
    """Update known keys only; unknown keys are ignored and not created."""
    updated = []
    ts = now_ts()
    with get_conn() as conn:
        before = {r["setting_key"]: r["setting_value"] for r in settings_repo.all_settings(conn)}
        for k, v in updates.items():
            if k not in before:
                continue
            if settings_repo.set_value(conn, k, "" if v is None else str(v), admin_id, ts):
                updated.append(k)
        conn.commit()
        after = {r["setting_key"]: r["setting_value"] for r in settings_repo.all_settings(conn)}
    log.set_before({k: before[k] for k in updated})
    log.set_after({k: after[k] for k in updated})
    return updated
