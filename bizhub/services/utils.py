from __future__ import annotations

# bizhub/services/utils.py
import datetime as dt
import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def now_ts() -> str:
    return dt.datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def today_str() -> str:
    return dt.date.today().isoformat()


def to_date(v) -> dt.date | None:
    """DATE columns come back as date objects from MySQL and as text from SQLite."""
    if v is None or v == "":
        return None
    if isinstance(v, dt.datetime):
        return v.date()
    if isinstance(v, dt.date):
        return v
    try:
        return dt.date.fromisoformat(str(v)[:10])
    except ValueError:
        return None


def to_int_safe(x, default=None):
    try:
        return int(x)
    except (TypeError, ValueError):
        return default


def to_float_safe(x, default=None):
    try:
        return float(x)
    except (TypeError, ValueError):
        return default


def clean_str(v) -> str | None:
    """Strip strings; blank becomes None."""
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def clamp_limit(limit, default_limit: int, max_limit: int = 500) -> int:
    lim = to_int_safe(limit, default_limit) or default_limit
    return min(max(lim, 1), max_limit)


def page_params(page, limit, default_limit: int, max_limit: int = 500) -> tuple[int, int, int]:
    """(page, limit, offset) with out-of-range values clamped."""
    p = max(to_int_safe(page, 1) or 1, 1)
    lim = clamp_limit(limit, default_limit, max_limit)
    return p, lim, (p - 1) * lim


def pagination(page: int, limit: int, total: int) -> dict:
    pages = (total + limit - 1) // limit if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": pages,
        "has_next": page < pages,
        "has_prev": page > 1,
    }


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_RE.match(email) is not None
