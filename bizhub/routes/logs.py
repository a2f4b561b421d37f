from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth import require_admin
from ..logs import search_logs

router = APIRouter()


@router.get("/api/admin/logs/search")
def api_logs_search(
    page: int = 1,
    size: int = 20,
    action: str | None = None,
    query: str | None = None,
    ts_from: str | None = None,
    ts_to: str | None = None,
    _admin: dict = Depends(require_admin),
):
    total, items = search_logs(query, action, ts_from, ts_to, page, min(max(size, 1), 200))
    return {"total": total, "items": items}
