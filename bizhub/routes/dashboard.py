from fastapi import APIRouter, Depends

from ..auth import require_admin
from ..services import dashboard_svc

router = APIRouter()


@router.get("/api/admin/dashboard/stats")
def api_dashboard_stats(_admin: dict = Depends(require_admin)):
    return dashboard_svc.dashboard_stats()
