from fastapi import APIRouter

from ..services import dashboard_svc

router = APIRouter()


@router.get("/api/stats")
def api_stats():
    return dashboard_svc.public_stats()


@router.get("/api/featured")
def api_featured():
    return dashboard_svc.featured_content()


@router.get("/api/testimonials")
def api_testimonials():
    return {"testimonials": dashboard_svc.testimonials()}
