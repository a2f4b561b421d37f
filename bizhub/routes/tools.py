from fastapi import APIRouter

from ..services import tools_svc

router = APIRouter()


@router.get("/api/tools/settings")
def api_tool_settings():
    return tools_svc.tool_settings()


@router.get("/api/tools/custom")
def api_tools_custom():
    return {"tools": tools_svc.custom_tools()}


@router.get("/api/tools/builtin")
def api_tools_builtin():
    return {"tools": tools_svc.builtin_tools()}
