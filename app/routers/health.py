# app/routers/health.py

from fastapi import APIRouter, Depends
from starlette.status import HTTP_200_OK
import logging

from app.lib.connection_registry import ConnectionRegistry
from app.lib.dependencies import get_http_connection_registry

router = APIRouter(tags=["Healthz"])


@router.get(
    "/healthz",
    status_code=HTTP_200_OK,
    summary="Health Check",
    response_description="Health Status",
)
async def healthz(
    registry: ConnectionRegistry = Depends(get_http_connection_registry),
):
    logging.getLogger("healthz").info("Health check endpoint called")
    return {
        "status": "running",
        "message": "Service is (probably) healthy. Well; at least this endpoint works.",
        "data": {
            "onlineUsers": len(await registry.online_users()),
            "sessions": await registry.session_count(),
        },
    }
