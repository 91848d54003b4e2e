"""Health Check Endpoint

GET /api/v1/health - Returns server health status
"""

import logging
from datetime import datetime
from typing import Dict, Any

from fastapi import APIRouter, Request, Depends

from vod_dashboard.api.v1.dependencies import directory_dependency
from vod_dashboard.api.v1.models import HealthResponse
from vod_dashboard.services.server_directory import ServerDirectory

logger = logging.getLogger(__name__)
router = APIRouter()

VERSION = "1.0.0"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Returns the health status of the dashboard and its storage",
    tags=["Health"]
)
async def health_check(
    request: Request,
    directory: ServerDirectory = Depends(directory_dependency),
) -> HealthResponse:
    """Health check endpoint

    Returns:
        HealthResponse with current server status
    """
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(f"Health check request {request_id}")

    storage_status: Dict[str, Any] = {
        "connected": False,
        "servers": 0
    }

    try:
        storage_status["servers"] = len(directory.list_servers())
        storage_status["connected"] = True
    except OSError as e:
        logger.error(f"Storage health check failed: {e}")
        storage_status["error"] = str(e)

    return HealthResponse(
        status="healthy" if storage_status["connected"] else "unhealthy",
        timestamp=datetime.now(),
        version=VERSION,
        storage=storage_status
    )
