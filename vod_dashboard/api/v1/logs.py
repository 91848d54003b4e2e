"""Activity Log Endpoint

GET /api/v1/logs - Most recent activity log entries
"""

from typing import Optional

from fastapi import APIRouter, Query, Depends

from vod_dashboard.api.v1.dependencies import activity_dependency
from vod_dashboard.api.v1.models import ApiResponse
from vod_dashboard.services.activity_service import ActivityService

router = APIRouter()


@router.get(
    "/logs",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Activity Log",
    description="Most recent activity log entries, newest first.",
    tags=["Logs"]
)
async def list_logs(
    server_id: Optional[str] = Query(
        None,
        alias="serverId",
        description="Only entries for this server"
    ),
    limit: int = Query(
        100,
        ge=1,
        le=1000,
        description="Maximum number of entries"
    ),
    activity: ActivityService = Depends(activity_dependency),
) -> ApiResponse:
    entries = activity.list_entries(limit=limit, server_id=server_id)
    return ApiResponse(
        success=True,
        data=[entry.to_dict() for entry in entries],
        total=len(entries)
    )
