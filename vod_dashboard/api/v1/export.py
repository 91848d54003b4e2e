"""Export Endpoints

POST /api/v1/export          - aria2c commands and export records as JSON
POST /api/v1/export/file     - aria2c commands as a downloadable text file
GET  /api/v1/export/history  - Previous exports
"""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Request, Query, Depends
from fastapi.responses import PlainTextResponse

from vod_dashboard.api.v1.dependencies import (
    ClientFactory,
    directory_dependency,
    activity_dependency,
    client_factory_dependency,
)
from vod_dashboard.api.v1.models import ApiResponse, ErrorResponse, ExportRequest
from vod_dashboard.services.activity_service import ActivityService
from vod_dashboard.services.export_service import (
    ExportResult,
    BULK_EXPORT_FILENAME,
    export_movies,
    export_filename,
    render_commands,
)
from vod_dashboard.services.server_directory import ServerDirectory

logger = logging.getLogger(__name__)
router = APIRouter()

_ERROR_RESPONSES = {
    400: {"description": "Invalid server ID or movie IDs", "model": ErrorResponse},
    404: {"description": "Server not found", "model": ErrorResponse},
}


async def _run_export(
    body: ExportRequest,
    directory: ServerDirectory,
    activity: ActivityService,
    client_factory: ClientFactory,
) -> ExportResult:
    """Resolve the requested movies, log the outcome and store the export"""
    server = directory.require_server(body.server_id)
    client = client_factory(server)

    result = await export_movies(client, body.movie_ids)

    activity.log_success(
        "export_movies",
        f"Successfully generated export data for {result.exported} of "
        f"{result.requested} movies from server {server.name}",
        server.id
    )

    if result.commands:
        activity.record_export(
            title=f"Export from {server.name}",
            links=result.command_lines,
            server_id=server.id
        )

    return result


@router.post(
    "/export",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Export Movies",
    description="Resolve the given movie ids and generate aria2c commands. Ids that "
                "cannot be resolved are left out of the commands and reported in "
                "results with success=false.",
    responses=_ERROR_RESPONSES,
    tags=["Export"]
)
async def export(
    request: Request,
    body: ExportRequest,
    directory: ServerDirectory = Depends(directory_dependency),
    activity: ActivityService = Depends(activity_dependency),
    client_factory: ClientFactory = Depends(client_factory_dependency),
) -> ApiResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(f"Export request {request_id}: {len(body.movie_ids)} movies")

    result = await _run_export(body, directory, activity, client_factory)

    return ApiResponse(
        success=True,
        data=result.to_dict(),
        message=f"Exported {result.exported} of {result.requested} movies"
    )


@router.post(
    "/export/file",
    response_class=PlainTextResponse,
    summary="Download aria2c Commands",
    description="Same as /export but returns the commands as a text file, one per line. "
                "The X-Export-* headers report how many ids were requested and exported.",
    responses=_ERROR_RESPONSES,
    tags=["Export"]
)
async def export_file(
    body: ExportRequest,
    directory: ServerDirectory = Depends(directory_dependency),
    activity: ActivityService = Depends(activity_dependency),
    client_factory: ClientFactory = Depends(client_factory_dependency),
) -> PlainTextResponse:
    result = await _run_export(body, directory, activity, client_factory)

    if len(body.movie_ids) == 1 and result.commands:
        filename = export_filename(result.commands[0].movie_name)
    else:
        filename = export_filename()

    ascii_name = filename.encode("ascii", "ignore").decode("ascii") or BULK_EXPORT_FILENAME
    headers = {
        "Content-Disposition": (
            f'attachment; filename="{ascii_name}"; '
            f"filename*=UTF-8''{quote(filename)}"
        ),
        "X-Export-Requested": str(result.requested),
        "X-Export-Exported": str(result.exported),
        "X-Export-Failed-Ids": ",".join(str(movie_id) for movie_id in result.failed_ids),
    }
    return PlainTextResponse(content=render_commands(result.commands), headers=headers)


@router.get(
    "/export/history",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Export History",
    tags=["Export"]
)
async def export_history(
    server_id: Optional[str] = Query(
        None,
        alias="serverId",
        description="Only exports from this server"
    ),
    limit: int = Query(
        50,
        ge=1,
        le=500,
        description="Maximum number of records"
    ),
    activity: ActivityService = Depends(activity_dependency),
) -> ApiResponse:
    records = activity.list_exports(limit=limit, server_id=server_id)
    return ApiResponse(
        success=True,
        data=[record.to_dict() for record in records],
        total=len(records)
    )
