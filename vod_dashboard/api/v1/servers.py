"""Server Endpoints

GET    /api/v1/servers                   - List servers
POST   /api/v1/servers                   - Add a server (probes its status)
GET    /api/v1/servers/{server_id}       - Get one server
PUT    /api/v1/servers/{server_id}       - Update a server
DELETE /api/v1/servers/{server_id}       - Delete a server
POST   /api/v1/servers/{server_id}/check - Re-check and store server status
GET    /api/v1/servers/{server_id}/stats - Category and movie counts
"""

import logging

from fastapi import APIRouter, Request, Depends, status

from vod_dashboard.api.v1.dependencies import (
    ClientFactory,
    directory_dependency,
    activity_dependency,
    client_factory_dependency,
)
from vod_dashboard.api.v1.models import (
    ApiResponse,
    ErrorResponse,
    ServerCreateRequest,
    ServerUpdateRequest,
)
from vod_dashboard.core.config import get_config
from vod_dashboard.core.errors import DashboardError, NotFound
from vod_dashboard.services.activity_service import ActivityService
from vod_dashboard.services.server_directory import ServerDirectory
from vod_dashboard.services.status_service import probe_server, refresh_server_status

logger = logging.getLogger(__name__)
router = APIRouter()

_ERROR_RESPONSES = {
    400: {"description": "Invalid server ID or payload", "model": ErrorResponse},
    404: {"description": "Server not found", "model": ErrorResponse},
}


@router.get(
    "/servers",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="List Servers",
    tags=["Servers"]
)
async def list_servers(
    directory: ServerDirectory = Depends(directory_dependency),
) -> ApiResponse:
    """List all configured servers, sorted by name"""
    servers = directory.list_servers()
    return ApiResponse(
        success=True,
        data=[server.to_dict() for server in servers],
        total=len(servers)
    )


@router.post(
    "/servers",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Add Server",
    description="Store a new server. Unless disabled in configuration, the server "
                "is probed with get_server_info and marked online or offline.",
    responses={400: _ERROR_RESPONSES[400]},
    tags=["Servers"]
)
async def create_server(
    request: Request,
    body: ServerCreateRequest,
    directory: ServerDirectory = Depends(directory_dependency),
    activity: ActivityService = Depends(activity_dependency),
    client_factory: ClientFactory = Depends(client_factory_dependency),
) -> ApiResponse:
    """Create a server record and test the connection"""
    request_id = getattr(request.state, "request_id", "unknown")

    server = directory.create_server(
        name=body.name,
        url=body.url,
        username=body.username,
        password=body.password,
        active=body.active,
    )

    if get_config().xtream.check_on_create:
        server_status, checked_at = await probe_server(server, client_factory(server))
        server = directory.update_server(
            server.id, status=server_status, last_checked=checked_at
        ) or server

    logger.info(f"Server created {request_id}: {server.id} status={server.status.value}")
    activity.log_success(
        "create_server",
        f"Server {server.name} created successfully",
        server.id
    )

    return ApiResponse(
        success=True,
        data=server.to_dict(),
        message="Server added successfully"
    )


@router.get(
    "/servers/{server_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Get Server",
    responses=_ERROR_RESPONSES,
    tags=["Servers"]
)
async def get_server(
    server_id: str,
    directory: ServerDirectory = Depends(directory_dependency),
) -> ApiResponse:
    server = directory.require_server(server_id)
    return ApiResponse(success=True, data=server.to_dict())


@router.put(
    "/servers/{server_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Update Server",
    responses=_ERROR_RESPONSES,
    tags=["Servers"]
)
async def update_server(
    server_id: str,
    body: ServerUpdateRequest,
    directory: ServerDirectory = Depends(directory_dependency),
    activity: ActivityService = Depends(activity_dependency),
) -> ApiResponse:
    """Apply a partial update to a server"""
    directory.require_server(server_id)

    updated = directory.update_server(server_id, **body.changes())
    if updated is None:
        raise NotFound("Server not found")

    activity.log_success(
        "update_server",
        f"Server {updated.name} updated successfully",
        updated.id
    )
    return ApiResponse(
        success=True,
        data=updated.to_dict(),
        message="Server updated successfully"
    )


@router.delete(
    "/servers/{server_id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Delete Server",
    responses=_ERROR_RESPONSES,
    tags=["Servers"]
)
async def delete_server(
    server_id: str,
    directory: ServerDirectory = Depends(directory_dependency),
    activity: ActivityService = Depends(activity_dependency),
) -> ApiResponse:
    server = directory.require_server(server_id)
    directory.delete_server(server.id)

    activity.log_success(
        "delete_server",
        f"Server {server.name} deleted successfully",
        server.id
    )
    return ApiResponse(success=True, message="Server deleted successfully")


@router.post(
    "/servers/{server_id}/check",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Check Server Status",
    description="Probe the server with get_server_info and store online/offline "
                "together with the check time.",
    responses=_ERROR_RESPONSES,
    tags=["Servers"]
)
async def check_server(
    server_id: str,
    directory: ServerDirectory = Depends(directory_dependency),
    activity: ActivityService = Depends(activity_dependency),
    client_factory: ClientFactory = Depends(client_factory_dependency),
) -> ApiResponse:
    server = directory.require_server(server_id)
    updated = await refresh_server_status(directory, server.id, client_factory(server))

    activity.log_success(
        "check_server",
        f"Server {updated.name} is {updated.status.value}",
        updated.id
    )
    return ApiResponse(success=True, data=updated.to_dict())


@router.get(
    "/servers/{server_id}/stats",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="Server Statistics",
    responses={**_ERROR_RESPONSES, 502: {"description": "Remote server unavailable", "model": ErrorResponse}},
    tags=["Servers"]
)
async def server_stats(
    server_id: str,
    directory: ServerDirectory = Depends(directory_dependency),
    activity: ActivityService = Depends(activity_dependency),
    client_factory: ClientFactory = Depends(client_factory_dependency),
):
    server = directory.require_server(server_id)
    client = client_factory(server)

    try:
        stats = await client.get_server_stats()
    except DashboardError as e:
        activity.log_error("fetch_stats", e.message, server.id)
        raise

    return ApiResponse(success=True, data=stats.to_dict())
