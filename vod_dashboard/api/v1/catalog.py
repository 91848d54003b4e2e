"""Catalog Endpoints

GET /api/v1/categories - VOD categories of a server
GET /api/v1/movies     - Movie listing with search/filter/sort, or one movie's details
"""

import logging
from typing import Optional, Literal

from fastapi import APIRouter, Request, Query, Depends

from vod_dashboard.api.v1.dependencies import (
    ClientFactory,
    directory_dependency,
    activity_dependency,
    client_factory_dependency,
)
from vod_dashboard.api.v1.models import ApiResponse, ErrorResponse
from vod_dashboard.core.config import get_config
from vod_dashboard.core.errors import DashboardError, ValidationError
from vod_dashboard.services.activity_service import ActivityService
from vod_dashboard.services.catalog_search import apply_pipeline, parse_date_filter
from vod_dashboard.services.server_directory import ServerDirectory

logger = logging.getLogger(__name__)
router = APIRouter()

_ERROR_RESPONSES = {
    400: {"description": "Invalid parameters", "model": ErrorResponse},
    404: {"description": "Server or movie not found", "model": ErrorResponse},
    502: {"description": "Remote server unavailable or returned invalid data", "model": ErrorResponse},
}


@router.get(
    "/categories",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="List Categories",
    description="Fetch the VOD categories of a server, in the order the server returns them.",
    responses=_ERROR_RESPONSES,
    tags=["Catalog"]
)
async def list_categories(
    request: Request,
    server_id: str = Query(
        ...,
        alias="serverId",
        min_length=1,
        description="Server identifier"
    ),
    directory: ServerDirectory = Depends(directory_dependency),
    activity: ActivityService = Depends(activity_dependency),
    client_factory: ClientFactory = Depends(client_factory_dependency),
) -> ApiResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    server = directory.require_server(server_id)
    client = client_factory(server)

    try:
        categories = await client.get_categories()
    except DashboardError as e:
        logger.error(f"Failed to fetch categories {request_id}: {e.message}")
        activity.log_error("fetch_categories", e.message, server.id)
        raise

    activity.log_success(
        "fetch_categories",
        f"Successfully fetched {len(categories)} categories from server {server.name}",
        server.id
    )
    return ApiResponse(
        success=True,
        data=[category.to_dict() for category in categories],
        total=len(categories)
    )


@router.get(
    "/movies",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    summary="List or Search Movies",
    description="Fetch a server's movies and optionally search, filter by date and sort them. "
                "With movieId, returns that movie's details instead.",
    responses=_ERROR_RESPONSES,
    tags=["Catalog"]
)
async def list_movies(
    request: Request,
    server_id: str = Query(
        ...,
        alias="serverId",
        min_length=1,
        description="Server identifier"
    ),
    query: Optional[str] = Query(
        None,
        max_length=200,
        description="Fuzzy search text (name, title, plot, genre, director, actors)"
    ),
    category_id: Optional[str] = Query(
        None,
        alias="categoryId",
        description="Restrict to one category"
    ),
    from_date: Optional[str] = Query(
        None,
        alias="fromDate",
        description="Only movies added on or after this ISO-8601 date/datetime",
        examples=["2024-01-01"]
    ),
    sort_by: Optional[Literal["name", "added", "rating"]] = Query(
        None,
        alias="sortBy",
        description="Sort field"
    ),
    sort_order: Literal["asc", "desc"] = Query(
        "asc",
        alias="sortOrder",
        description="Sort direction"
    ),
    movie_id: Optional[int] = Query(
        None,
        alias="movieId",
        ge=1,
        description="Return details for this stream id"
    ),
    directory: ServerDirectory = Depends(directory_dependency),
    activity: ActivityService = Depends(activity_dependency),
    client_factory: ClientFactory = Depends(client_factory_dependency),
) -> ApiResponse:
    request_id = getattr(request.state, "request_id", "unknown")

    # Reject bad filters before any remote call
    if from_date and parse_date_filter(from_date) is None:
        raise ValidationError("fromDate must be an ISO-8601 date or datetime")

    server = directory.require_server(server_id)
    client = client_factory(server)

    if movie_id is not None:
        try:
            movie = await client.get_movie_info(movie_id)
        except DashboardError as e:
            activity.log_error("fetch_movie", e.message, server.id)
            raise
        return ApiResponse(success=True, data=movie.to_dict())

    try:
        movies = await client.get_movies(category_id)
    except DashboardError as e:
        logger.error(f"Failed to fetch movies {request_id}: {e.message}")
        activity.log_error("fetch_movies", e.message, server.id)
        raise

    movies = apply_pipeline(
        movies,
        query=query,
        category_id=category_id,
        from_date=from_date,
        sort_by=sort_by,
        sort_order=sort_order,
        threshold=get_config().search.threshold,
    )

    logger.info(f"Movies {request_id}: {len(movies)} results from server {server.name}")
    activity.log_success(
        "fetch_movies",
        f"Successfully fetched {len(movies)} movies from server {server.name}",
        server.id
    )
    return ApiResponse(
        success=True,
        data=[movie.to_dict() for movie in movies],
        total=len(movies)
    )
