"""API Request/Response Models

Pydantic models for API endpoints. Every JSON endpoint answers with the
ApiResponse envelope: a success flag, data on success and a human-readable
error on failure.
"""

from typing import Optional, Any, Dict, List
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, ConfigDict

from vod_dashboard.core.errors import ValidationError
from vod_dashboard.models.catalog import ServerStatus
from vod_dashboard.services.server_directory import normalize_server_url


class ApiResponse(BaseModel):
    """Standard response envelope"""
    success: bool = Field(
        ...,
        description="Whether the request was successful"
    )
    data: Optional[Any] = Field(
        None,
        description="Payload on success"
    )
    error: Optional[str] = Field(
        None,
        description="Human-readable error message on failure"
    )
    message: Optional[str] = Field(
        None,
        description="Human-readable status message",
        examples=["Server added successfully"]
    )
    total: Optional[int] = Field(
        None,
        description="Number of items in data, for list endpoints"
    )


class ErrorResponse(BaseModel):
    """Error envelope returned by the exception handlers"""
    success: bool = False
    error: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Server not found"]
    )
    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["not_found"]
    )
    request_id: Optional[str] = None


def _check_url(v: str) -> str:
    try:
        return normalize_server_url(v)
    except ValidationError as e:
        raise ValueError(e.message)


class ServerCreateRequest(BaseModel):
    """Request model for POST /api/v1/servers"""
    name: str = Field(
        ...,
        description="Display name",
        min_length=2,
        max_length=200,
        examples=["Home provider"]
    )
    url: str = Field(
        ...,
        description="Base URL of the Xtream server",
        max_length=2048,
        examples=["http://iptv.example.com:8080"]
    )
    username: str = Field(
        ...,
        description="Xtream username",
        min_length=1,
        max_length=255
    )
    password: str = Field(
        ...,
        description="Xtream password",
        min_length=1,
        max_length=255
    )
    active: bool = Field(
        True,
        description="Whether the server is in use"
    )

    @field_validator('name', 'username')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Value cannot be blank')
        return v.strip()

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format and strip the trailing slash"""
        return _check_url(v)


class ServerUpdateRequest(BaseModel):
    """Request model for PUT /api/v1/servers/{server_id} (partial update)"""
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    url: Optional[str] = Field(None, max_length=2048)
    username: Optional[str] = Field(None, min_length=1, max_length=255)
    password: Optional[str] = Field(None, min_length=1, max_length=255)
    active: Optional[bool] = None
    status: Optional[ServerStatus] = None

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_url(v)

    def changes(self) -> Dict[str, Any]:
        """Fields that were actually sent"""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class ExportRequest(BaseModel):
    """Request model for POST /api/v1/export and /api/v1/export/file"""
    server_id: str = Field(
        ...,
        alias="serverId",
        min_length=1,
        description="Server the movies belong to"
    )
    movie_ids: List[int] = Field(
        ...,
        alias="movieIds",
        min_length=1,
        max_length=1000,
        description="Stream ids to export",
        examples=[[101, 102]]
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "serverId": "3f2b9c0d1e4a4b6f8a7c5d2e1f0a9b8c",
                "movieIds": [101, 102, 103]
            }
        }
    )

    @field_validator('movie_ids')
    @classmethod
    def validate_movie_ids(cls, v: List[int]) -> List[int]:
        if any(movie_id <= 0 for movie_id in v):
            raise ValueError('Movie IDs must be positive integers')
        return v


class HealthResponse(BaseModel):
    """Response model for GET /api/v1/health"""
    status: str = Field(
        ...,
        description="healthy or unhealthy",
        examples=["healthy"]
    )
    timestamp: datetime
    version: str
    storage: Dict[str, Any] = Field(
        default_factory=dict,
        description="Storage status (connected flag, server count)"
    )
