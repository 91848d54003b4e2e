"""Shared FastAPI dependencies

Routers receive their collaborators through these functions so tests can
swap them with app.dependency_overrides.
"""

from typing import Callable

from vod_dashboard.models.catalog import ServerRecord
from vod_dashboard.services.activity_service import ActivityService, get_activity_service
from vod_dashboard.services.server_directory import ServerDirectory, get_server_directory
from vod_dashboard.services.xtream_client import XtreamClient, create_xtream_client

ClientFactory = Callable[[ServerRecord], XtreamClient]


def directory_dependency() -> ServerDirectory:
    return get_server_directory()


def activity_dependency() -> ActivityService:
    return get_activity_service()


def client_factory_dependency() -> ClientFactory:
    return create_xtream_client
