"""PyTest Configuration and Fixtures

Provides shared fixtures for all tests: temporary storage, sample catalog
data and a fake HTTP layer that answers player_api.php requests from memory.
"""

import copy
import pytest
import tempfile
import shutil
from urllib.parse import urlparse, parse_qsl

import requests

from vod_dashboard.models.catalog import ServerRecord, ServerStatus, CatalogItem
from vod_dashboard.services.activity_service import ActivityService
from vod_dashboard.services.server_directory import JsonServerDirectory
from vod_dashboard.services.xtream_client import XtreamClient


class FakeResponse:
    """Minimal stand-in for requests.Response"""

    def __init__(self, status_code=200, payload=None, text=None):
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def json(self):
        if self._text is not None:
            raise ValueError("No JSON object could be decoded")
        return copy.deepcopy(self._payload)


class FakeXtreamHttp:
    """requests-compatible get() serving an in-memory Xtream server

    Attributes:
        calls: Every requested URL, in order
        action_errors: action -> HTTP status code or exception to raise
        failing_stream_ids: get_vod_info ids that answer HTTP 500
        stream_errors: get_vod_info id -> exception raised by get()
        invalid_json_actions: actions whose body is not JSON
    """

    def __init__(self, categories=None, movies=None, server_info=None):
        self.categories = categories if categories is not None else []
        self.movies = movies if movies is not None else []
        self.server_info = server_info if server_info is not None else {
            "user_info": {"username": "user", "auth": 1, "status": "Active"},
            "server_info": {"url": "iptv.example.com", "port": "8080"},
        }
        self.calls = []
        self.action_errors = {}
        self.failing_stream_ids = set()
        self.stream_errors = {}
        self.invalid_json_actions = set()

    def get(self, url, timeout=None, headers=None):
        self.calls.append(url)
        params = dict(parse_qsl(urlparse(url).query))
        action = params.get("action")

        error = self.action_errors.get(action)
        if isinstance(error, Exception):
            raise error
        if error is not None:
            return FakeResponse(status_code=error)
        if action in self.invalid_json_actions:
            return FakeResponse(text="<html>Service Unavailable</html>")

        if action == "get_server_info":
            return FakeResponse(payload=self.server_info)
        if action == "get_vod_categories":
            return FakeResponse(payload=self.categories)
        if action == "get_vod_streams":
            if not isinstance(self.movies, list):
                return FakeResponse(payload=self.movies)
            category_id = params.get("category_id")
            movies = [
                movie for movie in self.movies
                if not category_id or str(movie.get("category_id")) == category_id
            ]
            return FakeResponse(payload=movies)
        if action == "get_vod_info":
            stream_id = int(params["stream_id"])
            if stream_id in self.stream_errors:
                raise self.stream_errors[stream_id]
            if stream_id in self.failing_stream_ids:
                return FakeResponse(status_code=500)
            return FakeResponse(payload=self._vod_info(stream_id))

        return FakeResponse(status_code=404)

    def _vod_info(self, stream_id):
        for movie in self.movies:
            if int(movie.get("stream_id", 0)) == stream_id:
                movie_data = {
                    key: movie[key]
                    for key in ("stream_id", "name", "added", "category_id", "container_extension")
                    if key in movie
                }
                info = {
                    "plot": movie.get("plot", ""),
                    "director": movie.get("director", ""),
                    "cast": movie.get("actors", ""),
                    "genre": movie.get("genre", ""),
                    "rating": movie.get("rating", ""),
                    "duration": "01:45:00",
                }
                return {"info": info, "movie_data": movie_data}
        return {"info": [], "movie_data": []}


@pytest.fixture
def temp_dir():
    """Provide temporary directory for testing

    Creates a temporary directory that is automatically cleaned up
    after the test completes.
    """
    path = tempfile.mkdtemp()

    yield path

    try:
        shutil.rmtree(path)
    except OSError:
        pass


@pytest.fixture
def server_directory(temp_dir):
    """Provide JsonServerDirectory backed by a temporary directory"""
    return JsonServerDirectory(f"{temp_dir}/servers")


@pytest.fixture
def activity_service(temp_dir):
    """Provide ActivityService backed by a temporary directory"""
    return ActivityService(f"{temp_dir}/activity", f"{temp_dir}/exports")


@pytest.fixture
def sample_server():
    """Provide sample ServerRecord for testing"""
    return ServerRecord(
        id="a1b2c3d4",
        name="Test Provider",
        url="http://iptv.example.com:8080",
        username="user",
        password="secret",
        status=ServerStatus.UNKNOWN,
    )


@pytest.fixture
def remote_categories():
    """Categories as returned by get_vod_categories"""
    return [
        {"category_id": "1", "category_name": "Action", "parent_id": 0},
        {"category_id": "2", "category_name": "Drama", "parent_id": 0},
    ]


@pytest.fixture
def remote_movies():
    """Movies as returned by get_vod_streams"""
    return [
        {
            "stream_id": 101,
            "name": "Alpha",
            "added": "2023-01-01",
            "category_id": "1",
            "container_extension": "mkv",
            "rating": "7.5",
            "plot": "A squad of explorers crosses the frozen north.",
            "director": "Jane Doe",
        },
        {
            "stream_id": 102,
            "name": "Beta",
            "added": "2023-06-01",
            "category_id": "2",
            "container_extension": "mp4",
            "rating": "6",
        },
        {
            "stream_id": 103,
            "name": "Gamma",
            "added": "2023-03-01",
            "category_id": "1",
            "container_extension": "mp4",
        },
    ]


@pytest.fixture
def fake_http(remote_categories, remote_movies):
    """Provide a fake Xtream server with three movies in two categories"""
    return FakeXtreamHttp(categories=remote_categories, movies=remote_movies)


@pytest.fixture
def xtream_client(sample_server, fake_http):
    """Provide XtreamClient talking to the fake server"""
    return XtreamClient(sample_server, http=fake_http)


@pytest.fixture
def scenario_movies():
    """Alpha (2023-01-01), Beta (2023-06-01), Gamma (2023-03-01)"""
    return [
        CatalogItem(stream_id=1, name="Alpha", added="2023-01-01", category_id="1"),
        CatalogItem(stream_id=2, name="Beta", added="2023-06-01", category_id="2"),
        CatalogItem(stream_id=3, name="Gamma", added="2023-03-01", category_id="1"),
    ]


@pytest.fixture
def connection_error():
    """Network failure whose message embeds the credentials, as requests does"""
    return requests.ConnectionError(
        "HTTPConnectionPool(host='iptv.example.com', port=8080): Max retries exceeded "
        "with url: /player_api.php?username=user&password=secret&action=get_server_info"
    )
