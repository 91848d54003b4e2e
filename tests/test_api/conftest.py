"""Pytest configuration for API tests"""

import pytest
import sys
from pathlib import Path

from fastapi.testclient import TestClient

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from vod_dashboard.api.v1.dependencies import client_factory_dependency
from vod_dashboard.core.config import (
    Config,
    StorageConfig,
    LoggingConfig,
    get_config,
    set_config,
)
from vod_dashboard.main import app
from vod_dashboard.services.xtream_client import XtreamClient


@pytest.fixture
def test_config(temp_dir):
    """Install a configuration pointing at temporary storage

    The previous global configuration is restored afterwards.
    """
    original = get_config()
    config = Config(
        storage=StorageConfig(data_directory=temp_dir),
        logging=LoggingConfig(file=str(Path(temp_dir) / "logs" / "test.log")),
    )
    set_config(config)

    yield config

    set_config(original)


@pytest.fixture
def client(test_config, fake_http):
    """Create test client whose Xtream clients talk to the fake server"""
    app.dependency_overrides[client_factory_dependency] = (
        lambda: (lambda server: XtreamClient(server, http=fake_http))
    )

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def server_id(client):
    """Create a server through the API and return its id"""
    response = client.post("/api/v1/servers", json={
        "name": "Test Provider",
        "url": "http://iptv.example.com:8080/",
        "username": "user",
        "password": "secret",
    })
    assert response.status_code == 201
    return response.json()["data"]["id"]
