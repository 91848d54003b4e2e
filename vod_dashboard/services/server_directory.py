"""Server Directory

CRUD store for IPTV server credential records.

ServerDirectory is the storage contract (list/get/create/update/delete by id);
JsonServerDirectory implements it with one JSON file per server:

    {data_directory}/servers/
      {server_id}.json

Every read returns a fresh ServerRecord, so callers get a snapshot they can
use for the whole request.
"""

import json
import logging
import re
import threading
import time
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, List, Dict, Any
from urllib.parse import urlparse

from vod_dashboard.core.errors import NotFound, ValidationError
from vod_dashboard.models.catalog import ServerRecord, ServerStatus

logger = logging.getLogger(__name__)

_SERVER_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,64}$')

# Fields a caller may change through update_server
UPDATABLE_FIELDS = ("name", "url", "username", "password", "active", "status", "last_checked")


def validate_server_id(server_id: str) -> str:
    """Check a server id before it is used as a file name

    Raises:
        ValidationError: id is empty or has characters outside [A-Za-z0-9_-]
    """
    if not server_id or not isinstance(server_id, str):
        raise ValidationError("Server ID is required")
    if not _SERVER_ID_PATTERN.match(server_id):
        raise ValidationError(f"Invalid server ID: {server_id}")
    return server_id


def normalize_server_url(url: str) -> str:
    """Validate an absolute http(s) URL and strip the trailing slash

    Raises:
        ValidationError: URL is not absolute http(s)
    """
    url = (url or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("Must be a valid URL")
    if parsed.query or parsed.fragment:
        raise ValidationError("Server URL must not contain a query string or fragment")
    return url.rstrip("/")


def validate_server_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate the fields present in data and return normalized copies

    Only the keys that are present are checked, so this works for both
    creation (all fields) and partial updates.
    """
    cleaned = dict(data)

    if "name" in cleaned:
        name = (cleaned["name"] or "").strip()
        if len(name) < 2:
            raise ValidationError("Name must be at least 2 characters")
        cleaned["name"] = name

    if "url" in cleaned:
        cleaned["url"] = normalize_server_url(cleaned["url"])

    if "username" in cleaned:
        if not cleaned["username"] or not str(cleaned["username"]).strip():
            raise ValidationError("Username is required")
        cleaned["username"] = str(cleaned["username"]).strip()

    if "password" in cleaned:
        if not cleaned["password"]:
            raise ValidationError("Password is required")

    if "status" in cleaned and not isinstance(cleaned["status"], ServerStatus):
        try:
            cleaned["status"] = ServerStatus(cleaned["status"])
        except ValueError:
            raise ValidationError(f"Invalid server status: {cleaned['status']}")

    return cleaned


class ServerDirectory(ABC):
    """Storage contract for server records"""

    @abstractmethod
    def list_servers(self) -> List[ServerRecord]:
        """All servers, sorted by name"""

    @abstractmethod
    def get_server(self, server_id: str) -> Optional[ServerRecord]:
        """Server by id, or None"""

    @abstractmethod
    def create_server(
        self,
        name: str,
        url: str,
        username: str,
        password: str,
        active: bool = True,
        status: ServerStatus = ServerStatus.UNKNOWN,
        last_checked: Optional[str] = None,
    ) -> ServerRecord:
        """Validate and store a new server"""

    @abstractmethod
    def update_server(self, server_id: str, **changes) -> Optional[ServerRecord]:
        """Apply a partial update; None if the server does not exist"""

    @abstractmethod
    def delete_server(self, server_id: str) -> bool:
        """Delete a server; False if it did not exist"""

    def require_server(self, server_id: str) -> ServerRecord:
        """Server by id

        Raises:
            ValidationError: Malformed id
            NotFound: No such server
        """
        validate_server_id(server_id)
        server = self.get_server(server_id)
        if server is None:
            raise NotFound("Server not found")
        return server


class JsonServerDirectory(ServerDirectory):
    """Server directory backed by one JSON file per record

    Thread-safe for writes within one process.
    """

    def __init__(self, directory: str):
        """Initialize directory

        Args:
            directory: Folder holding {server_id}.json files
        """
        self.directory = Path(directory)
        self._lock = threading.Lock()
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.debug(f"JsonServerDirectory initialized at: {self.directory}")

    def _path(self, server_id: str) -> Path:
        return self.directory / f"{validate_server_id(server_id)}.json"

    def _write_json(self, path: Path, data: dict):
        """Write JSON file atomically (write-to-temp-then-rename)"""
        temp_path = path.with_suffix('.tmp')
        with open(temp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        temp_path.replace(path)

    def _read_json(self, path: Path) -> Optional[dict]:
        """Read JSON file, None if missing or corrupt"""
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in {path}: {e}")
            return None

    # ========================================================================
    # CRUD Operations
    # ========================================================================

    def list_servers(self) -> List[ServerRecord]:
        servers = []
        for path in self.directory.glob("*.json"):
            data = self._read_json(path)
            if not data:
                continue
            try:
                servers.append(ServerRecord.from_dict(data))
            except (KeyError, ValueError) as e:
                logger.error(f"Skipping invalid server record {path.name}: {e}")
        return sorted(servers, key=lambda server: (server.name.casefold(), server.id))

    def get_server(self, server_id: str) -> Optional[ServerRecord]:
        data = self._read_json(self._path(server_id))
        return ServerRecord.from_dict(data) if data else None

    def create_server(
        self,
        name: str,
        url: str,
        username: str,
        password: str,
        active: bool = True,
        status: ServerStatus = ServerStatus.UNKNOWN,
        last_checked: Optional[str] = None,
    ) -> ServerRecord:
        fields = validate_server_fields({
            "name": name,
            "url": url,
            "username": username,
            "password": password,
            "status": status,
        })
        now = int(time.time())
        server = ServerRecord(
            id=uuid.uuid4().hex,
            name=fields["name"],
            url=fields["url"],
            username=fields["username"],
            password=fields["password"],
            active=active,
            status=fields["status"],
            last_checked=last_checked,
            created_at=now,
            updated_at=now,
        )

        with self._lock:
            self._write_json(self._path(server.id), server.to_dict())

        logger.info(f"Created server {server.id} ({server.name})")
        return server

    def update_server(self, server_id: str, **changes) -> Optional[ServerRecord]:
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown server fields: {', '.join(sorted(unknown))}")

        changes = validate_server_fields(changes)
        path = self._path(server_id)

        with self._lock:
            data = self._read_json(path)
            if not data:
                return None

            server = ServerRecord.from_dict(data)
            for key, value in changes.items():
                setattr(server, key, value)
            server.updated_at = int(time.time())

            self._write_json(path, server.to_dict())

        logger.info(f"Updated server {server.id} ({', '.join(sorted(changes)) or 'no fields'})")
        return server

    def delete_server(self, server_id: str) -> bool:
        path = self._path(server_id)
        with self._lock:
            if not path.exists():
                return False
            path.unlink()
        logger.info(f"Deleted server {server_id}")
        return True


def get_server_directory() -> ServerDirectory:
    """Server directory for the configured storage location"""
    from vod_dashboard.core.config import get_config
    return JsonServerDirectory(get_config().storage.servers_directory)
