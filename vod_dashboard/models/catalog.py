"""Domain Models (Dataclasses)

This module defines the data models used throughout the application.
These are simple dataclasses that can be serialized to/from JSON.

Remote payloads from player_api.php are loosely typed (numbers arrive as
strings, optional fields are missing, empty or null). The from_* constructors
here are the only place that shape is interpreted.
"""

from enum import Enum
from typing import Optional, Dict, Any
from dataclasses import dataclass, field


class ServerStatus(str, Enum):
    """Reachability status of an IPTV server"""
    ONLINE = "online"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


class LogStatus(str, Enum):
    """Outcome of a logged action"""
    SUCCESS = "success"
    ERROR = "error"


def _optional_str(value: Any) -> Optional[str]:
    """Normalize an optional remote field to a non-empty string or None"""
    if value is None:
        return None
    if isinstance(value, (list, dict)):
        return None
    text = str(value).strip()
    return text or None


def _parse_stream_id(value: Any) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


@dataclass
class ServerRecord:
    """IPTV server credential record

    Owned by the server directory. Every read returns a fresh copy, so
    services can hold one for the duration of a request without locking.
    """
    id: str                              # uuid4 hex
    name: str                            # Display name
    url: str                             # Absolute base URL, no trailing slash
    username: str                        # Xtream username
    password: str                        # Xtream password (plaintext, required by the protocol)
    active: bool = True
    status: ServerStatus = ServerStatus.UNKNOWN
    last_checked: Optional[str] = None   # ISO-8601 timestamp of last status probe
    created_at: int = 0                  # Unix timestamp of creation
    updated_at: int = 0                  # Unix timestamp of last update

    def to_dict(self) -> dict:
        """Convert ServerRecord to dictionary for JSON serialization"""
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "username": self.username,
            "password": self.password,
            "active": self.active,
            "status": self.status.value if isinstance(self.status, ServerStatus) else self.status,
            "last_checked": self.last_checked,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ServerRecord":
        """Create ServerRecord from dictionary"""
        status = data.get("status") or ServerStatus.UNKNOWN.value
        if isinstance(status, str):
            status = ServerStatus(status)

        return cls(
            id=data["id"],
            name=data["name"],
            url=data["url"],
            username=data["username"],
            password=data["password"],
            active=data.get("active", True),
            status=status,
            last_checked=data.get("last_checked"),
            created_at=data.get("created_at", 0),
            updated_at=data.get("updated_at", 0),
        )


@dataclass(frozen=True)
class Category:
    """VOD category as returned by get_vod_categories"""
    category_id: str
    category_name: str
    parent_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "parent_id": self.parent_id,
        }

    @classmethod
    def from_remote(cls, data: dict) -> Optional["Category"]:
        """Build a Category from a remote entry, or None if it has no id"""
        category_id = _optional_str(data.get("category_id"))
        if category_id is None:
            return None

        parent_id = data.get("parent_id")
        try:
            parent_id = int(parent_id) if parent_id not in (None, "") else None
        except (TypeError, ValueError):
            parent_id = None

        return cls(
            category_id=category_id,
            category_name=_optional_str(data.get("category_name")) or "",
            parent_id=parent_id,
        )


@dataclass(frozen=True)
class CatalogItem:
    """VOD catalog item (movie)

    Listing entries from get_vod_streams carry the identity fields; detail
    fields (plot, director, actors...) are usually only present when the
    item was resolved through get_vod_info.
    """
    stream_id: int
    name: str
    category_id: str = ""
    container_extension: str = "mp4"
    added: Optional[str] = None          # Unix seconds or ISO date, as sent by the server
    title: Optional[str] = None
    rating: Optional[str] = None
    year: Optional[str] = None
    release_date: Optional[str] = None
    duration: Optional[str] = None
    plot: Optional[str] = None
    director: Optional[str] = None
    actors: Optional[str] = None
    genre: Optional[str] = None
    stream_icon: Optional[str] = None
    cover: Optional[str] = None
    backdrop: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert CatalogItem to dictionary using the remote field names"""
        return {
            "stream_id": self.stream_id,
            "name": self.name,
            "title": self.title,
            "category_id": self.category_id,
            "container_extension": self.container_extension,
            "added": self.added,
            "rating": self.rating,
            "year": self.year,
            "releaseDate": self.release_date,
            "duration": self.duration,
            "plot": self.plot,
            "director": self.director,
            "actors": self.actors,
            "genre": self.genre,
            "stream_icon": self.stream_icon,
            "cover": self.cover,
            "backdrop": self.backdrop,
        }

    @classmethod
    def from_remote(cls, data: dict) -> Optional["CatalogItem"]:
        """Build a CatalogItem from a get_vod_streams entry

        Returns:
            CatalogItem, or None when the entry has no usable stream_id
        """
        stream_id = _parse_stream_id(data.get("stream_id"))
        if stream_id is None:
            return None

        name = _optional_str(data.get("name")) or _optional_str(data.get("title")) or str(stream_id)

        return cls(
            stream_id=stream_id,
            name=name,
            title=_optional_str(data.get("title")),
            category_id=_optional_str(data.get("category_id")) or "",
            container_extension=_optional_str(data.get("container_extension")) or "mp4",
            added=_optional_str(data.get("added")),
            rating=_optional_str(data.get("rating")),
            year=_optional_str(data.get("year")),
            release_date=_optional_str(data.get("releaseDate") or data.get("releasedate")),
            duration=_optional_str(data.get("duration")),
            plot=_optional_str(data.get("plot")),
            director=_optional_str(data.get("director")),
            actors=_optional_str(data.get("actors") or data.get("cast")),
            genre=_optional_str(data.get("genre")),
            stream_icon=_optional_str(data.get("stream_icon")),
            cover=_optional_str(data.get("cover") or data.get("cover_big")),
            backdrop=_optional_str(data.get("backdrop")),
        )

    @classmethod
    def from_vod_info(cls, payload: dict, stream_id: int) -> Optional["CatalogItem"]:
        """Build a CatalogItem from a get_vod_info response

        The response has two blocks: "movie_data" (identity, same shape as a
        listing entry) and "info" (metadata). Servers answer unknown ids with
        an empty movie_data, which yields None.
        """
        movie_data = payload.get("movie_data")
        if not isinstance(movie_data, dict) or not movie_data:
            return None

        info = payload.get("info")
        if not isinstance(info, dict):
            info = {}

        merged = dict(movie_data)
        merged.setdefault("stream_id", stream_id)
        backdrop = info.get("backdrop_path")
        if isinstance(backdrop, list):
            backdrop = backdrop[0] if backdrop else None

        for key, value in (
            ("plot", info.get("plot") or info.get("description")),
            ("director", info.get("director")),
            ("actors", info.get("actors") or info.get("cast")),
            ("genre", info.get("genre")),
            ("rating", info.get("rating")),
            ("duration", info.get("duration")),
            ("releaseDate", info.get("releasedate") or info.get("release_date")),
            ("year", info.get("year")),
            ("cover", info.get("movie_image") or info.get("cover_big")),
            ("backdrop", backdrop),
            ("title", info.get("name") or info.get("o_name")),
        ):
            if value and not merged.get(key):
                merged[key] = value

        return cls.from_remote(merged)


@dataclass
class ServerInfo:
    """Payload of get_server_info (also returned by a bare player_api.php call)"""
    user_info: Dict[str, Any] = field(default_factory=dict)
    server_info: Dict[str, Any] = field(default_factory=dict)

    @property
    def authenticated(self) -> bool:
        """Whether the server accepted the credentials"""
        auth = self.user_info.get("auth")
        return str(auth) == "1" if auth is not None else bool(self.user_info)

    def to_dict(self) -> dict:
        return {
            "user_info": self.user_info,
            "server_info": self.server_info,
        }

    @classmethod
    def from_remote(cls, data: dict) -> "ServerInfo":
        user_info = data.get("user_info")
        server_info = data.get("server_info")
        return cls(
            user_info=user_info if isinstance(user_info, dict) else {},
            server_info=server_info if isinstance(server_info, dict) else {},
        )


@dataclass
class ServerStats:
    """Aggregate catalog counts for one server"""
    categories_count: int
    movies_count: int
    last_updated: str                    # ISO-8601 timestamp

    def to_dict(self) -> dict:
        return {
            "categoriesCount": self.categories_count,
            "moviesCount": self.movies_count,
            "lastUpdated": self.last_updated,
        }


@dataclass(frozen=True)
class ExportCommand:
    """aria2c command generated for one catalog item"""
    movie_name: str
    extension: str
    download_url: str
    command: str

    def to_dict(self) -> dict:
        return {
            "movieName": self.movie_name,
            "extension": self.extension,
            "downloadUrl": self.download_url,
            "command": self.command,
        }


@dataclass(frozen=True)
class ExportRecord:
    """Structured export entry (name, extension, URL)"""
    movie_name: str
    extension: str
    download_url: str

    def to_dict(self) -> dict:
        return {
            "movieName": self.movie_name,
            "extension": self.extension,
            "downloadUrl": self.download_url,
        }


@dataclass(frozen=True)
class ExportItemResult:
    """Outcome of resolving one requested stream id during an export"""
    stream_id: int
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "streamId": self.stream_id,
            "success": self.success,
            "error": self.error,
        }


@dataclass
class AuditLogEntry:
    """Activity log entry

    Note: stored one JSON object per line in daily files.
    """
    action: str                          # fetch_movies, export_movies, create_server...
    status: LogStatus
    message: str
    timestamp: int                       # Unix timestamp
    server_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "status": self.status.value if isinstance(self.status, LogStatus) else self.status,
            "message": self.message,
            "server_id": self.server_id,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditLogEntry":
        status = data["status"]
        if isinstance(status, str):
            status = LogStatus(status)
        return cls(
            action=data["action"],
            status=status,
            message=data.get("message", ""),
            timestamp=data.get("timestamp", 0),
            server_id=data.get("server_id"),
        )


@dataclass
class ExportHistoryRecord:
    """Persisted record of a completed export"""
    id: str
    title: str
    links: list
    server_id: str
    created_at: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "links": list(self.links),
            "server_id": self.server_id,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExportHistoryRecord":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            links=list(data.get("links", [])),
            server_id=data.get("server_id", ""),
            created_at=data.get("created_at", 0),
        )
