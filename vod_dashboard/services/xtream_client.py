"""Xtream API Client

Wraps the player_api.php query API of one Xtream Codes-style IPTV server:
categories, VOD listings, VOD details and server info. Also derives direct
download URLs and aria2c command lines for catalog items.

Wire format (kept as-is for compatibility with existing servers):
    {url}/player_api.php?username={u}&password={p}&action={action}[&key=value...]
    {url}/movie/{u}/{p}/{stream_id}.{ext}

Credentials travel in plaintext in the query string; that is what the remote
protocol expects.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

import requests

from vod_dashboard.core.errors import (
    RemoteUnavailable,
    MalformedResponse,
    MovieNotFound,
    ValidationError,
)
from vod_dashboard.core.logging import mask_credentials
from vod_dashboard.models.catalog import (
    ServerRecord,
    Category,
    CatalogItem,
    ServerInfo,
    ServerStats,
)

logger = logging.getLogger(__name__)

# aria2c download options
ARIA2_MAX_CONNECTIONS = 4
ARIA2_SPLIT = 4
ARIA2_USER_AGENT = "XCIPTV"

DEFAULT_TIMEOUT = 30


def shell_quote(value: str) -> str:
    """Wrap a value in double quotes for a POSIX shell

    Backslash, double quote, dollar and backtick are backslash-escaped, which
    are the only characters with special meaning inside double quotes.
    """
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("$", "\\$")
        .replace("`", "\\`")
    )
    return f'"{escaped}"'


class XtreamClient:
    """Client for one Xtream server

    Stateless apart from the server snapshot and transport settings. Network
    operations are coroutines; the blocking requests call runs in a worker
    thread so it only suspends the awaiting request.
    """

    def __init__(
        self,
        server: ServerRecord,
        timeout: int = DEFAULT_TIMEOUT,
        user_agent: str = ARIA2_USER_AGENT,
        http=None,
    ):
        """Initialize client

        Args:
            server: Server record snapshot (url, username, password)
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header for API requests
            http: Object with a requests-compatible get(); defaults to the requests module
        """
        self.server = server
        self.timeout = timeout
        self.user_agent = user_agent
        self._http = http or requests

    @property
    def base_url(self) -> str:
        return self.server.url.rstrip("/")

    def build_api_url(self, action: str, params: Optional[Dict[str, Any]] = None) -> str:
        """Build an authenticated player_api.php URL

        Args:
            action: API action (get_vod_streams, get_vod_info...)
            params: Extra query parameters appended after the action

        Returns:
            Full request URL
        """
        url = (
            f"{self.base_url}/player_api.php"
            f"?username={self.server.username}&password={self.server.password}"
            f"&action={action}"
        )
        if params:
            url += "".join(f"&{key}={value}" for key, value in params.items())
        return url

    # ========================================================================
    # Transport
    # ========================================================================

    def _get_json(self, action: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Perform a blocking GET and decode the JSON body

        Raises:
            RemoteUnavailable: Network error or non-2xx status
            MalformedResponse: Body is not JSON
        """
        url = self.build_api_url(action, params)
        logger.debug(f"GET {mask_credentials(url)}")

        try:
            response = self._http.get(
                url,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
        except requests.RequestException as e:
            message = mask_credentials(str(e))
            logger.warning(f"{action} failed for server {self.server.name}: {message}")
            raise RemoteUnavailable(f"Could not reach server {self.server.name}: {message}") from e

        if not 200 <= response.status_code < 300:
            logger.warning(
                f"{action} failed for server {self.server.name}: HTTP {response.status_code}"
            )
            raise RemoteUnavailable(f"Server responded with status: {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{action} returned invalid JSON for server {self.server.name}")
            raise MalformedResponse(f"Server returned invalid JSON for {action}") from e

    async def _request(self, action: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await asyncio.to_thread(self._get_json, action, params)

    # ========================================================================
    # Remote operations
    # ========================================================================

    async def get_server_info(self) -> ServerInfo:
        """Fetch server/account info, used to probe reachability"""
        payload = await self._request("get_server_info")
        if not isinstance(payload, dict):
            raise MalformedResponse("Expected a JSON object from get_server_info")
        return ServerInfo.from_remote(payload)

    async def get_categories(self) -> List[Category]:
        """Fetch VOD categories in the order the server returns them"""
        payload = await self._request("get_vod_categories")
        if not isinstance(payload, list):
            raise MalformedResponse("Expected a JSON list from get_vod_categories")

        categories = []
        for entry in payload:
            category = Category.from_remote(entry) if isinstance(entry, dict) else None
            if category is None:
                logger.warning(f"Skipping malformed category entry from {self.server.name}")
                continue
            categories.append(category)
        return categories

    async def get_movies(self, category_id: Optional[str] = None) -> List[CatalogItem]:
        """Fetch VOD streams, optionally restricted to one category

        Args:
            category_id: Category to list; None lists the full catalog
        """
        params = {"category_id": category_id} if category_id else None
        payload = await self._request("get_vod_streams", params)
        if not isinstance(payload, list):
            raise MalformedResponse("Expected a JSON list from get_vod_streams")

        movies = []
        skipped = 0
        for entry in payload:
            item = CatalogItem.from_remote(entry) if isinstance(entry, dict) else None
            if item is None:
                skipped += 1
                continue
            movies.append(item)

        if skipped:
            logger.warning(f"Skipped {skipped} malformed stream entries from {self.server.name}")
        return movies

    async def get_movie_info(self, stream_id: int) -> CatalogItem:
        """Fetch details for one movie

        Raises:
            ValidationError: stream_id is not a positive integer
            MovieNotFound: Server has no movie with this id
            RemoteUnavailable / MalformedResponse: Transport or payload errors
        """
        if isinstance(stream_id, bool) or not isinstance(stream_id, int) or stream_id <= 0:
            raise ValidationError(f"Invalid movie id: {stream_id!r}")

        payload = await self._request("get_vod_info", {"stream_id": stream_id})
        if not isinstance(payload, dict):
            # Some panels answer unknown ids with [] instead of an object
            if payload in ([], None):
                raise MovieNotFound(f"Movie {stream_id} not found on server {self.server.name}")
            raise MalformedResponse("Expected a JSON object from get_vod_info")

        item = CatalogItem.from_vod_info(payload, stream_id)
        if item is None:
            raise MovieNotFound(f"Movie {stream_id} not found on server {self.server.name}")
        return item

    async def get_server_stats(self) -> ServerStats:
        """Count categories and movies (both fetched concurrently)"""
        categories, movies = await asyncio.gather(
            self.get_categories(),
            self.get_movies(),
        )
        return ServerStats(
            categories_count=len(categories),
            movies_count=len(movies),
            last_updated=datetime.now(timezone.utc).isoformat(),
        )

    async def check_status(self) -> bool:
        """Return True if the server answers get_server_info"""
        try:
            await self.get_server_info()
            return True
        except RemoteUnavailable as e:
            logger.info(f"Server {self.server.name} is offline: {e.message}")
            return False

    # ========================================================================
    # Download helpers (no network)
    # ========================================================================

    def get_movie_download_url(self, item: CatalogItem) -> str:
        """Direct download URL for a catalog item"""
        return (
            f"{self.base_url}/movie/{self.server.username}/{self.server.password}/"
            f"{item.stream_id}.{item.container_extension}"
        )

    def generate_aria2_command(self, item: CatalogItem) -> str:
        """aria2c command line that downloads a catalog item to {name}.{ext}"""
        download_url = self.get_movie_download_url(item)
        output_file = f"{item.name}.{item.container_extension}"
        return (
            f"aria2c --continue"
            f" --max-connection-per-server={ARIA2_MAX_CONNECTIONS}"
            f" --split={ARIA2_SPLIT}"
            f" --show-console-readout=true"
            f" --user-agent={shell_quote(ARIA2_USER_AGENT)}"
            f" -o {shell_quote(output_file)}"
            f" {shell_quote(download_url)}"
        )


def create_xtream_client(server: ServerRecord, config=None) -> XtreamClient:
    """Create a client for a server using transport settings from configuration

    Args:
        server: Server record snapshot
        config: Optional Config; the global configuration is used when omitted
    """
    if config is None:
        from vod_dashboard.core.config import get_config
        config = get_config()

    return XtreamClient(
        server,
        timeout=config.xtream.timeout,
        user_agent=config.xtream.user_agent,
    )
