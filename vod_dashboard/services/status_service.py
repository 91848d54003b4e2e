"""Server Status Service

Probes IPTV servers with get_server_info and records the outcome on the
server record (status + last_checked). Checks run on demand only.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from vod_dashboard.core.errors import NotFound
from vod_dashboard.models.catalog import ServerRecord, ServerStatus
from vod_dashboard.services.server_directory import ServerDirectory
from vod_dashboard.services.xtream_client import XtreamClient, create_xtream_client

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def probe_server(server: ServerRecord, client: Optional[XtreamClient] = None) -> Tuple[ServerStatus, str]:
    """Check whether a server answers

    Returns:
        Tuple of (online/offline status, ISO timestamp of the check)
    """
    client = client or create_xtream_client(server)
    online = await client.check_status()
    status = ServerStatus.ONLINE if online else ServerStatus.OFFLINE
    logger.info(f"Status check for {server.name}: {status.value}")
    return status, utc_now_iso()


async def refresh_server_status(
    directory: ServerDirectory,
    server_id: str,
    client: Optional[XtreamClient] = None,
) -> ServerRecord:
    """Probe a stored server and persist the result

    Raises:
        ValidationError: Malformed id
        NotFound: No such server
    """
    server = directory.require_server(server_id)
    status, checked_at = await probe_server(server, client)

    updated = directory.update_server(server.id, status=status, last_checked=checked_at)
    if updated is None:
        # Deleted while the probe was running
        raise NotFound("Server not found")
    return updated
