"""Export Service

Turns resolved catalog items into aria2c download commands and structured
export records. Bulk exports resolve every requested movie id concurrently;
a failing id is reported in the per-id results and left out of the commands,
it never fails the whole export.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from vod_dashboard.core.errors import DashboardError
from vod_dashboard.models.catalog import (
    CatalogItem,
    ExportCommand,
    ExportRecord,
    ExportItemResult,
)
from vod_dashboard.services.xtream_client import XtreamClient

logger = logging.getLogger(__name__)

BULK_EXPORT_FILENAME = "aria2c-commands.txt"
SINGLE_EXPORT_SUFFIX = "-aria2c-commands.txt"

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


@dataclass
class ExportResult:
    """Commands and records for one export request

    results holds one entry per requested id, in request order, so callers
    can tell exactly which ids were dropped.
    """
    commands: List[ExportCommand] = field(default_factory=list)
    export_data: List[ExportRecord] = field(default_factory=list)
    results: List[ExportItemResult] = field(default_factory=list)

    @property
    def requested(self) -> int:
        return len(self.results)

    @property
    def exported(self) -> int:
        return len(self.commands)

    @property
    def failed_ids(self) -> List[int]:
        return [result.stream_id for result in self.results if not result.success]

    @property
    def command_lines(self) -> List[str]:
        return [command.command for command in self.commands]

    def to_dict(self) -> dict:
        return {
            "commands": self.command_lines,
            "exportData": [record.to_dict() for record in self.export_data],
            "results": [result.to_dict() for result in self.results],
            "requested": self.requested,
            "exported": self.exported,
            "failedIds": self.failed_ids,
        }


def build_export(client: XtreamClient, items: Sequence[CatalogItem]) -> ExportResult:
    """Generate one command and one export record per item, in input order"""
    result = ExportResult()
    for item in items:
        download_url = client.get_movie_download_url(item)
        result.commands.append(ExportCommand(
            movie_name=item.name,
            extension=item.container_extension,
            download_url=download_url,
            command=client.generate_aria2_command(item),
        ))
        result.export_data.append(ExportRecord(
            movie_name=item.name,
            extension=item.container_extension,
            download_url=download_url,
        ))
        result.results.append(ExportItemResult(stream_id=item.stream_id, success=True))
    return result


async def _resolve(client: XtreamClient, stream_id: int) -> Tuple[Optional[CatalogItem], Optional[str]]:
    """Fetch one movie, returning (item, None) or (None, error message)"""
    try:
        return await client.get_movie_info(stream_id), None
    except DashboardError as e:
        logger.warning(f"Export: could not resolve movie {stream_id}: {e.message}")
        return None, e.message
    except Exception as e:
        logger.error(f"Export: unexpected error resolving movie {stream_id}: {e}", exc_info=True)
        return None, str(e) or e.__class__.__name__


async def export_movies(client: XtreamClient, movie_ids: Sequence[int]) -> ExportResult:
    """Resolve movie ids concurrently and build the export from those that resolved

    Args:
        client: Client for the server the ids belong to
        movie_ids: Requested stream ids

    Returns:
        ExportResult with commands for resolved items and a result per requested id
    """
    resolved = await asyncio.gather(*(_resolve(client, movie_id) for movie_id in movie_ids))

    result = ExportResult()
    for movie_id, (item, error) in zip(movie_ids, resolved):
        if item is None:
            result.results.append(ExportItemResult(
                stream_id=movie_id,
                success=False,
                error=error,
            ))
            continue

        partial = build_export(client, [item])
        result.commands.extend(partial.commands)
        result.export_data.extend(partial.export_data)
        result.results.append(ExportItemResult(stream_id=movie_id, success=True))

    logger.info(
        f"Export for server {client.server.name}: "
        f"{result.exported} of {result.requested} movies resolved"
    )
    return result


def render_commands(commands: Sequence[ExportCommand]) -> str:
    """Plain-text artifact: one command per line"""
    if not commands:
        return ""
    return "\n".join(command.command for command in commands) + "\n"


def export_filename(movie_name: Optional[str] = None) -> str:
    """File name for a downloaded command list

    Args:
        movie_name: Set for a single-movie export

    Returns:
        aria2c-commands.txt, or {movie_name}-aria2c-commands.txt
    """
    if not movie_name:
        return BULK_EXPORT_FILENAME
    safe_name = _UNSAFE_FILENAME_CHARS.sub("_", movie_name).strip() or "movie"
    return f"{safe_name}{SINGLE_EXPORT_SUFFIX}"
