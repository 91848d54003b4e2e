"""Activity Service

Append-only activity log and export history.

Folder structure:
    {data_directory}/
      activity/
        activity-YYYY-MM-DD.jsonl   # one AuditLogEntry per line
      exports/
        {export_id}.json            # ExportHistoryRecord

Writes are best effort: a failing write is logged and never fails the
request that triggered it.
"""

import json
import logging
import threading
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional, List

from vod_dashboard.models.catalog import AuditLogEntry, ExportHistoryRecord, LogStatus

logger = logging.getLogger(__name__)


class ActivityService:
    """File-based activity log and export history"""

    LOG_PREFIX = "activity-"
    LOG_SUFFIX = ".jsonl"

    def __init__(self, activity_directory: str, exports_directory: str):
        """Initialize activity service

        Args:
            activity_directory: Folder for daily activity log files
            exports_directory: Folder for export history records
        """
        self.activity_directory = Path(activity_directory)
        self.exports_directory = Path(exports_directory)
        self._lock = threading.Lock()

        self.activity_directory.mkdir(parents=True, exist_ok=True)
        self.exports_directory.mkdir(parents=True, exist_ok=True)

    def _log_path(self, timestamp: int) -> Path:
        day = datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d")
        return self.activity_directory / f"{self.LOG_PREFIX}{day}{self.LOG_SUFFIX}"

    # ========================================================================
    # Activity log
    # ========================================================================

    def log(
        self,
        action: str,
        status: LogStatus,
        message: str,
        server_id: Optional[str] = None,
    ) -> AuditLogEntry:
        """Append an entry to today's activity log"""
        entry = AuditLogEntry(
            action=action,
            status=status,
            message=message,
            timestamp=int(time.time()),
            server_id=server_id,
        )

        try:
            with self._lock:
                with open(self._log_path(entry.timestamp), 'a', encoding='utf-8') as f:
                    f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        except OSError as e:
            logger.error(f"Could not write activity log entry {action}: {e}")

        return entry

    def log_success(self, action: str, message: str, server_id: Optional[str] = None) -> AuditLogEntry:
        return self.log(action, LogStatus.SUCCESS, message, server_id)

    def log_error(self, action: str, message: str, server_id: Optional[str] = None) -> AuditLogEntry:
        return self.log(action, LogStatus.ERROR, message, server_id)

    def list_entries(self, limit: int = 100, server_id: Optional[str] = None) -> List[AuditLogEntry]:
        """Most recent entries first

        Args:
            limit: Maximum number of entries
            server_id: Only entries for this server
        """
        entries: List[AuditLogEntry] = []
        log_files = sorted(
            self.activity_directory.glob(f"{self.LOG_PREFIX}*{self.LOG_SUFFIX}"),
            reverse=True,
        )

        for path in log_files:
            with open(path, 'r', encoding='utf-8') as f:
                lines = f.readlines()

            for line in reversed(lines):
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = AuditLogEntry.from_dict(json.loads(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning(f"Skipping invalid activity log line in {path.name}: {e}")
                    continue
                if server_id and entry.server_id != server_id:
                    continue
                entries.append(entry)
                if len(entries) >= limit:
                    return entries

        return entries

    # ========================================================================
    # Export history
    # ========================================================================

    def record_export(self, title: str, links: List[str], server_id: str) -> ExportHistoryRecord:
        """Persist an export (title and generated commands)"""
        record = ExportHistoryRecord(
            id=uuid.uuid4().hex,
            title=title,
            links=list(links),
            server_id=server_id,
            created_at=int(time.time()),
        )

        path = self.exports_directory / f"{record.id}.json"
        try:
            with self._lock:
                temp_path = path.with_suffix('.tmp')
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(record.to_dict(), f, indent=2, ensure_ascii=False)
                temp_path.replace(path)
        except OSError as e:
            logger.error(f"Could not write export record {record.id}: {e}")

        return record

    def list_exports(self, limit: int = 50, server_id: Optional[str] = None) -> List[ExportHistoryRecord]:
        """Most recent exports first"""
        records = []
        for path in self.exports_directory.glob("*.json"):
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    record = ExportHistoryRecord.from_dict(json.load(f))
            except (json.JSONDecodeError, KeyError) as e:
                logger.warning(f"Skipping invalid export record {path.name}: {e}")
                continue
            if server_id and record.server_id != server_id:
                continue
            records.append(record)

        records.sort(key=lambda record: record.created_at, reverse=True)
        return records[:limit]


def get_activity_service() -> ActivityService:
    """Activity service for the configured storage location"""
    from vod_dashboard.core.config import get_config
    storage = get_config().storage
    return ActivityService(storage.activity_directory, storage.exports_directory)
