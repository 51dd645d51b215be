"""Row model of discovered files and their statuses.

This module provides:
- FileTable: Thread-safe, ordered table of FileReport rows

The table is what a front-end displays. It is rebuilt from a fresh scan
on every refresh and updated from upload threads as results arrive.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from tachosync.client.sync.types import DiscoveredFile, FileReport
from tachosync.core.types import SyncStatus

if TYPE_CHECKING:
    from tachosync.client.sync.scanner import TreeScanner

logger = logging.getLogger(__name__)


class FileTable:
    """Ordered table of files keyed by absolute path."""

    def __init__(self) -> None:
        self._rows: dict[Path, FileReport] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def clear(self) -> None:
        """Drop every row."""
        with self._lock:
            self._rows.clear()

    def add(self, found: DiscoveredFile) -> bool:
        """Add a row for a discovered file unless one already exists.

        Returns:
            True if a row was added.
        """
        with self._lock:
            if found.path in self._rows:
                return False
            self._rows[found.path] = FileReport(
                path=found.path,
                relative_path=found.relative_path,
            )
            return True

    def refresh(self, scanner: TreeScanner) -> list[FileReport]:
        """Rebuild the table from a fresh scan.

        The scan expands archives as it goes, so this mutates the tree.

        Returns:
            Snapshot of the rebuilt rows.
        """
        self.clear()
        for found in scanner.scan():
            self.add(found)
        reports = self.reports()
        logger.debug(f"File table refreshed: {len(reports)} files")
        return reports

    def mark_in_progress(self) -> list[FileReport]:
        """Flip every non-terminal or unsynced row to SYNCHRONIZING.

        Returns:
            Snapshot of all rows after the flip.
        """
        with self._lock:
            for report in self._rows.values():
                if report.status in (SyncStatus.NOT_SYNCED, SyncStatus.SYNCHRONIZING):
                    report.status = SyncStatus.SYNCHRONIZING
        return self.reports()

    def set_status(self, path: Path, status: SyncStatus) -> FileReport | None:
        """Update one row.

        Returns:
            Copy of the updated row, or None if the path has no row.
        """
        with self._lock:
            report = self._rows.get(path)
            if report is None:
                return None
            report.status = status
            return FileReport(report.path, report.relative_path, report.status)

    def get(self, path: Path) -> FileReport | None:
        """Copy of the row for a path, if any."""
        with self._lock:
            report = self._rows.get(path)
            if report is None:
                return None
            return FileReport(report.path, report.relative_path, report.status)

    def reports(self) -> list[FileReport]:
        """Copy of all rows, in discovery order."""
        with self._lock:
            return [FileReport(r.path, r.relative_path, r.status) for r in self._rows.values()]

    def files(self) -> list[DiscoveredFile]:
        """Discovered files behind the rows, in discovery order."""
        with self._lock:
            return [DiscoveredFile(r.path, r.relative_path) for r in self._rows.values()]
