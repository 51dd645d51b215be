"""Shared types, constants and dataclasses for sync operations.

This module provides:
- Folder names, extensions and the scan depth cap
- SyncError, ConfigurationError: Exception classes
- DiscoveredFile, FileReport: Scan and status records
- ExpandResult: Result of one archive expansion
- SyncListener: Front-end callbacks for logs, statuses and last-sync updates
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from tachosync.core.types import SyncStatus

ARCHIVED_DIR = "Archived"
FAILED_DIR = "Failed"
OUTPUT_DIRS = (ARCHIVED_DIR, FAILED_DIR)

DATA_EXTENSIONS = frozenset({".ddd", ".esm"})
ARCHIVE_EXTENSION = ".zip"

MAX_SCAN_DEPTH = 10


def is_data_file(name: str) -> bool:
    """Check if a file name has a recognized data extension."""
    return Path(name).suffix.lower() in DATA_EXTENSIONS


def is_archive(name: str) -> bool:
    """Check if a file name has the archive extension."""
    return Path(name).suffix.lower() == ARCHIVE_EXTENSION


def is_output_dir_name(name: str) -> bool:
    """Check if a name matches an output folder (case-insensitive)."""
    return name.lower() in {d.lower() for d in OUTPUT_DIRS}


class SyncError(Exception):
    """Base exception for sync errors."""


class ConfigurationError(SyncError):
    """The session is not ready to run a cycle (no folder, not connected)."""


@dataclass(frozen=True)
class DiscoveredFile:
    """A data file found by the scanner.

    Attributes:
        path: Absolute, symlink-resolved path of the file.
        relative_path: POSIX-style path relative to the scan root.
    """

    path: Path
    relative_path: str

    @property
    def name(self) -> str:
        """File name without directories."""
        return self.path.name


@dataclass
class FileReport:
    """Status row reported to the front-end for one file."""

    path: Path
    relative_path: str
    status: SyncStatus = SyncStatus.NOT_SYNCED


@dataclass
class ExpandResult:
    """Result of expanding one archive.

    Attributes:
        archive: Path of the archive that was processed.
        success: Whether extraction completed.
        error: Error message if extraction failed.
        created: Entry names that appeared in the destination directory
            (extracted on success, rolled back on failure).
        quarantined_to: Where the archive was moved on failure, if the move
            succeeded.
    """

    archive: Path
    success: bool
    error: str | None = None
    created: list[str] = field(default_factory=list)
    quarantined_to: Path | None = None


class SyncListener:
    """Receives progress from a sync session.

    The default implementation ignores everything; front-ends override the
    callbacks they need. Callbacks may be invoked from upload threads.
    """

    def on_log(self, message: str) -> None:
        """A user-facing log line."""

    def on_files(self, reports: list[FileReport]) -> None:
        """The file list was rebuilt or statuses were flipped in bulk."""

    def on_status(self, report: FileReport) -> None:
        """A single file reached a new status."""

    def on_last_sync(self, timestamp: datetime) -> None:
        """The last-sync timestamp was updated."""
