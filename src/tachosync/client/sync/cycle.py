"""One scan -> upload -> relocate pass.

This module provides:
- UploadTask: Uploads one file on its own thread, then relocates it
- CycleReport: What a cycle submitted and, as they arrive, the outcomes
- SyncCycle: Runs the cycle steps in order

Uploads are fire-and-forget: every file gets its own thread and its
completion is handled independently, in whatever order results arrive.
The cycle returns as soon as every upload has been started.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from tachosync.client.api import APIError, FileUpload, UploadResult
from tachosync.client.sync.types import DiscoveredFile, FileReport, SyncListener
from tachosync.core.types import SyncStatus, TriggerReason

if TYPE_CHECKING:
    from tachosync.client.api import HTTPClient
    from tachosync.client.sync.relocator import FileRelocator
    from tachosync.client.sync.scanner import TreeScanner
    from tachosync.client.sync.table import FileTable

logger = logging.getLogger(__name__)

DEFAULT_SETTLE_DELAY = 2.0  # seconds between file-list refresh and upload

# Exceptions that turn an upload into a "Not Synced" result
UPLOAD_ERRORS: tuple[type[Exception], ...] = (
    httpx.HTTPError,
    APIError,
    OSError,
    ValueError,
)


@dataclass
class CycleReport:
    """Result of starting a sync cycle.

    Attributes:
        reason: What triggered the cycle.
        started_at: When the cycle started.
        submitted: Files whose upload was started.
        outcomes: Terminal status per file, filled in as uploads complete.
        last_sync: Timestamp reported once all uploads were issued.
    """

    reason: TriggerReason
    started_at: datetime
    submitted: list[Path] = field(default_factory=list)
    outcomes: dict[Path, SyncStatus] = field(default_factory=dict)
    last_sync: datetime | None = None
    _tasks: list[UploadTask] = field(default_factory=list, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record(self, path: Path, status: SyncStatus) -> None:
        """Store the outcome of one file (called from upload threads)."""
        with self._lock:
            self.outcomes[path] = status

    @property
    def synced(self) -> list[Path]:
        """Files uploaded successfully so far."""
        with self._lock:
            return [p for p, s in self.outcomes.items() if s is SyncStatus.SYNCED]

    @property
    def failed(self) -> list[Path]:
        """Files whose upload failed so far."""
        with self._lock:
            return [p for p, s in self.outcomes.items() if s is not SyncStatus.SYNCED]

    @property
    def done(self) -> bool:
        """Whether every submitted upload has completed."""
        with self._lock:
            return len(self.outcomes) >= len(self.submitted)

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the background uploads to finish.

        Args:
            timeout: Overall timeout in seconds, None to wait forever.

        Returns:
            True if every upload completed.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        for task in self._tasks:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            task.join(remaining)
        return self.done


class UploadTask:
    """Uploads one file on a dedicated thread and hands over the result.

    The file is read by prepare() on the caller's thread, so a sibling's
    relocation cannot pull the file away before it is submitted.
    """

    def __init__(
        self,
        found: DiscoveredFile,
        client: HTTPClient,
        on_done: Callable[[DiscoveredFile, UploadResult], None],
    ) -> None:
        self._found = found
        self._client = client
        self._on_done = on_done
        self._upload: FileUpload | None = None
        self._read_error: str | None = None
        self._thread = threading.Thread(
            target=self._run,
            name=f"upload-{found.name}",
            daemon=True,
        )

    def prepare(self) -> None:
        """Read the file content; a read error becomes a failed upload."""
        try:
            self._upload = FileUpload.read(self._found.path)
        except OSError as e:
            logger.error(f"Cannot read {self._found.relative_path}: {e}")
            self._read_error = str(e)

    def start(self) -> None:
        """Start the upload in the background."""
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the upload and its completion handling."""
        self._thread.join(timeout)

    def _run(self) -> None:
        if self._upload is None:
            result = UploadResult(success=False, error=self._read_error or "File not read")
        else:
            try:
                result = self._client.upload(self._upload)
            except UPLOAD_ERRORS as e:
                logger.error(f"Upload failed for {self._found.relative_path}: {e}")
                result = UploadResult(success=False, error=str(e))
            except Exception as e:
                logger.exception(f"Unexpected error uploading {self._found.relative_path}")
                result = UploadResult(success=False, error=str(e) or type(e).__name__)

        try:
            self._on_done(self._found, result)
        except Exception:
            logger.exception(f"Error handling upload result for {self._found.relative_path}")


class SyncCycle:
    """Runs one scan -> upload -> relocate pass.

    Usage:
        cycle = SyncCycle(scanner, client, table, relocator, listener)
        report = cycle.run(TriggerReason.MANUAL)
        report.wait()
    """

    def __init__(
        self,
        scanner: TreeScanner,
        client: HTTPClient,
        table: FileTable,
        relocator: FileRelocator,
        listener: SyncListener | None = None,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        on_last_sync: Callable[[datetime], None] | None = None,
    ) -> None:
        """Initialize the cycle.

        Args:
            scanner: Scanner used to refresh the file table.
            client: Upload client shared by every task.
            table: File table the front-end displays.
            relocator: Moves each file after its upload.
            listener: Front-end callbacks.
            settle_delay: Pause after the refresh, in seconds.
            on_last_sync: Persists the last-sync timestamp.
        """
        self._scanner = scanner
        self._client = client
        self._table = table
        self._relocator = relocator
        self._listener = listener or SyncListener()
        self._settle_delay = settle_delay
        self._on_last_sync = on_last_sync

    def run(self, reason: TriggerReason = TriggerReason.MANUAL) -> CycleReport:
        """Run the cycle up to the point where every upload is started.

        Args:
            reason: What triggered the cycle.

        Returns:
            CycleReport; call wait() on it to block until uploads finish.
        """
        report = CycleReport(reason=reason, started_at=datetime.now())
        logger.info(f"Starting {reason.value} sync of {self._scanner.root}")

        self._listener.on_files(self._table.refresh(self._scanner))

        if self._settle_delay > 0:
            time.sleep(self._settle_delay)

        self._listener.on_files(self._table.mark_in_progress())
        self._listener.on_log("Processing sync..")

        files = self._table.files()

        # Read every file before any completion can relocate a folder
        for found in files:
            task = UploadTask(found, self._client, lambda f, r: self._complete(report, f, r))
            task.prepare()
            report.submitted.append(found.path)
            report._tasks.append(task)

        for found, task in zip(files, report._tasks):
            task.start()
            logger.info(f"(Queued) {found.name}")

        report.last_sync = datetime.now()
        if self._on_last_sync is not None:
            self._on_last_sync(report.last_sync)
        self._listener.on_last_sync(report.last_sync)
        logger.info(f"Submitted {len(report.submitted)} files for upload")
        return report

    def _complete(self, report: CycleReport, found: DiscoveredFile, result: UploadResult) -> None:
        """Relocate one file and report its terminal status."""
        status = SyncStatus.SYNCED if result.success else SyncStatus.NOT_SYNCED
        if result.success:
            logger.info(f"Synced {found.relative_path} (job {result.job_id})")
        else:
            logger.warning(f"Not synced {found.relative_path}: {result.error}")

        # Relocation is best-effort and never changes the reported status
        self._relocator.relocate(found.path, status)

        updated = self._table.set_status(found.path, status)
        report.record(found.path, status)
        self._listener.on_status(
            updated or FileReport(found.path, found.relative_path, status)
        )
