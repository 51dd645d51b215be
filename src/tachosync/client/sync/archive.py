"""In-place archive expansion with rollback.

This module provides:
- ArchiveExpander: Extracts a zip archive next to itself, removes it on
  success, and on failure rolls back every entry the attempt created
  before quarantining the archive in the Failed folder.

Rollback works on a snapshot of the destination directory's entry names:
anything present after the failed attempt but absent before it is removed.
"""

from __future__ import annotations

import logging
import os
import zipfile
import zlib
from pathlib import Path

from tachosync.client.sync.guard import PathGuard
from tachosync.client.sync.removal import RemovalPolicy, safe_remove
from tachosync.client.sync.types import FAILED_DIR, ExpandResult

logger = logging.getLogger(__name__)

# Errors raised by zipfile for corrupt, truncated or unsupported archives,
# and by the filesystem while writing entries
EXTRACTION_ERRORS: tuple[type[Exception], ...] = (
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    OSError,
    RuntimeError,
    NotImplementedError,
    ValueError,
)


def _snapshot(directory: Path) -> set[str] | None:
    """List entry names of a directory, or None if it cannot be read."""
    try:
        return set(os.listdir(directory))
    except OSError as e:
        logger.error(f"Error snapshotting dir {directory}: {e}")
        return None


class ArchiveExpander:
    """Expands archives in place under a fixed root.

    Usage:
        expander = ArchiveExpander(root)
        result = expander.expand(root / "delivery.zip")
        if result.success:
            ...  # rescan the archive's directory
    """

    def __init__(
        self,
        root: str | os.PathLike[str],
        policy: RemovalPolicy = RemovalPolicy.TRASH,
    ) -> None:
        """Initialize the expander.

        Args:
            root: Root directory bounding every cleanup and quarantine move.
            policy: How the archive and rolled-back entries are removed.
        """
        self._guard = PathGuard(root)
        self._policy = policy

    @property
    def root(self) -> Path:
        """Resolved root directory."""
        return self._guard.root

    def expand(
        self,
        archive_path: str | os.PathLike[str],
        dest_dir: str | os.PathLike[str] | None = None,
    ) -> ExpandResult:
        """Extract an archive into a directory.

        Args:
            archive_path: Archive to extract.
            dest_dir: Destination directory (defaults to the archive's directory).

        Returns:
            ExpandResult describing what happened. Never raises.
        """
        archive = Path(archive_path)
        dest = Path(dest_dir) if dest_dir is not None else archive.parent

        before = _snapshot(dest)

        try:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(dest)
        except EXTRACTION_ERRORS as e:
            logger.warning(f"[Unzip] Failed to extract {archive.name}: {e}")
            return self._rollback(archive, dest, before, str(e))

        after = _snapshot(dest)
        created = sorted(after - before) if after is not None and before is not None else []

        if safe_remove(self._guard, archive, self._policy):
            if self._policy is RemovalPolicy.TRASH:
                logger.info(f"[Unzip] Extracted {archive.name}, original moved to trash")
            else:
                logger.info(f"[Unzip] Extracted {archive.name}, original deleted")
        else:
            logger.warning(f"[Unzip] Extracted {archive.name} but could not remove it")

        return ExpandResult(archive=archive, success=True, created=created)

    def _rollback(
        self,
        archive: Path,
        dest: Path,
        before: set[str] | None,
        error: str,
    ) -> ExpandResult:
        """Remove partial output and quarantine the archive.

        Each step is best-effort: a failing step is logged and the
        remaining steps still run.
        """
        result = ExpandResult(archive=archive, success=False, error=error)

        after = _snapshot(dest)
        if before is not None and after is not None:
            result.created = sorted(after - before)
            for name in result.created:
                if safe_remove(self._guard, dest / name, self._policy):
                    logger.info(f"[Unzip] Removed partial entry: {dest / name}")
        else:
            logger.warning(f"[Unzip] Cannot determine partial entries in {dest}, skipping cleanup")

        result.quarantined_to = self._quarantine(archive)
        return result

    def _quarantine(self, archive: Path) -> Path | None:
        """Move a failed archive into the root's Failed folder."""
        failed_dir = self.root / FAILED_DIR
        try:
            failed_dir.mkdir(exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create {failed_dir}: {e}")
            return None

        source = self._guard.check(archive, "move")
        target = self._guard.check(failed_dir / archive.name, "move")
        if source is None or target is None:
            return None
        if not os.path.lexists(source):
            logger.debug(f"Archive already gone, nothing to quarantine: {source}")
            return None

        try:
            os.replace(source, target)
        except OSError as e:
            logger.error(f"Could not move {source.name} to {FAILED_DIR}: {e}")
            return None

        logger.info(f"[Unzip] Moved corrupt archive to {target}")
        return target
