"""Relocation of processed files into the output folders.

This module provides:
- FileRelocator: Moves an uploaded file into Archived or Failed

A file directly under the root moves on its own. A file inside a
subdirectory drags its whole first-level subdirectory along, siblings
included: an unpacked archive's folder is treated as one delivery.
Relocations are serialized per relocator: upload threads complete in any
order and may share a first-level folder.
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

from tachosync.client.sync.guard import PathGuard
from tachosync.client.sync.removal import RemovalPolicy, safe_remove
from tachosync.client.sync.types import ARCHIVED_DIR, FAILED_DIR, is_output_dir_name
from tachosync.core.types import SyncStatus

logger = logging.getLogger(__name__)


class FileRelocator:
    """Moves files (or their first-level folder) into Archived/Failed.

    Usage:
        relocator = FileRelocator(root)
        relocator.relocate(root / "sub" / "card.ddd", SyncStatus.SYNCED)
    """

    def __init__(
        self,
        root: str | os.PathLike[str],
        policy: RemovalPolicy = RemovalPolicy.TRASH,
    ) -> None:
        """Initialize the relocator.

        Args:
            root: Root directory bounding every move.
            policy: How an existing destination is removed before replacing it.
        """
        self._guard = PathGuard(root)
        self._policy = policy
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        """Resolved root directory."""
        return self._guard.root

    def target_folder(self, outcome: SyncStatus) -> Path:
        """Output folder for an outcome (not created)."""
        name = ARCHIVED_DIR if outcome is SyncStatus.SYNCED else FAILED_DIR
        return self.root / name

    def relocate(self, file_path: str | os.PathLike[str], outcome: SyncStatus) -> Path | None:
        """Move a file into the output folder matching its upload outcome.

        Never raises: guard violations and move errors are logged and the
        file stays where it is.

        Args:
            file_path: Absolute path of the uploaded file.
            outcome: SYNCED moves to Archived, anything else to Failed.

        Returns:
            The destination path if the move happened, None otherwise.
        """
        with self._lock:
            return self._relocate(file_path, outcome)

    def _relocate(self, file_path: str | os.PathLike[str], outcome: SyncStatus) -> Path | None:
        target_dir = self._ensure_target(outcome)
        if target_dir is None:
            return None

        source = self._guard.check(file_path, "move")
        if source is None:
            return None
        if not source.exists():
            logger.warning(f"File no longer exists, not moving: {source}")
            return None

        parts = source.relative_to(self.root).parts
        if not parts:
            logger.warning(f"[Guard] Refusing to move the root itself: {source}")
            return None
        if len(parts) == 1:
            src = source
            name = source.name
        else:
            name = parts[0]
            if name in ("", os.curdir, os.pardir) or is_output_dir_name(name):
                logger.warning(f"[Guard] Invalid top-level name for move: {name!r} from {source}")
                return None
            src = self.root / name

        return self._move(src, target_dir / name, target_dir)

    def _ensure_target(self, outcome: SyncStatus) -> Path | None:
        """Create the output folder if needed and check it stays in the root."""
        target_dir = self.target_folder(outcome)
        try:
            target_dir.mkdir(exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create {target_dir}: {e}")
            return None
        return self._guard.check(target_dir, "write")

    def _move(self, src: Path, dest: Path, target_dir: Path) -> Path | None:
        """Replace dest with src, guarded on both sides."""
        target_guard = PathGuard(target_dir)

        checked_src = self._guard.check(src, "move")
        if checked_src is None or checked_src == self.root:
            return None
        if not os.path.lexists(checked_src):
            logger.warning(f"Source already moved, not replacing {dest}: {checked_src}")
            return None
        kind = "folder" if checked_src.is_dir() else "file"
        if target_guard.check(dest, "write") is None:
            return None

        # Overwrite semantics: clear the destination first, synchronously
        if os.path.lexists(dest):
            safe_remove(target_guard, dest, self._policy)
            if os.path.lexists(dest):
                logger.error(f"Could not clear existing destination: {dest}")
                return None

        try:
            os.rename(checked_src, dest)
        except OSError as e:
            logger.error(f"Error moving {kind} {checked_src} to {dest}: {e}")
            return None

        logger.info(f"Moved {checked_src.relative_to(self.root)} to {dest.relative_to(self.root)}")
        return dest
