"""Guarded removal of files and directories.

This module provides:
- RemovalPolicy: Recoverable (OS trash) or permanent deletion
- remove_path: Remove one path according to a policy
- safe_remove: Guard, then remove, logging instead of raising
"""

from __future__ import annotations

import logging
import os
import shutil
from enum import Enum
from pathlib import Path

from send2trash import send2trash

from tachosync.client.sync.guard import PathGuard

logger = logging.getLogger(__name__)


class RemovalPolicy(str, Enum):
    """How removed entries are disposed of."""

    TRASH = "trash"  # Recoverable, moved to the OS trash/recycle bin
    PERMANENT = "permanent"

    @classmethod
    def parse(cls, value: str | None) -> RemovalPolicy:
        """Parse a configured policy, defaulting to TRASH."""
        if value == cls.PERMANENT.value:
            return cls.PERMANENT
        return cls.TRASH


def remove_path(target: Path, policy: RemovalPolicy) -> None:
    """Remove a file or directory tree.

    Args:
        target: Path to remove. Callers must have guarded it already.
        policy: Trash or permanent deletion.

    Raises:
        OSError: If the removal fails.
    """
    if policy is RemovalPolicy.TRASH:
        send2trash(str(target))
    elif target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    else:
        target.unlink()


def safe_remove(guard: PathGuard, target: str | os.PathLike[str], policy: RemovalPolicy) -> bool:
    """Remove target if it lies inside the guard's root.

    Args:
        guard: Guard bounding the removal.
        target: Path to remove.
        policy: Trash or permanent deletion.

    Returns:
        True if the entry was removed.
    """
    resolved = guard.check(target, "remove")
    if resolved is None:
        return False
    if not os.path.lexists(resolved):
        return False

    try:
        remove_path(resolved, policy)
    except OSError as e:
        logger.error(f"Failed to remove {resolved}: {e}")
        return False

    if policy is RemovalPolicy.TRASH:
        logger.info(f"[Trash] Moved to trash: {resolved}")
    else:
        logger.info(f"Deleted: {resolved}")
    return True
