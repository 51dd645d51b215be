"""Path containment checks for every filesystem mutation.

This module provides:
- real_resolve: Canonicalize a path, following symlinks where possible
- is_inside: Decide whether a path is the root or lies under it
- PathGuard: Root-bound guard used right before delete/move/overwrite

Mutating call sites must act on the path returned by PathGuard.check(),
never on the caller-supplied path, so the checked and the used path are
the same object.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def real_resolve(path: str | os.PathLike[str]) -> Path:
    """Resolve a path through the filesystem, following symlinks.

    Falls back to resolving only the existing prefix when the full path
    cannot be resolved (missing file, symlink loop, permission), and to a
    purely syntactic absolute path when even that fails. Never raises.

    Args:
        path: Path to resolve.

    Returns:
        Absolute, normalized path.
    """
    try:
        return Path(os.path.realpath(path, strict=True))
    except (OSError, ValueError):
        pass
    try:
        return Path(os.path.realpath(path))
    except (OSError, ValueError):
        return Path(os.path.abspath(path))


def is_inside(root: str | os.PathLike[str], candidate: str | os.PathLike[str]) -> bool:
    """Check that candidate resolves to root or to a descendant of root.

    Args:
        root: Root directory.
        candidate: Path to check.

    Returns:
        True if the resolved candidate equals the resolved root or lies
        strictly under it.
    """
    resolved_root = real_resolve(root)
    resolved = real_resolve(candidate)
    if resolved == resolved_root:
        return True

    try:
        rel = os.path.relpath(resolved, resolved_root)
    except ValueError:
        # Different drives on Windows
        return False

    if os.path.isabs(rel):
        return False
    return os.pardir not in Path(rel).parts


class PathGuard:
    """Containment guard bound to one root directory.

    Usage:
        guard = PathGuard(root)
        target = guard.check(path, "remove")
        if target is not None:
            remove(target)
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        """Initialize the guard.

        Args:
            root: Directory that bounds every mutation.
        """
        self._root = real_resolve(root)

    @property
    def root(self) -> Path:
        """Resolved root directory."""
        return self._root

    def contains(self, candidate: str | os.PathLike[str]) -> bool:
        """Check if candidate is the root or inside it."""
        return is_inside(self._root, candidate)

    def check(self, candidate: str | os.PathLike[str], action: str) -> Path | None:
        """Resolve candidate and verify it stays inside the root.

        Args:
            candidate: Path about to be mutated.
            action: Verb used in the log line ("remove", "move", ...).

        Returns:
            The resolved path to operate on, or None if it escapes the root.
        """
        resolved = real_resolve(candidate)
        if is_inside(self._root, resolved):
            return resolved
        logger.warning(f"[Guard] Refusing to {action} outside {self._root}: {candidate}")
        return None
