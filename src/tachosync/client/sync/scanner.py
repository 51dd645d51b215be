"""Depth-bounded tree scanner with in-place archive expansion.

This module provides:
- TreeScanner: Walks a root directory and yields every data file once

Walk rules:
    - Depth 0 is the root; directories deeper than max_depth are dropped.
    - At depth 0 the Archived and Failed output folders are skipped.
    - Symlinked entries are neither descended nor reported.
    - An archive is expanded into its own directory; on success that
      directory is walked again at the same depth in place of the remaining
      siblings, so nested archives unpack too.
    - A data file is reported at most once per scan.

The walk uses an explicit stack of directory frames instead of recursion,
so archive-in-archive chains cannot exhaust the interpreter stack.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from tachosync.client.sync.archive import ArchiveExpander
from tachosync.client.sync.guard import real_resolve
from tachosync.client.sync.types import (
    MAX_SCAN_DEPTH,
    DiscoveredFile,
    ExpandResult,
    is_archive,
    is_data_file,
    is_output_dir_name,
)

logger = logging.getLogger(__name__)


@dataclass
class _Frame:
    """A directory being walked and the entries not yet processed."""

    directory: Path
    depth: int
    entries: list[os.DirEntry[str]] = field(default_factory=list)
    listed: bool = False


class TreeScanner:
    """Scans a root directory for data files, unpacking archives on the way.

    Usage:
        scanner = TreeScanner(root, ArchiveExpander(root))
        for found in scanner.scan():
            print(found.relative_path)

    Each call to scan() starts a fresh walk.
    """

    def __init__(
        self,
        root: str | os.PathLike[str],
        expander: ArchiveExpander | None = None,
        max_depth: int = MAX_SCAN_DEPTH,
        on_expand: Callable[[ExpandResult], None] | None = None,
    ) -> None:
        """Initialize the scanner.

        Args:
            root: Directory to scan.
            expander: Archive expander; archives are left alone when None.
            max_depth: Deepest directory level walked (root is 0).
            on_expand: Optional callback invoked after each archive expansion.
        """
        self._root = real_resolve(root)
        self._expander = expander
        self._max_depth = max_depth
        self._on_expand = on_expand

    @property
    def root(self) -> Path:
        """Resolved root directory."""
        return self._root

    def scan(self) -> Iterator[DiscoveredFile]:
        """Walk the tree and yield data files.

        Yields:
            DiscoveredFile for every data file, each absolute path once.
        """
        seen: set[Path] = set()
        expanded: set[Path] = set()
        stack: list[_Frame] = [_Frame(self._root, 0)]

        while stack:
            frame = stack[-1]

            if not frame.listed:
                frame.listed = True
                if frame.depth > self._max_depth:
                    stack.pop()
                    continue
                frame.entries = self._list(frame.directory)
                # Consume from the end, so keep the list reversed
                frame.entries.reverse()

            if not frame.entries:
                stack.pop()
                continue

            entry = frame.entries.pop()
            path = frame.directory / entry.name

            try:
                if entry.is_symlink():
                    logger.debug(f"Skipping symlink: {path}")
                    continue
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError as e:
                logger.warning(f"Cannot stat {path}: {e}")
                continue

            if is_dir:
                if frame.depth == 0 and is_output_dir_name(entry.name):
                    continue
                stack.append(_Frame(path, frame.depth + 1))
                continue

            if is_archive(entry.name):
                if self._expand(path, frame.directory, expanded):
                    # The fresh listing covers the remaining siblings
                    frame.entries.clear()
                    stack.append(_Frame(frame.directory, frame.depth))
                continue

            if is_data_file(entry.name) and path not in seen:
                seen.add(path)
                yield DiscoveredFile(
                    path=path,
                    relative_path=path.relative_to(self._root).as_posix(),
                )

    def _list(self, directory: Path) -> list[os.DirEntry[str]]:
        """List a directory sorted by name; unreadable directories are empty."""
        try:
            with os.scandir(directory) as it:
                return sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.error(f"Error reading dir {directory}: {e}")
            return []

    def _expand(self, archive: Path, directory: Path, expanded: set[Path]) -> bool:
        """Expand an archive once per scan.

        Returns:
            True if the archive was extracted and its directory needs a rescan.
        """
        if self._expander is None or archive in expanded:
            return False
        if not os.path.lexists(archive):
            # Already consumed by an earlier rescan of this directory
            return False
        expanded.add(archive)

        result = self._expander.expand(archive, directory)
        if self._on_expand is not None:
            self._on_expand(result)
        if not result.success:
            logger.error(f"Error unzipping {archive}: {result.error}")
        return result.success
