"""Scan, unpack, upload and relocate tachograph data files.

Architecture:
    TreeScanner → FileTable → SyncCycle → UploadTask → FileRelocator

Components:
- **PathGuard**: Resolves paths and refuses mutations outside the root
- **ArchiveExpander**: Extracts one archive in place, rolls back on failure
- **TreeScanner**: Depth-bounded walk that expands archives as it goes
- **FileTable**: Discovered files and their statuses, as shown to the user
- **SyncCycle**: One scan → upload → relocate pass, one thread per file
- **FileRelocator**: Moves a file (or its first-level folder) to Archived/Failed

All public symbols are re-exported here.
"""

from tachosync.client.sync.archive import EXTRACTION_ERRORS, ArchiveExpander
from tachosync.client.sync.cycle import (
    DEFAULT_SETTLE_DELAY,
    UPLOAD_ERRORS,
    CycleReport,
    SyncCycle,
    UploadTask,
)
from tachosync.client.sync.guard import PathGuard, is_inside, real_resolve
from tachosync.client.sync.relocator import FileRelocator
from tachosync.client.sync.removal import RemovalPolicy, remove_path, safe_remove
from tachosync.client.sync.scanner import TreeScanner
from tachosync.client.sync.table import FileTable
from tachosync.client.sync.types import (
    ARCHIVE_EXTENSION,
    ARCHIVED_DIR,
    DATA_EXTENSIONS,
    FAILED_DIR,
    MAX_SCAN_DEPTH,
    OUTPUT_DIRS,
    ConfigurationError,
    DiscoveredFile,
    ExpandResult,
    FileReport,
    SyncError,
    SyncListener,
    is_archive,
    is_data_file,
    is_output_dir_name,
)

__all__ = [
    # Guard and removal
    "PathGuard",
    "RemovalPolicy",
    "is_inside",
    "real_resolve",
    "remove_path",
    "safe_remove",
    # Archives
    "EXTRACTION_ERRORS",
    "ArchiveExpander",
    # Scanning
    "TreeScanner",
    "FileTable",
    # Cycle
    "DEFAULT_SETTLE_DELAY",
    "UPLOAD_ERRORS",
    "CycleReport",
    "SyncCycle",
    "UploadTask",
    # Relocation
    "FileRelocator",
    # Types
    "ARCHIVE_EXTENSION",
    "ARCHIVED_DIR",
    "DATA_EXTENSIONS",
    "FAILED_DIR",
    "MAX_SCAN_DEPTH",
    "OUTPUT_DIRS",
    "ConfigurationError",
    "DiscoveredFile",
    "ExpandResult",
    "FileReport",
    "SyncError",
    "SyncListener",
    "is_archive",
    "is_data_file",
    "is_output_dir_name",
]
