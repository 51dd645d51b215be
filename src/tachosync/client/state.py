"""Persisted settings for the sync client.

This module provides:
- SettingsStore: SQLite-backed key/value settings

Stored keys:
    api_key, company_id: Import service credentials
    folder_path: Root directory being synchronized
    sync_schedule: Trigger mode ("", "application_start", "1H", "12H", "24H")
    last_sync: Timestamp of the last cycle, ISO format
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from tachosync.core.types import ScheduleTrigger

logger = logging.getLogger(__name__)

API_KEY = "api_key"
COMPANY_ID = "company_id"
FOLDER_PATH = "folder_path"
SYNC_SCHEDULE = "sync_schedule"
LAST_SYNC = "last_sync"


class SettingsStore:
    """SQLite key/value store for the client settings.

    Thread-safe: upload threads persist the last-sync time while the
    scheduler reads the schedule.
    """

    def __init__(self, db_path: Path) -> None:
        """Open (and create if needed) the settings database.

        Args:
            db_path: Path to SQLite database file.
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        self._lock = threading.RLock()

        self._conn = sqlite3.connect(
            str(self._db_path),
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")

        self._create_tables()

    def _create_tables(self) -> None:
        """Create the settings table if it doesn't exist."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS settings (
                name TEXT PRIMARY KEY,
                value TEXT
            );
        """)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    # === Raw access ===

    def get(self, name: str) -> str | None:
        """Get a setting value."""
        with self._lock:
            cursor = self._conn.execute(
                "SELECT value FROM settings WHERE name = ?",
                (name,),
            )
            row = cursor.fetchone()
        return row["value"] if row else None

    def set(self, name: str, value: str) -> None:
        """Set a setting value."""
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO settings (name, value) VALUES (?, ?)",
                (name, value),
            )

    def delete(self, name: str) -> None:
        """Remove a setting."""
        with self._lock:
            self._conn.execute("DELETE FROM settings WHERE name = ?", (name,))

    def all(self) -> dict[str, str]:
        """All settings as a dict."""
        with self._lock:
            rows = self._conn.execute("SELECT name, value FROM settings ORDER BY name").fetchall()
        return {row["name"]: row["value"] for row in rows}

    # === Credentials ===

    def get_credentials(self) -> tuple[str, str] | None:
        """Get (company_id, api_key), or None if not connected."""
        company_id = self.get(COMPANY_ID)
        api_key = self.get(API_KEY)
        if not company_id or not api_key:
            return None
        return company_id, api_key

    def set_credentials(self, company_id: str, api_key: str) -> None:
        """Store the verified credentials."""
        self.set(COMPANY_ID, company_id)
        self.set(API_KEY, api_key)

    # === Folder ===

    def get_folder(self) -> Path | None:
        """Get the selected root directory."""
        value = self.get(FOLDER_PATH)
        return Path(value) if value else None

    def set_folder(self, path: Path) -> None:
        """Set the root directory."""
        self.set(FOLDER_PATH, str(path))

    # === Schedule ===

    def get_schedule(self) -> ScheduleTrigger:
        """Get the saved trigger mode (MANUAL when unset or unknown)."""
        return ScheduleTrigger.parse(self.get(SYNC_SCHEDULE))

    def set_schedule(self, trigger: ScheduleTrigger) -> None:
        """Save the trigger mode."""
        self.set(SYNC_SCHEDULE, trigger.value)

    # === Last sync ===

    def get_last_sync(self) -> datetime | None:
        """Get the timestamp of the last cycle."""
        value = self.get(LAST_SYNC)
        if not value:
            return None
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            logger.warning(f"Ignoring unreadable last sync value: {value!r}")
            return None

    def set_last_sync(self, timestamp: datetime) -> None:
        """Set the timestamp of the last cycle."""
        self.set(LAST_SYNC, timestamp.isoformat(timespec="seconds"))
