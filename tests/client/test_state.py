"""Tests for persisted settings."""

from datetime import datetime
from pathlib import Path

import pytest

from tachosync.client.state import SettingsStore
from tachosync.core.types import ScheduleTrigger


@pytest.fixture
def settings(tmp_path: Path) -> SettingsStore:
    """Create a SettingsStore instance."""
    s = SettingsStore(tmp_path / "settings.db")
    yield s
    s.close()


class TestSettingsStoreCreation:
    """Tests for SettingsStore initialization."""

    def test_creates_database(self, tmp_path: Path) -> None:
        """Should create database file."""
        db_path = tmp_path / "settings.db"
        store = SettingsStore(db_path)

        assert db_path.exists()
        store.close()

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        """Should create parent directories."""
        db_path = tmp_path / "subdir" / "nested" / "settings.db"
        store = SettingsStore(db_path)

        assert db_path.exists()
        store.close()

    def test_reopens_existing_db(self, tmp_path: Path) -> None:
        """Should keep values across reopen."""
        db_path = tmp_path / "settings.db"
        store1 = SettingsStore(db_path)
        store1.set_schedule(ScheduleTrigger.EVERY_12H)
        store1.close()

        store2 = SettingsStore(db_path)
        assert store2.get_schedule() is ScheduleTrigger.EVERY_12H
        store2.close()


class TestSettingsValues:
    """Tests for typed settings."""

    def test_raw_get_set(self, settings: SettingsStore) -> None:
        """Should store and overwrite raw values."""
        assert settings.get("x") is None
        settings.set("x", "1")
        settings.set("x", "2")

        assert settings.get("x") == "2"
        assert settings.all() == {"x": "2"}

    def test_delete(self, settings: SettingsStore) -> None:
        """Should remove a value."""
        settings.set("x", "1")
        settings.delete("x")

        assert settings.get("x") is None

    def test_credentials(self, settings: SettingsStore) -> None:
        """Should round-trip credentials."""
        assert settings.get_credentials() is None
        settings.set_credentials("123e4567-e89b-12d3-a456-426614174000", "key")

        assert settings.get_credentials() == ("123e4567-e89b-12d3-a456-426614174000", "key")
        assert settings.get("company_id") == "123e4567-e89b-12d3-a456-426614174000"
        assert settings.get("api_key") == "key"

    def test_incomplete_credentials(self, settings: SettingsStore) -> None:
        """Missing api key should count as not connected."""
        settings.set("company_id", "123e4567-e89b-12d3-a456-426614174000")

        assert settings.get_credentials() is None

    def test_folder(self, settings: SettingsStore, tmp_path: Path) -> None:
        """Should round-trip the folder path."""
        assert settings.get_folder() is None
        settings.set_folder(tmp_path)

        assert settings.get_folder() == tmp_path
        assert settings.get("folder_path") == str(tmp_path)

    def test_schedule_stored_values(self, settings: SettingsStore) -> None:
        """Should store the raw trigger values."""
        assert settings.get_schedule() is ScheduleTrigger.MANUAL
        settings.set_schedule(ScheduleTrigger.APPLICATION_START)

        assert settings.get("sync_schedule") == "application_start"
        assert settings.get_schedule() is ScheduleTrigger.APPLICATION_START

    def test_unknown_schedule_is_manual(self, settings: SettingsStore) -> None:
        """An unknown stored trigger should read as manual."""
        settings.set("sync_schedule", "6H")

        assert settings.get_schedule() is ScheduleTrigger.MANUAL

    def test_last_sync(self, settings: SettingsStore) -> None:
        """Should round-trip the last sync time to the second."""
        assert settings.get_last_sync() is None
        settings.set_last_sync(datetime(2024, 5, 1, 10, 30, 15, 999))

        assert settings.get_last_sync() == datetime(2024, 5, 1, 10, 30, 15)

    def test_unreadable_last_sync(self, settings: SettingsStore) -> None:
        """A garbled last sync value should be ignored."""
        settings.set("last_sync", "5/1/2024, 10:30:15 AM")

        assert settings.get_last_sync() is None
