"""Sync session: everything one sync agent instance works with.

This module provides:
- SyncSession: Holds credentials, root folder, upload client, file table
  and listener, and builds sync cycles from them

The session replaces process-wide state: the scheduler and the CLI are
handed a session and never read credentials or the root from anywhere else.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path

import httpx

from tachosync.client.api import APIError, AuthenticationError, HTTPClient
from tachosync.client.state import SettingsStore
from tachosync.client.sync import (
    DEFAULT_SETTLE_DELAY,
    ArchiveExpander,
    ConfigurationError,
    CycleReport,
    FileRelocator,
    FileReport,
    FileTable,
    RemovalPolicy,
    SyncCycle,
    SyncListener,
    TreeScanner,
    real_resolve,
)
from tachosync.core.config import COMPANY_ID_EXAMPLE, ServerConfig, is_valid_company_id
from tachosync.core.types import TriggerReason

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ServerConfig], HTTPClient]


class SyncSession:
    """Explicit state of one sync agent.

    Usage:
        session = SyncSession(settings, server_url="https://import.example.com")
        session.connect(company_id, api_key)
        session.set_root("/data/tacho")
        report = session.sync_now()
    """

    def __init__(
        self,
        settings: SettingsStore,
        server_url: str | None = None,
        listener: SyncListener | None = None,
        policy: RemovalPolicy = RemovalPolicy.TRASH,
        settle_delay: float = DEFAULT_SETTLE_DELAY,
        timeout: float = 30.0,
        client_factory: ClientFactory = HTTPClient,
    ) -> None:
        """Initialize the session from persisted settings.

        Args:
            settings: Settings store holding credentials, folder and schedule.
            server_url: Base URL of the import service.
            listener: Front-end callbacks.
            policy: How archives and replaced destinations are removed.
            settle_delay: Pause between file-list refresh and uploads.
            timeout: HTTP request timeout in seconds.
            client_factory: Builds the upload client (replaced in tests).
        """
        self._settings = settings
        self._server_url = server_url
        self._listener = listener or SyncListener()
        self._policy = policy
        self._settle_delay = settle_delay
        self._timeout = timeout
        self._client_factory = client_factory

        self._table = FileTable()
        self._client: HTTPClient | None = None
        self._relocator: FileRelocator | None = None
        self._connected = False
        self._lock = threading.Lock()

    @property
    def settings(self) -> SettingsStore:
        """Settings store backing the session."""
        return self._settings

    @property
    def listener(self) -> SyncListener:
        """Front-end callbacks."""
        return self._listener

    @property
    def table(self) -> FileTable:
        """Discovered files and their statuses."""
        return self._table

    @property
    def root(self) -> Path | None:
        """Selected root directory, if any."""
        return self._settings.get_folder()

    @property
    def connected(self) -> bool:
        """Whether the credentials were verified in this session."""
        return self._connected

    def _log(self, message: str) -> None:
        """Send a user-facing line to the listener."""
        self._listener.on_log(message)

    # === Connection ===

    def server_config(self) -> ServerConfig | None:
        """Connection settings from the stored credentials, if complete."""
        credentials = self._settings.get_credentials()
        if credentials is None or not self._server_url:
            return None
        company_id, api_key = credentials
        return ServerConfig(
            server_url=self._server_url,
            company_id=company_id,
            api_key=api_key,
            timeout=self._timeout,
        )

    def connect(self, company_id: str, api_key: str) -> bool:
        """Verify credentials with the import service and store them.

        Errors are reported through the listener, never raised.

        Returns:
            True if the service accepted the credentials.
        """
        with self._lock:
            self._connected = False

        if not company_id or not api_key:
            self._log("Please fill company identifier and api key.")
            return False
        if not is_valid_company_id(company_id):
            self._log(f"Company Identifier format is invalid. Example: {COMPANY_ID_EXAMPLE}")
            return False
        if not self._server_url:
            self._log("No server URL configured")
            return False

        config = ServerConfig(
            server_url=self._server_url,
            company_id=company_id,
            api_key=api_key,
            timeout=self._timeout,
        )
        client = self._client_factory(config)
        try:
            client.verify()
        except AuthenticationError as e:
            logger.warning(f"Credentials rejected for company {company_id}: {e}")
            client.close()
            self._log(str(e) or "Cannot connect")
            return False
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Cannot connect to {self._server_url}: {e}")
            client.close()
            self._log(str(e) or "Cannot connect")
            return False

        self._settings.set_credentials(company_id, api_key)
        with self._lock:
            previous, self._client = self._client, client
            self._connected = True
        if previous is not None:
            previous.close()

        logger.info(f"Connected to {self._server_url} for company {company_id}")
        self._log("Connected")
        return True

    def reconnect(self) -> bool:
        """Verify the stored credentials again.

        Returns:
            True if the service accepted them.
        """
        credentials = self._settings.get_credentials()
        if credentials is None:
            self._log("Error: Please connect first")
            return False
        return self.connect(*credentials)

    def _get_client(self) -> HTTPClient:
        """Upload client for the stored credentials."""
        with self._lock:
            if self._client is None:
                config = self.server_config()
                if config is None:
                    raise ConfigurationError("Please connect first")
                self._client = self._client_factory(config)
            return self._client

    # === Folder ===

    def set_root(self, path: str | os.PathLike[str]) -> Path:
        """Select the root directory.

        Raises:
            ConfigurationError: If the path is not an existing directory.

        Returns:
            The resolved root.
        """
        root = real_resolve(Path(path).expanduser())
        if not root.is_dir():
            raise ConfigurationError(f"Not a directory: {path}")
        self._settings.set_folder(root)
        self._table.clear()
        logger.info(f"Sync folder set to {root}")
        return root

    def root_exists(self) -> bool:
        """Whether the selected root is still an existing directory."""
        root = self.root
        return root is not None and root.is_dir()

    def _scanner(self, root: Path) -> TreeScanner:
        """Scanner for the root, expanding archives in place."""
        return TreeScanner(root, ArchiveExpander(root, self._policy))

    def refresh_files(self) -> list[FileReport]:
        """Rescan the root and rebuild the file table.

        Archives under the root are expanded as part of the scan.

        Raises:
            ConfigurationError: If no usable root is selected.
        """
        root = self.root
        if root is None:
            raise ConfigurationError("Select folder first")
        if not root.is_dir():
            raise ConfigurationError(f"Folder does not exist: {root}")
        reports = self._table.refresh(self._scanner(root))
        self._listener.on_files(reports)
        return reports

    # === Sync ===

    def validate(self) -> str | None:
        """Check the session can run a cycle.

        Returns:
            An error message, or None when ready.
        """
        root = self.root
        if root is None:
            return "Error: Select folder first"
        if not root.is_dir():
            return f"Error: Folder does not exist: {root}"
        if self.server_config() is None:
            return "Error: Please connect first"
        return None

    def build_cycle(self) -> SyncCycle:
        """Build a cycle for the current root and credentials.

        Raises:
            ConfigurationError: If the session is not ready.
        """
        error = self.validate()
        root = self.root
        if error is not None or root is None:
            raise ConfigurationError(error or "Error: Select folder first")
        return SyncCycle(
            scanner=self._scanner(root),
            client=self._get_client(),
            table=self._table,
            relocator=self._relocator_for(root),
            listener=self._listener,
            settle_delay=self._settle_delay,
            on_last_sync=self._settings.set_last_sync,
        )

    def _relocator_for(self, root: Path) -> FileRelocator:
        """Relocator shared by every cycle on the same root."""
        with self._lock:
            if self._relocator is None or self._relocator.root != real_resolve(root):
                self._relocator = FileRelocator(root, self._policy)
            return self._relocator

    def sync_now(self, reason: TriggerReason = TriggerReason.MANUAL) -> CycleReport | None:
        """Run one cycle.

        Configuration errors are reported through the listener and no
        cycle starts.

        Returns:
            The cycle report, or None if the cycle was not started.
        """
        try:
            cycle = self.build_cycle()
        except ConfigurationError as e:
            logger.error(f"Cannot start {reason.value} sync: {e}")
            self._log(str(e))
            return None
        return cycle.run(reason)

    def close(self) -> None:
        """Close the upload client."""
        with self._lock:
            client, self._client = self._client, None
            self._connected = False
        if client is not None:
            client.close()
