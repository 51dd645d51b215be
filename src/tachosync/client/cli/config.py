"""Configuration utilities for the tachosync CLI.

This module provides shared configuration functions used across CLI commands.

Files under ~/.tachosync:
- config.json: server_url, removal_policy, settle_delay
- settings.db: credentials, folder, schedule and last sync
- log.txt: log output
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

from tachosync.client.state import SettingsStore
from tachosync.client.sync import DEFAULT_SETTLE_DELAY, RemovalPolicy

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_config_dir() -> Path:
    """Get the configuration directory for tachosync.

    Returns:
        Path to ~/.tachosync or equivalent.
    """
    return Path.home() / ".tachosync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_settings_db() -> Path:
    """Get the path to the settings database."""
    return get_config_dir() / "settings.db"


def get_log_file() -> Path:
    """Get the path to the log file."""
    return get_config_dir() / "log.txt"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_server_url() -> str | None:
    """Get the import service URL, if configured."""
    return load_config().get("server_url") or None


def get_removal_policy() -> RemovalPolicy:
    """Get how archives and replaced destinations are removed (trash by default)."""
    return RemovalPolicy.parse(load_config().get("removal_policy"))


def get_settle_delay() -> float:
    """Get the pause between file-list refresh and uploads, in seconds."""
    value = load_config().get("settle_delay")
    if value is None:
        return DEFAULT_SETTLE_DELAY
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return DEFAULT_SETTLE_DELAY


def open_settings() -> SettingsStore:
    """Open the settings database."""
    return SettingsStore(get_settings_db())


def setup_logging(verbose: bool = False) -> None:
    """Configure logging to output to both file and stdout.

    Args:
        verbose: Log at DEBUG level instead of INFO.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    # Root logger for tachosync
    root_logger = logging.getLogger("tachosync")
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    # Stdout handler, warnings only unless verbose
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root_logger.addHandler(stdout_handler)

    # File handler
    log_file = get_log_file()
    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
