"""Shared configuration classes for tachosync.

This module defines the connection settings used by the HTTP client and the
sync session.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

IMPORT_API_PATH = "/api/v2/tachofile/import/company"

# RFC 4122 UUID, versions 1-5
COMPANY_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
COMPANY_ID_EXAMPLE = "123e4567-e89b-12d3-a456-426614174000"


def is_valid_company_id(value: str) -> bool:
    """Check that a company identifier is a well-formed UUID."""
    return COMPANY_ID_PATTERN.fullmatch(value) is not None


@dataclass
class ServerConfig:
    """Configuration for connecting to the tachograph import service.

    Attributes:
        server_url: Base URL of the service (e.g., "https://import.example.com").
        company_id: Company identifier (UUID) the files are imported for.
        api_key: API key sent in the ``API-KEY`` header.
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    server_url: str
    company_id: str
    api_key: str
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize server URL."""
        self.server_url = self.server_url.rstrip("/")

    @property
    def import_path(self) -> str:
        """Path of the company's import endpoint, relative to server_url."""
        return f"{IMPORT_API_PATH}/{self.company_id}"

    @property
    def verify_path(self) -> str:
        """Path of the credential verification endpoint."""
        return f"{self.import_path}/verify"

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS.

        Returns:
            True if server uses HTTPS.
        """
        return self.server_url.startswith("https://")
