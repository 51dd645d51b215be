"""HTTP client for the tachograph import service.

This module provides:
- HTTPClient: HTTP client for communicating with the import service
- Credential verification
- FileUpload, UploadResult: Upload request and result
- File upload (base64 JSON body)
"""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx

from tachosync.core.config import ServerConfig

logger = logging.getLogger(__name__)

DOWNLOAD_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Company id or API key rejected."""


@dataclass
class UploadResult:
    """Result of submitting one file to the import service."""

    success: bool
    job_id: str | None = None
    error: str | None = None


@dataclass
class FileUpload:
    """A data file read into memory, ready to submit.

    The download date is the file's modification time.
    """

    file_name: str
    data: bytes
    download_date: datetime

    @classmethod
    def read(cls, path: Path) -> FileUpload:
        """Read a file from disk.

        Raises:
            OSError: If the file cannot be read.
        """
        path = Path(path)
        data = path.read_bytes()
        return cls(
            file_name=path.name,
            data=data,
            download_date=datetime.fromtimestamp(path.stat().st_mtime),
        )

    def to_json(self) -> dict[str, str]:
        """Request body expected by the import endpoint."""
        return {
            "fileName": self.file_name,
            "downloadDate": self.download_date.strftime(DOWNLOAD_DATE_FORMAT),
            "fileBytes": base64.b64encode(self.data).decode("ascii"),
        }


def _error_detail(response: httpx.Response, default: str) -> str:
    """Extract a human-readable error message from a response body."""
    try:
        data: Any = response.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        return str(data.get("message") or data.get("detail") or default)
    return default


class HTTPClient:
    """HTTP client for the tachograph import service.

    Thread-safe: one client is shared by all upload tasks of a cycle.
    """

    def __init__(self, config: ServerConfig) -> None:
        """Initialize the client.

        Args:
            config: Server connection settings.
        """
        self._config = config
        self._client = httpx.Client(
            base_url=config.server_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            headers={"API-KEY": config.api_key},
        )

    @property
    def config(self) -> ServerConfig:
        """Connection settings in use."""
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        if response.status_code in (401, 403):
            raise AuthenticationError(
                _error_detail(response, "Invalid company identifier or API key"),
                response.status_code,
            )
        if response.status_code >= 400:
            raise APIError(_error_detail(response, "Unknown error"), response.status_code)
        return response

    # === Health check ===

    def health_check(self) -> bool:
        """Check if the service answers at all.

        Returns:
            True if the server responded without a server error.
        """
        try:
            response = self._client.get("/")
            return response.status_code < 500
        except httpx.RequestError:
            return False

    # === Credentials ===

    def verify(self) -> None:
        """Verify the company id and API key.

        Raises:
            AuthenticationError: If the credentials are rejected.
            APIError: On any other error response.
            httpx.RequestError: If the service cannot be reached.
        """
        self._handle_response(self._client.get(self._config.verify_path))

    # === Uploads ===

    def upload(self, upload: FileUpload) -> UploadResult:
        """Submit one data file.

        Args:
            upload: File name, download date and content.

        Returns:
            UploadResult; success means the service returned a job id.

        Raises:
            APIError: On an error response.
            httpx.RequestError: On transport failures.
        """
        response = self._handle_response(
            self._client.post(self._config.import_path, json=upload.to_json())
        )

        try:
            body: Any = response.json()
        except ValueError:
            return UploadResult(success=False, error="Malformed response from API")

        job_id = body.get("jobId") if isinstance(body, dict) else None
        if job_id:
            return UploadResult(success=True, job_id=str(job_id))
        return UploadResult(success=False, error="Error occurred by API")

    def upload_file(self, path: Path) -> UploadResult:
        """Read and submit one data file.

        Raises:
            OSError: If the file cannot be read.
            APIError: On an error response.
            httpx.RequestError: On transport failures.
        """
        return self.upload(FileUpload.read(path))
