"""Async client for the Google Drive v3 REST API.

DriveAPI is the capability the MCP handlers depend on. DriveClient is
the production implementation; tests substitute an in-memory fake.
"""

import json
import logging
import secrets
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

import httpx

from gdrive_mcp.auth import OAuthManager, TokenStatus
from gdrive_mcp.drive.models import DriveFile, FileList
from gdrive_mcp.errors import CredentialsError, RemoteFailure

logger = logging.getLogger(__name__)

DRIVE_API_BASE = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_BASE = "https://www.googleapis.com/upload/drive/v3"

DEFAULT_FILE_FIELDS = "id, name, mimeType"


@runtime_checkable
class DriveAPI(Protocol):
    """Drive operations used by the resource and tool handlers.

    Every method is a single round trip and raises RemoteFailure when
    Drive rejects the request.
    """

    async def list_files(
        self,
        query: str | None = None,
        page_size: int = 10,
        fields: str = "nextPageToken, files(id, name, mimeType)",
        page_token: str | None = None,
    ) -> FileList:
        """Fetch one page of files matching ``query``."""
        ...

    async def get_metadata(self, file_id: str, fields: str = DEFAULT_FILE_FIELDS) -> DriveFile:
        """Fetch file metadata."""
        ...

    async def download(self, file_id: str) -> bytes:
        """Fetch the raw media bytes of a non-native file."""
        ...

    async def export(self, file_id: str, mime_type: str) -> bytes:
        """Convert a Google-native file server-side and return the bytes."""
        ...

    async def create(self, name: str, mime_type: str, content: bytes) -> DriveFile:
        """Create a new file with the given body."""
        ...

    async def update_media(self, file_id: str, content: bytes, mime_type: str) -> DriveFile:
        """Replace the whole body of an existing file."""
        ...

    async def delete(self, file_id: str) -> None:
        """Permanently delete a file."""
        ...


def _error_message(response: httpx.Response) -> str:
    """Extract the human-readable message from a Drive error response."""
    try:
        payload = response.json()
        message = payload["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = response.text or response.reason_phrase
    return f"Google Drive API error ({response.status_code}): {message}"


class DriveClient:
    """DriveAPI implementation backed by httpx.

    Authenticates with the stored OAuth token and refreshes it through
    the OAuthManager when it has expired. No request is retried.

    Attributes:
        manager: OAuthManager owning the stored credentials.
    """

    def __init__(
        self,
        manager: OAuthManager,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            manager: OAuthManager used to read and refresh credentials.
            http_client: Optional preconfigured httpx client. A pooled HTTP/2
                client is created lazily when omitted.
        """
        self.manager = manager
        self._http_client = http_client

    async def _get_http_client(self) -> httpx.AsyncClient:
        """Get or create shared HTTP client with connection pooling."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                http2=True,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
                timeout=httpx.Timeout(30.0, connect=10.0),
            )
        return self._http_client

    async def close(self) -> None:
        """Close the shared HTTP client and release resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _get_access_token(self) -> str:
        """Get a valid access token, refreshing if necessary.

        Raises:
            CredentialsError: If no usable token is stored or refresh fails.
        """
        status = self.manager.storage.get_status()

        if status == TokenStatus.MISSING:
            raise CredentialsError(
                f"No Google Drive credentials found at {self.manager.token_path}. "
                "Run 'gdrive-mcp auth' first."
            )

        if status == TokenStatus.INVALID:
            raise CredentialsError(
                f"Credentials at {self.manager.token_path} are invalid or corrupted. "
                "Run 'gdrive-mcp auth' to re-authenticate."
            )

        if status == TokenStatus.EXPIRED:
            try:
                token = await self.manager.refresh_if_needed()
            except Exception as e:
                raise CredentialsError(f"Token refresh failed: {e}") from e
            if token is None:
                raise CredentialsError(
                    "Token expired and cannot be refreshed. Run 'gdrive-mcp auth' again."
                )
            return token.access_token

        stored = self.manager.storage.retrieve()
        if stored is None:
            raise CredentialsError("Unexpected error: credential retrieval failed")
        return stored.token.access_token

    async def _make_raw_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
    ) -> httpx.Response:
        """Make an authenticated HTTP request returning the raw response.

        Raises:
            RemoteFailure: If Drive returns an error status or is unreachable.
        """
        access_token = await self._get_access_token()
        client = await self._get_http_client()

        request_headers = {"Authorization": f"Bearer {access_token}"}
        if headers:
            request_headers.update(headers)

        logger.debug(f"{method} {url} params={params}")
        try:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                content=content,
                headers=request_headers,
                timeout=timeout,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteFailure(
                _error_message(e.response), status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise RemoteFailure(f"Google Drive request failed: {e}") from e
        return response

    async def _make_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        timeout: float = 30.0,
    ) -> dict[str, Any]:
        """Make an authenticated request and decode the JSON response."""
        request_headers = {"Accept": "application/json"}
        if headers:
            request_headers.update(headers)
        response = await self._make_raw_request(
            method, url, params=params, content=content, headers=request_headers, timeout=timeout
        )
        result: dict[str, Any] = response.json()
        return result

    @staticmethod
    def _file_url(file_id: str, base: str = DRIVE_API_BASE) -> str:
        return f"{base}/files/{quote(file_id, safe='')}"

    async def list_files(
        self,
        query: str | None = None,
        page_size: int = 10,
        fields: str = "nextPageToken, files(id, name, mimeType)",
        page_token: str | None = None,
    ) -> FileList:
        """Fetch one page of files.

        Args:
            query: Drive query string, or None for all files.
            page_size: Maximum number of files to return.
            fields: Partial response selector.
            page_token: Cursor from a previous page, passed through unchanged.

        Returns:
            The page of files and the next page token, if any.
        """
        params: dict[str, Any] = {"pageSize": page_size, "fields": fields}
        if query:
            params["q"] = query
        if page_token:
            params["pageToken"] = page_token

        response = await self._make_request("GET", f"{DRIVE_API_BASE}/files", params=params)
        return FileList.model_validate(response)

    async def get_metadata(self, file_id: str, fields: str = DEFAULT_FILE_FIELDS) -> DriveFile:
        """Fetch file metadata."""
        response = await self._make_request(
            "GET", self._file_url(file_id), params={"fields": fields}
        )
        return DriveFile.model_validate(response)

    async def download(self, file_id: str) -> bytes:
        """Fetch the raw media bytes of a file."""
        response = await self._make_raw_request(
            "GET", self._file_url(file_id), params={"alt": "media"}, timeout=60.0
        )
        return response.content

    async def export(self, file_id: str, mime_type: str) -> bytes:
        """Export a Google-native file to ``mime_type``."""
        response = await self._make_raw_request(
            "GET",
            f"{self._file_url(file_id)}/export",
            params={"mimeType": mime_type},
            timeout=60.0,
        )
        return response.content

    async def create(self, name: str, mime_type: str, content: bytes) -> DriveFile:
        """Create a file using a multipart upload.

        Args:
            name: File name.
            mime_type: Media type of both the file and the uploaded body.
            content: File body.

        Returns:
            The created file.
        """
        metadata = {"name": name, "mimeType": mime_type}
        boundary = f"gdrive_mcp_{secrets.token_hex(16)}"
        body = b"\r\n".join(
            [
                f"--{boundary}".encode(),
                b"Content-Type: application/json; charset=UTF-8",
                b"",
                json.dumps(metadata).encode("utf-8"),
                f"--{boundary}".encode(),
                f"Content-Type: {mime_type}".encode(),
                b"",
                content,
                f"--{boundary}--".encode(),
            ]
        )

        response = await self._make_request(
            "POST",
            f"{DRIVE_UPLOAD_BASE}/files",
            params={"uploadType": "multipart", "fields": DEFAULT_FILE_FIELDS},
            content=body,
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
            timeout=60.0,
        )
        return DriveFile.model_validate(response)

    async def update_media(self, file_id: str, content: bytes, mime_type: str) -> DriveFile:
        """Replace the body of an existing file with a simple media upload."""
        response = await self._make_request(
            "PATCH",
            self._file_url(file_id, base=DRIVE_UPLOAD_BASE),
            params={"uploadType": "media", "fields": DEFAULT_FILE_FIELDS},
            content=content,
            headers={"Content-Type": mime_type},
            timeout=60.0,
        )
        return DriveFile.model_validate(response)

    async def delete(self, file_id: str) -> None:
        """Permanently delete a file (bypasses the trash)."""
        await self._make_raw_request("DELETE", self._file_url(file_id))
