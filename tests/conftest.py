"""Shared pytest fixtures for gdrive-mcp tests.

This module provides reusable fixtures for token storage, OAuth,
and an in-memory Drive API fake that records every call.
"""

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from gdrive_mcp.auth.models import OAuthToken, StoredToken, TokenMetadata
from gdrive_mcp.drive.models import DriveFile, FileList

# =============================================================================
# Token Fixtures
# =============================================================================


@pytest.fixture
def valid_token() -> OAuthToken:
    """Create a valid, non-expired OAuth token."""
    return OAuthToken(
        access_token="test_access_token_abc123",
        refresh_token="test_refresh_token_xyz789",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        scopes=["https://www.googleapis.com/auth/drive"],
        token_type="Bearer",
    )


@pytest.fixture
def expired_token() -> OAuthToken:
    """Create an expired OAuth token."""
    return OAuthToken(
        access_token="expired_access_token",
        refresh_token="test_refresh_token",
        expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
        scopes=["https://www.googleapis.com/auth/drive"],
        token_type="Bearer",
    )


@pytest.fixture
def token_metadata() -> TokenMetadata:
    """Create token metadata for testing."""
    return TokenMetadata(
        service_name="gdrive-mcp",
        provider="google",
        created_at=datetime.now(timezone.utc) - timedelta(days=1),
    )


@pytest.fixture
def stored_token(valid_token: OAuthToken, token_metadata: TokenMetadata) -> StoredToken:
    """Create a complete stored token for testing."""
    return StoredToken(version=1, metadata=token_metadata, token=valid_token)


# =============================================================================
# Token Storage Fixtures
# =============================================================================


@pytest.fixture
def temp_token_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for credential storage tests."""
    token_dir = tmp_path / ".gmail-mcp"
    token_dir.mkdir(parents=True, mode=0o700)
    return token_dir


@pytest.fixture
def temp_token_path(temp_token_dir: Path) -> Path:
    """Get the path for a temporary credentials.json file."""
    return temp_token_dir / "credentials.json"


@pytest.fixture
def temp_keys_path(temp_token_dir: Path) -> Path:
    """Write an OAuth client keys file and return its path."""
    keys_path = temp_token_dir / "gcp-oauth.keys.json"
    keys_path.write_text(
        '{"installed": {"client_id": "test-client-id", '
        '"client_secret": "test-client-secret", '  # pragma: allowlist secret
        '"auth_uri": "https://accounts.google.com/o/oauth2/auth", '
        '"token_uri": "https://oauth2.googleapis.com/token", '
        '"redirect_uris": ["http://localhost"]}}'
    )
    return keys_path


@pytest.fixture
def token_storage(temp_token_path: Path):
    """Create a TokenStorage instance with temporary storage."""
    from gdrive_mcp.auth.token_storage import TokenStorage

    return TokenStorage(token_path=temp_token_path)


@pytest.fixture
def oauth_manager(token_storage, temp_keys_path: Path):
    """Create an OAuthManager with temporary storage and keys."""
    from gdrive_mcp.auth.oauth_manager import OAuthManager

    return OAuthManager(storage=token_storage, keys_path=temp_keys_path)


@pytest.fixture
def mock_google_credentials() -> MagicMock:
    """Create a mock Google OAuth2 Credentials object."""
    mock_creds = MagicMock()
    mock_creds.token = "mock_access_token"
    mock_creds.refresh_token = "mock_refresh_token"
    mock_creds.expiry = datetime.now(timezone.utc) + timedelta(hours=1)
    mock_creds.expired = False
    mock_creds.valid = True
    mock_creds.scopes = ["https://www.googleapis.com/auth/drive"]
    return mock_creds


# =============================================================================
# Fake Drive API
# =============================================================================


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", r"\1", value)


class FakeDrive:
    """In-memory DriveAPI.

    Understands the two query shapes the server builds (exact name and
    full-text search). Every call is appended to ``calls`` as
    ``(method, args)``.
    """

    def __init__(self) -> None:
        self.files: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._next_id = 0

    def add_file(
        self,
        name: str,
        content: bytes | str = b"",
        mime_type: str = "text/plain",
        file_id: str | None = None,
        exports: dict[str, bytes] | None = None,
    ) -> str:
        """Add a file and return its ID (a 28-character ID when not given)."""
        if file_id is None:
            self._next_id += 1
            file_id = f"fake_file_id_{self._next_id:015d}"
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.files[file_id] = {
            "name": name,
            "mimeType": mime_type,
            "content": content,
            "exports": exports or {},
        }
        return file_id

    def content_of(self, file_id: str) -> str:
        return self.files[file_id]["content"].decode("utf-8")

    def calls_to(self, method: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == method]

    def _as_drive_file(self, file_id: str) -> DriveFile:
        entry = self.files[file_id]
        return DriveFile(
            id=file_id,
            name=entry["name"],
            mimeType=entry["mimeType"],
            size=str(len(entry["content"])),
        )

    def _matches(self, query: str | None, file_id: str) -> bool:
        if query is None:
            return True
        entry = self.files[file_id]
        name_match = re.fullmatch(r"name = '(.*)'", query, re.DOTALL)
        if name_match:
            return entry["name"] == _unescape(name_match.group(1))
        text_match = re.fullmatch(r"fullText contains '(.*)'", query, re.DOTALL)
        if text_match:
            needle = _unescape(text_match.group(1))
            return needle in entry["name"] or needle.encode("utf-8") in entry["content"]
        raise AssertionError(f"Unexpected query: {query}")

    async def list_files(
        self,
        query: str | None = None,
        page_size: int = 10,
        fields: str = "nextPageToken, files(id, name, mimeType)",
        page_token: str | None = None,
    ) -> FileList:
        self.calls.append(("list_files", (query, page_size, fields, page_token)))
        matching = [fid for fid in self.files if self._matches(query, fid)]
        start = int(page_token) if page_token else 0
        page = matching[start : start + page_size]
        next_token = str(start + page_size) if start + page_size < len(matching) else None
        return FileList(
            files=[self._as_drive_file(fid) for fid in page],
            nextPageToken=next_token,
        )

    async def get_metadata(self, file_id: str, fields: str = "id, name, mimeType") -> DriveFile:
        self.calls.append(("get_metadata", (file_id, fields)))
        return self._as_drive_file(file_id)

    async def download(self, file_id: str) -> bytes:
        self.calls.append(("download", (file_id,)))
        return self.files[file_id]["content"]

    async def export(self, file_id: str, mime_type: str) -> bytes:
        self.calls.append(("export", (file_id, mime_type)))
        return self.files[file_id]["exports"][mime_type]

    async def create(self, name: str, mime_type: str, content: bytes) -> DriveFile:
        self.calls.append(("create", (name, mime_type, content)))
        file_id = self.add_file(name, content, mime_type)
        return self._as_drive_file(file_id)

    async def update_media(self, file_id: str, content: bytes, mime_type: str) -> DriveFile:
        self.calls.append(("update_media", (file_id, content, mime_type)))
        self.files[file_id]["content"] = content
        return self._as_drive_file(file_id)

    async def delete(self, file_id: str) -> None:
        self.calls.append(("delete", (file_id,)))
        del self.files[file_id]


@pytest.fixture
def fake_drive() -> FakeDrive:
    """Create an empty in-memory Drive."""
    return FakeDrive()


# =============================================================================
# CLI Test Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
