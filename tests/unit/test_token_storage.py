"""Unit tests for TokenStorage.

Tests cover credential persistence, legacy format loading and status.
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from gdrive_mcp.auth.models import OAuthToken, TokenMetadata, TokenStatus
from gdrive_mcp.auth.token_storage import TokenStorage


@pytest.mark.unit
class TestTokenStorageInit:
    """Tests for TokenStorage initialization."""

    def test_should_use_environment_path_by_default(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        custom = tmp_path / "creds" / "drive.json"
        monkeypatch.setenv("GDRIVE_CREDENTIALS_PATH", str(custom))

        storage = TokenStorage()

        assert storage.token_path == custom

    def test_should_default_under_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GDRIVE_CREDENTIALS_PATH", raising=False)

        storage = TokenStorage()

        assert storage.token_path == Path.home() / ".gmail-mcp" / "credentials.json"

    def test_should_accept_custom_path(self, temp_token_path: Path) -> None:
        storage = TokenStorage(token_path=temp_token_path)
        assert storage.token_path == temp_token_path

    def test_should_not_create_directory_until_store(self, tmp_path: Path) -> None:
        TokenStorage(token_path=tmp_path / "later" / "credentials.json")

        assert not (tmp_path / "later").exists()


@pytest.mark.unit
class TestTokenStorageStore:
    """Tests for TokenStorage.store()."""

    def test_should_store_token(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store(valid_token, token_metadata)

        with open(token_storage.token_path) as f:
            data = json.load(f)
        assert data["version"] == 1
        assert data["token"]["access_token"] == valid_token.access_token

    def test_should_create_directory_with_secure_permissions(
        self, tmp_path: Path, valid_token: OAuthToken, token_metadata: TokenMetadata
    ) -> None:
        storage = TokenStorage(token_path=tmp_path / "new_dir" / "credentials.json")

        storage.store(valid_token, token_metadata)

        assert (tmp_path / "new_dir").stat().st_mode & 0o777 == 0o700

    def test_should_set_secure_file_permissions(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store(valid_token, token_metadata)

        assert token_storage.token_path.stat().st_mode & 0o777 == 0o600

    def test_should_overwrite_existing_token(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store(valid_token, token_metadata)
        new_token = OAuthToken(
            access_token="new_token",
            expires_at=datetime.now(timezone.utc) + timedelta(hours=2),
        )

        token_storage.store(new_token, token_metadata)

        assert token_storage.retrieve().token.access_token == "new_token"


@pytest.mark.unit
class TestTokenStorageRetrieve:
    """Tests for TokenStorage.retrieve()."""

    def test_should_round_trip_stored_token(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store(valid_token, token_metadata)

        retrieved = token_storage.retrieve()

        assert retrieved is not None
        assert retrieved.token.access_token == valid_token.access_token
        assert retrieved.token.refresh_token == valid_token.refresh_token

    def test_should_return_none_when_missing(self, token_storage: TokenStorage) -> None:
        assert token_storage.retrieve() is None

    def test_should_return_none_for_corrupt_json(self, token_storage: TokenStorage) -> None:
        token_storage.token_path.write_text("{not json")

        assert token_storage.retrieve() is None

    def test_should_read_legacy_node_credentials(self, token_storage: TokenStorage) -> None:
        expiry_ms = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp() * 1000)
        token_storage.token_path.write_text(
            json.dumps(
                {
                    "access_token": "ya29.legacy",
                    "refresh_token": "1//refresh",
                    "scope": "https://www.googleapis.com/auth/drive",
                    "token_type": "Bearer",
                    "expiry_date": expiry_ms,
                }
            )
        )

        retrieved = token_storage.retrieve()

        assert retrieved is not None
        assert retrieved.token.access_token == "ya29.legacy"
        assert token_storage.get_status() == TokenStatus.VALID


@pytest.mark.unit
class TestTokenStorageStatus:
    """Tests for TokenStorage.get_status() and delete()."""

    def test_should_report_missing(self, token_storage: TokenStorage) -> None:
        assert token_storage.get_status() == TokenStatus.MISSING

    def test_should_report_invalid(self, token_storage: TokenStorage) -> None:
        token_storage.token_path.write_text('{"token": {"unexpected": 1}}')

        assert token_storage.get_status() == TokenStatus.INVALID

    def test_should_report_expired(
        self,
        token_storage: TokenStorage,
        expired_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store(expired_token, token_metadata)

        assert token_storage.get_status() == TokenStatus.EXPIRED

    def test_should_report_valid(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store(valid_token, token_metadata)

        assert token_storage.get_status() == TokenStatus.VALID

    def test_should_delete_token(
        self,
        token_storage: TokenStorage,
        valid_token: OAuthToken,
        token_metadata: TokenMetadata,
    ) -> None:
        token_storage.store(valid_token, token_metadata)

        assert token_storage.delete() is True
        assert token_storage.delete() is False
        assert token_storage.get_status() == TokenStatus.MISSING
