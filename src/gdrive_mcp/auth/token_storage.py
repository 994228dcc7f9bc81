"""OAuth credential storage for gdrive-mcp.

This module provides basic JSON-based persistence of a single set of
OAuth credentials without encryption.

Storage Location: ~/.gmail-mcp/credentials.json, overridable with the
GDRIVE_CREDENTIALS_PATH environment variable.

Files written by the older Node server (the raw googleapis credentials
object) are read transparently and rewritten in the current format on
the next store().
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gdrive_mcp.auth.models import (
    OAuthToken,
    StoredToken,
    TokenMetadata,
    TokenStatus,
)
from gdrive_mcp.config import Settings

logger = logging.getLogger(__name__)

SERVICE_NAME = "gdrive-mcp"


def get_token_path() -> Path:
    """Get the credentials path from the environment or the default.

    Returns:
        Path to the credentials JSON file.
    """
    return Settings.from_env().credentials_path


class TokenStorage:
    """Simple JSON-based storage for the server's OAuth credentials.

    The file is created with 0600 permissions inside a 0700 directory.

    Attributes:
        token_path: Path to the credentials JSON file.

    Example:
        ```python
        storage = TokenStorage()

        token = OAuthToken(
            access_token="abc123",
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
            scopes=["https://www.googleapis.com/auth/drive"],
        )
        storage.store(token, TokenMetadata(service_name="gdrive-mcp"))

        stored = storage.retrieve()
        if stored:
            print(f"Token expires at: {stored.token.expires_at}")
        ```
    """

    def __init__(self, token_path: Path | None = None) -> None:
        """Initialize token storage.

        Args:
            token_path: Custom path for the credentials file.
                Defaults to GDRIVE_CREDENTIALS_PATH or ~/.gmail-mcp/credentials.json.
        """
        self.token_path = token_path or get_token_path()
        self.credentials_dir = self.token_path.parent

    def _ensure_credentials_dir(self) -> None:
        """Create credentials directory with secure permissions if needed."""
        if not self.credentials_dir.exists():
            self.credentials_dir.mkdir(parents=True, mode=0o700)
        else:
            self.credentials_dir.chmod(0o700)

    def _load_raw(self) -> dict[str, Any] | None:
        """Load the raw credentials JSON.

        Returns:
            Parsed JSON object, or None if the file is missing or unreadable.
        """
        if not self.token_path.exists():
            return None

        try:
            with open(self.token_path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read credentials at {self.token_path}: {e}")
            return None

        return data if isinstance(data, dict) else None

    def store(self, token: OAuthToken, metadata: TokenMetadata) -> None:
        """Store OAuth credentials, replacing any existing ones.

        Args:
            token: OAuth token data to store.
            metadata: Token metadata including provider info.
        """
        stored_token = StoredToken(version=1, metadata=metadata, token=token)

        self._ensure_credentials_dir()
        with open(self.token_path, "w") as f:
            f.write(stored_token.model_dump_json(indent=2))

        # Owner read/write only
        self.token_path.chmod(0o600)

    def retrieve(self) -> StoredToken | None:
        """Retrieve the stored credentials.

        Returns:
            StoredToken if present and valid, None otherwise.
        """
        data = self._load_raw()
        if data is None:
            return None

        try:
            if "token" in data:
                return StoredToken.model_validate(data)
            return StoredToken.from_legacy(data, service_name=SERVICE_NAME)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(f"Stored credentials are invalid: {e}")
            return None

    def delete(self) -> bool:
        """Delete the stored credentials.

        Returns:
            True if a file was deleted, False if none existed.
        """
        if not self.token_path.exists():
            return False

        self.token_path.unlink()
        return True

    def get_status(self) -> TokenStatus:
        """Get the status of the stored credentials.

        Returns:
            TokenStatus indicating the token's current state.
        """
        if not self.token_path.exists():
            return TokenStatus.MISSING

        stored = self.retrieve()
        if stored is None:
            return TokenStatus.INVALID

        if stored.token.is_expired():
            return TokenStatus.EXPIRED

        return TokenStatus.VALID
