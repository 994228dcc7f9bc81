"""Pydantic models for stored OAuth credentials."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TokenStatus(str, Enum):
    """State of the stored credentials file."""

    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class OAuthToken(BaseModel):
    """OAuth2 access token plus the data needed to refresh it."""

    access_token: str = Field(..., description="Bearer access token")
    refresh_token: str | None = Field(default=None, description="Long-lived refresh token")
    expires_at: datetime = Field(..., description="Access token expiry (UTC)")
    scopes: list[str] = Field(default_factory=list, description="Granted scopes")
    token_type: str = Field(default="Bearer", description="OAuth token type")

    def is_expired(self, buffer_seconds: int = 60) -> bool:
        """Check whether the access token is expired or about to expire.

        Args:
            buffer_seconds: Treat tokens expiring within this window as expired.

        Returns:
            True if the token should be refreshed before use.
        """
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) + timedelta(seconds=buffer_seconds) >= expires_at


class TokenMetadata(BaseModel):
    """Bookkeeping stored next to the token."""

    service_name: str = Field(..., description="Service the token belongs to")
    provider: str = Field(default="google", description="OAuth provider")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the token was first stored",
    )
    last_refreshed: datetime | None = Field(default=None, description="Last refresh time")


class StoredToken(BaseModel):
    """On-disk credentials format (version 1)."""

    version: int = Field(default=1, description="Storage format version")
    metadata: TokenMetadata
    token: OAuthToken

    @classmethod
    def from_legacy(cls, data: dict[str, Any], service_name: str) -> "StoredToken":
        """Convert credentials written by the googleapis Node client.

        That client persists ``access_token``, ``refresh_token``, a
        space-separated ``scope`` string and ``expiry_date`` in epoch
        milliseconds.

        Args:
            data: Parsed legacy credentials JSON.
            service_name: Service name to record in the metadata.

        Returns:
            Equivalent StoredToken.

        Raises:
            ValueError: If the data has no access token.
        """
        access_token = data.get("access_token")
        if not access_token:
            raise ValueError("Legacy credentials have no access_token")

        expiry_ms = data.get("expiry_date")
        if expiry_ms:
            expires_at = datetime.fromtimestamp(int(expiry_ms) / 1000, tz=timezone.utc)
        else:
            # Unknown expiry: force a refresh on first use
            expires_at = datetime.now(timezone.utc)

        token = OAuthToken(
            access_token=access_token,
            refresh_token=data.get("refresh_token"),
            expires_at=expires_at,
            scopes=(data.get("scope") or "").split(),
            token_type=data.get("token_type") or "Bearer",
        )
        return cls(metadata=TokenMetadata(service_name=service_name), token=token)
