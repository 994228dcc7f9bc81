"""OAuth manager for Google Drive authentication.

This module runs the one-time interactive OAuth2 authorization flow
using google-auth-oauthlib and refreshes stored tokens on demand.

The OAuth client keys file is the JSON downloaded from Google Cloud
Console (either an "installed" or a "web" client). Its location comes
from GDRIVE_OAUTH_PATH, defaulting to ~/.gmail-mcp/gcp-oauth.keys.json.
"""

import asyncio
import json
import logging
import secrets
import webbrowser
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, urlparse

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from gdrive_mcp.auth.models import OAuthToken, StoredToken, TokenMetadata, TokenStatus
from gdrive_mcp.auth.token_storage import SERVICE_NAME, TokenStorage
from gdrive_mcp.config import DEFAULT_REDIRECT_URI, Settings
from gdrive_mcp.errors import CredentialsError

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]

TOKEN_URI = "https://oauth2.googleapis.com/token"
DEFAULT_OAUTH_HOST = "127.0.0.1"
DEFAULT_OAUTH_PORT = 8789


def load_client_config(keys_path: Path) -> dict[str, Any]:
    """Load an OAuth client keys file.

    Args:
        keys_path: Path to the client keys JSON.

    Returns:
        Client configuration with a single "installed" or "web" section.

    Raises:
        CredentialsError: If the file is missing or not a Google client config.
    """
    if not keys_path.exists():
        raise CredentialsError(
            f"OAuth keys file not found at {keys_path}. "
            "Download it from Google Cloud Console or set GDRIVE_OAUTH_PATH."
        )

    try:
        with open(keys_path) as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise CredentialsError(f"Could not read OAuth keys file {keys_path}: {e}") from e

    if not isinstance(config, dict) or not ({"installed", "web"} & config.keys()):
        raise CredentialsError(
            f"OAuth keys file {keys_path} must contain an 'installed' or 'web' client."
        )
    return config


_RESULT_PAGE = "<html><body><h1>{title}</h1><p>{detail}</p></body></html>"


class _CallbackServer(HTTPServer):
    """Loopback server that accepts a single OAuth redirect."""

    def __init__(self, address: tuple[str, int], callback_path: str, expected_state: str) -> None:
        super().__init__(address, _CallbackHandler)
        self.callback_path = callback_path
        self.expected_state = expected_state
        self.code: str | None = None
        self.error: str | None = None


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackServer

    def log_message(self, format: str, *args: Any) -> None:
        pass

    def _reply(self, status: int, title: str, detail: str) -> None:
        self.send_response(status)
        self.send_header("Content-type", "text/html")
        self.end_headers()
        self.wfile.write(_RESULT_PAGE.format(title=title, detail=detail).encode("utf-8"))

    def do_GET(self) -> None:
        url = urlparse(self.path)
        if url.path != self.server.callback_path:
            self._reply(404, "Not Found", "Unexpected path.")
            return

        params = {key: values[0] for key, values in parse_qs(url.query).items()}
        if "error" in params:
            self.server.error = params["error"]
        elif params.get("state") != self.server.expected_state:
            self.server.error = "state mismatch"
        elif "code" not in params:
            self.server.error = "no authorization code in redirect"
        else:
            self.server.code = params["code"]
            self._reply(200, "Google Drive access granted", "You can close this window.")
            return

        self._reply(400, "Authorization failed", "Close this window and run the command again.")


def _wait_for_authorization_code(auth_url: str, redirect_uri: str, state: str) -> str:
    """Open the consent page and block until Google redirects back.

    Raises:
        CredentialsError: If consent is denied, the state does not match
            or no redirect arrives within five minutes.
    """
    redirect = urlparse(redirect_uri)
    server = _CallbackServer(
        (redirect.hostname or DEFAULT_OAUTH_HOST, redirect.port or DEFAULT_OAUTH_PORT),
        redirect.path or "/callback",
        state,
    )
    server.timeout = 300

    print("Opening browser for Google authorization...")
    print(f"If browser doesn't open, visit: {auth_url}")
    webbrowser.open(auth_url)

    try:
        server.handle_request()
    finally:
        server.server_close()

    if server.error:
        raise CredentialsError(f"OAuth authentication failed: {server.error}")
    if server.code is None:
        raise CredentialsError("No authorization code received from Google")
    return server.code


class OAuthManager:
    """OAuth authentication manager for Google Drive.

    Handles the authorization flow, token storage and refresh.

    Attributes:
        storage: Token storage instance for persisting credentials.
        keys_path: Path to the OAuth client keys file.

    Example:
        ```python
        manager = OAuthManager()

        # One-time authorization (opens a browser)
        token = await manager.authenticate()

        # Later, from the API client
        token = await manager.refresh_if_needed()
        ```
    """

    def __init__(
        self,
        storage: TokenStorage | None = None,
        keys_path: Path | None = None,
        redirect_uri: str | None = None,
    ) -> None:
        """Initialize OAuth manager.

        Args:
            storage: Token storage instance. Creates default if not provided.
            keys_path: OAuth client keys file. Defaults to GDRIVE_OAUTH_PATH.
            redirect_uri: Loopback redirect URI. Defaults to GDRIVE_OAUTH_REDIRECT_URI.
        """
        settings = Settings.from_env()
        self.storage = storage or TokenStorage()
        self.keys_path = keys_path or settings.oauth_keys_path
        self.redirect_uri = redirect_uri or settings.redirect_uri
        self._service_name = SERVICE_NAME

    def has_valid_tokens(self) -> bool:
        """Check if valid tokens exist.

        Returns:
            True if valid tokens exist, False otherwise.
        """
        return self.storage.get_status() == TokenStatus.VALID

    @property
    def token_path(self) -> Path:
        """Path to the stored credentials file."""
        return self.storage.token_path

    def _credentials_to_token(self, credentials: Credentials, scopes: list[str]) -> OAuthToken:
        """Convert google-auth Credentials to OAuthToken.

        Args:
            credentials: Google OAuth2 credentials.
            scopes: List of granted scopes.

        Returns:
            OAuthToken with all credential data.
        """
        if credentials.expiry:
            expires_at = credentials.expiry
            # google-auth reports naive UTC datetimes
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
        else:
            expires_at = datetime.now(timezone.utc) + timedelta(hours=1)

        return OAuthToken(  # nosec B106 - "Bearer" is OAuth token type, not a password
            access_token=credentials.token,
            refresh_token=credentials.refresh_token,
            expires_at=expires_at,
            scopes=scopes,
            token_type="Bearer",
        )

    def _token_to_credentials(self, token: OAuthToken) -> Credentials:
        """Convert OAuthToken to google-auth Credentials.

        Client ID and secret are taken from the keys file when it exists,
        since Google requires them to refresh a token.

        Args:
            token: OAuth token to convert.

        Returns:
            Google OAuth2 credentials.
        """
        client_id = client_secret = None
        if self.keys_path.exists():
            config = load_client_config(self.keys_path)
            client = config.get("installed") or config.get("web") or {}
            client_id = client.get("client_id")
            client_secret = client.get("client_secret")

        return Credentials(  # nosec B106 - token_uri is public Google OAuth endpoint
            token=token.access_token,
            refresh_token=token.refresh_token,
            token_uri=TOKEN_URI,
            client_id=client_id,
            client_secret=client_secret,
            scopes=token.scopes,
        )

    async def authenticate(self, scopes: list[str] | None = None) -> OAuthToken:
        """Perform the complete OAuth2 authorization flow and store the result.

        Args:
            scopes: OAuth scopes to request. Uses DRIVE_SCOPES if not specified.

        Returns:
            OAuthToken containing access and refresh tokens.

        Raises:
            CredentialsError: If the keys file is unusable or authorization fails.
        """
        if scopes is None:
            scopes = DRIVE_SCOPES

        client_config = load_client_config(self.keys_path)

        # The flow blocks on a local HTTP server
        loop = asyncio.get_event_loop()
        credentials = await loop.run_in_executor(
            None, self._run_oauth_flow, client_config, scopes, self.redirect_uri
        )

        token = self._credentials_to_token(credentials, scopes)
        metadata = TokenMetadata(service_name=self._service_name, provider="google")
        self.storage.store(token, metadata)
        logger.info(f"Stored Google Drive credentials at {self.token_path}")

        return token

    def _run_oauth_flow(
        self, client_config: dict, scopes: list[str], redirect_uri: str
    ) -> Credentials:
        """Run the browser consent flow and exchange the code (blocking).

        Args:
            client_config: Google OAuth client configuration.
            scopes: Scopes to request.
            redirect_uri: Loopback URI Google redirects back to.

        Returns:
            Google OAuth2 credentials.
        """
        flow = Flow.from_client_config(client_config, scopes=scopes, redirect_uri=redirect_uri)
        state = secrets.token_urlsafe(32)
        auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent", state=state)

        code = _wait_for_authorization_code(auth_url, redirect_uri or DEFAULT_REDIRECT_URI, state)
        flow.fetch_token(code=code)
        return flow.credentials

    async def refresh_if_needed(self) -> OAuthToken | None:
        """Refresh the stored token if expired or about to expire.

        Returns:
            New OAuthToken if refreshed, existing token if still valid,
            None if no token exists or it cannot be refreshed.
        """
        stored = self.storage.retrieve()
        if stored is None:
            return None

        if not stored.token.is_expired():
            return stored.token

        if stored.token.refresh_token is None:
            return None

        credentials = self._token_to_credentials(stored.token)

        logger.info("Access token expired, refreshing")
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, credentials.refresh, Request())

        new_token = self._credentials_to_token(credentials, stored.token.scopes)
        # Google omits the refresh token on refresh responses
        if new_token.refresh_token is None:
            new_token.refresh_token = stored.token.refresh_token

        stored.metadata.last_refreshed = datetime.now(timezone.utc)
        self.storage.store(new_token, stored.metadata)

        return new_token

    def get_status(self) -> tuple[TokenStatus, StoredToken | None]:
        """Get the status of stored tokens.

        Returns:
            Tuple of (TokenStatus, StoredToken or None).
        """
        status = self.storage.get_status()
        stored = self.storage.retrieve() if status != TokenStatus.MISSING else None
        return (status, stored)
