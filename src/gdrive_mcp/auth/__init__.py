"""OAuth authentication for the Google Drive MCP server.

Quick Start:
    ```python
    from gdrive_mcp.auth import OAuthManager

    manager = OAuthManager()

    # One-time authorization, reads GDRIVE_OAUTH_PATH
    token = await manager.authenticate()

    # Refresh on demand
    token = await manager.refresh_if_needed()
    ```
"""

from gdrive_mcp.auth.models import (
    OAuthToken,
    StoredToken,
    TokenMetadata,
    TokenStatus,
)
from gdrive_mcp.auth.oauth_manager import DRIVE_SCOPES, OAuthManager
from gdrive_mcp.auth.token_storage import TokenStorage

__all__ = [
    "OAuthManager",
    "TokenStorage",
    "OAuthToken",
    "StoredToken",
    "TokenMetadata",
    "TokenStatus",
    "DRIVE_SCOPES",
]
