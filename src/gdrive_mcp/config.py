"""Runtime configuration for gdrive-mcp.

Environment Variables:
    GDRIVE_CREDENTIALS_PATH: Stored OAuth credentials
        (default: ~/.gmail-mcp/credentials.json)
    GDRIVE_OAUTH_PATH: OAuth client keys downloaded from Google Cloud Console
        (default: ~/.gmail-mcp/gcp-oauth.keys.json)
    GDRIVE_OAUTH_REDIRECT_URI: Loopback redirect URI used by `gdrive-mcp auth`
        (default: http://127.0.0.1:8789/callback)
    GDRIVE_MCP_LOG_LEVEL: Logging level for the server (default: INFO)
"""

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field

CONFIG_DIR_NAME = ".gmail-mcp"
DEFAULT_CREDENTIALS_FILE = "credentials.json"
DEFAULT_OAUTH_KEYS_FILE = "gcp-oauth.keys.json"
DEFAULT_REDIRECT_URI = "http://127.0.0.1:8789/callback"


def default_config_dir() -> Path:
    """Directory holding credentials and OAuth keys when not overridden."""
    return Path.home() / CONFIG_DIR_NAME


class Settings(BaseModel):
    """Resolved settings for one process.

    Attributes:
        credentials_path: Where the stored OAuth token lives.
        oauth_keys_path: Where the OAuth client keys JSON lives.
        redirect_uri: Redirect URI for the interactive authorization flow.
        log_level: Name of the logging level for the server process.
    """

    credentials_path: Path = Field(
        default_factory=lambda: default_config_dir() / DEFAULT_CREDENTIALS_FILE
    )
    oauth_keys_path: Path = Field(
        default_factory=lambda: default_config_dir() / DEFAULT_OAUTH_KEYS_FILE
    )
    redirect_uri: str = DEFAULT_REDIRECT_URI
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Returns:
            Settings with every unset variable left at its default.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        if env.get("GDRIVE_CREDENTIALS_PATH"):
            values["credentials_path"] = Path(env["GDRIVE_CREDENTIALS_PATH"]).expanduser()
        if env.get("GDRIVE_OAUTH_PATH"):
            values["oauth_keys_path"] = Path(env["GDRIVE_OAUTH_PATH"]).expanduser()
        if env.get("GDRIVE_OAUTH_REDIRECT_URI"):
            values["redirect_uri"] = env["GDRIVE_OAUTH_REDIRECT_URI"]
        if env.get("GDRIVE_MCP_LOG_LEVEL"):
            values["log_level"] = env["GDRIVE_MCP_LOG_LEVEL"].upper()
        return cls.model_validate(values)
