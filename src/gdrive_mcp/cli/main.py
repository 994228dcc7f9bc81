"""Command-line interface for gdrive-mcp."""

import asyncio
import sys
from pathlib import Path

import click

from gdrive_mcp.__version__ import __version__
from gdrive_mcp.config import Settings


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--credentials-path",
    type=click.Path(path_type=Path),
    help="Stored credentials file (overrides GDRIVE_CREDENTIALS_PATH)",
)
@click.option(
    "--oauth-path",
    type=click.Path(path_type=Path),
    help="OAuth client keys file (overrides GDRIVE_OAUTH_PATH)",
)
@click.pass_context
def main(ctx: click.Context, credentials_path: Path | None, oauth_path: Path | None) -> None:
    """Google Drive MCP Server - give MCP clients access to Google Drive.

    Files are exposed as gdrive:/// resources, plus tools to search,
    upload, update, delete, read, append to and delete text from files.
    """
    settings = Settings.from_env()
    if credentials_path:
        settings.credentials_path = credentials_path.expanduser()
    if oauth_path:
        settings.oauth_keys_path = oauth_path.expanduser()
    ctx.obj = settings


def _build_manager(settings: Settings):
    from gdrive_mcp.auth import OAuthManager, TokenStorage

    return OAuthManager(
        storage=TokenStorage(token_path=settings.credentials_path),
        keys_path=settings.oauth_keys_path,
        redirect_uri=settings.redirect_uri,
    )


@main.command()
@click.pass_obj
def auth(settings: Settings) -> None:
    """Authorize access to Google Drive.

    This will:
    1. Open browser for OAuth2 consent flow
    2. Store tokens at the credentials path (~/.gmail-mcp/credentials.json)

    Requires the OAuth client keys file from Google Cloud Console
    (~/.gmail-mcp/gcp-oauth.keys.json or GDRIVE_OAUTH_PATH).
    """
    from gdrive_mcp.errors import GDriveMCPError

    manager = _build_manager(settings)

    if manager.has_valid_tokens():
        click.echo("✓ Already authenticated!")
        click.echo(f"Token stored at: {manager.token_path}")
        click.echo("")

        if not click.confirm("Re-authenticate?"):
            return

    if not settings.oauth_keys_path.exists():
        click.echo(f"❌ Error: OAuth keys file not found at {settings.oauth_keys_path}")
        click.echo("")
        click.echo("Download an OAuth client (Desktop app) JSON from Google Cloud Console,")
        click.echo("then save it there or point GDRIVE_OAUTH_PATH at it.")
        sys.exit(1)

    click.echo("Launching auth flow...")
    click.echo("Browser will open for Google consent...")
    click.echo("")

    try:
        asyncio.run(manager.authenticate())
    except GDriveMCPError as e:
        click.echo(f"❌ Authentication failed: {e}")
        sys.exit(1)

    click.echo("✓ Credentials saved. You can now run the server.")
    click.echo(f"Token stored at: {manager.token_path}")


@main.command()
@click.pass_obj
def logout(settings: Settings) -> None:
    """Remove the stored Google Drive credentials."""
    from gdrive_mcp.auth import TokenStorage

    storage = TokenStorage(token_path=settings.credentials_path)
    if storage.delete():
        click.echo(f"✓ Removed credentials at {storage.token_path}")
    else:
        click.echo(f"No credentials stored at {storage.token_path}")


@main.command()
@click.pass_obj
def mcp(settings: Settings) -> None:
    """Start the MCP server over stdio.

    Authentication is required before starting the server.
    Run 'gdrive-mcp auth' if not already authenticated.
    """
    from gdrive_mcp.auth import TokenStatus
    from gdrive_mcp.server import main as server_main

    manager = _build_manager(settings)
    status, _ = manager.get_status()

    if status == TokenStatus.MISSING:
        click.echo(
            f"❌ Credentials not found at {manager.token_path}. "
            "Run 'gdrive-mcp auth' first.",
            err=True,
        )
        sys.exit(1)

    if status == TokenStatus.INVALID:
        click.echo("❌ Credentials file corrupted. Run 'gdrive-mcp auth' again.", err=True)
        sys.exit(1)

    try:
        click.echo("Starting Google Drive MCP server...", err=True)
        server_main(settings)
    except KeyboardInterrupt:
        click.echo("\nServer stopped.", err=True)


@main.command()
@click.pass_obj
def doctor(settings: Settings) -> None:
    """Check installation, configuration and authentication status."""
    from gdrive_mcp.auth import TokenStatus

    click.echo("Google Drive MCP Status:")
    click.echo("")

    click.echo("Dependencies:")
    try:
        import google.auth  # noqa: F401
        import google_auth_oauthlib  # noqa: F401
        import mcp as mcp_sdk  # noqa: F401

        click.echo("  ✓ google-auth installed")
        click.echo("  ✓ google-auth-oauthlib installed")
        click.echo("  ✓ mcp installed")
    except ImportError as e:
        click.echo(f"  ❌ Missing dependency: {e}")
        sys.exit(1)

    click.echo("")
    click.echo("Configuration:")
    keys_mark = "✓" if settings.oauth_keys_path.exists() else "❌"
    click.echo(f"  {keys_mark} OAuth keys: {settings.oauth_keys_path}")
    click.echo(f"  Credentials: {settings.credentials_path}")
    click.echo("")

    manager = _build_manager(settings)
    status, stored = manager.get_status()

    click.echo("Authentication:")
    if status == TokenStatus.MISSING:
        click.echo("  ❌ Not authenticated")
        click.echo("")
        click.echo("Run 'gdrive-mcp auth' to authenticate.")
        sys.exit(1)
    elif status == TokenStatus.INVALID:
        click.echo("  ❌ Credentials file corrupted")
        click.echo("")
        click.echo("Run 'gdrive-mcp auth' to re-authenticate.")
        sys.exit(1)
    elif status == TokenStatus.EXPIRED:
        click.echo("  ⚠️  Token expired (refreshes automatically on use)")
    elif status == TokenStatus.VALID:
        click.echo("  ✓ Authenticated")
        if stored:
            click.echo(
                f"  Token expires: {stored.token.expires_at.strftime('%Y-%m-%d %H:%M:%S UTC')}"
            )

    click.echo("")
    click.echo("✓ Ready to use!")


if __name__ == "__main__":
    main()
