"""Google Drive MCP server.

Serves Drive files as ``gdrive:///`` resources and exposes seven file
tools over the MCP stdio transport. Credentials come from the token
stored by ``gdrive-mcp auth``; expired tokens are refreshed by the
Drive client.
"""

import asyncio
import logging
import sys
from typing import Any

from mcp import types
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from gdrive_mcp.auth import OAuthManager, TokenStatus, TokenStorage
from gdrive_mcp.config import Settings
from gdrive_mcp.drive.client import DriveAPI, DriveClient
from gdrive_mcp.errors import CredentialsError
from gdrive_mcp.server.resources import ResourceCatalog
from gdrive_mcp.server.tools import TOOL_DEFINITIONS, ToolDispatcher, tool_input_schema

logger = logging.getLogger(__name__)

SERVER_NAME = "gdrive-mcp"


class GDriveServer:
    """MCP server for Google Drive.

    Every handler shares one Drive API handle, built once at startup.
    Requests hold no other shared state.

    Attributes:
        server: MCP Server instance.
        drive: Drive API used by all handlers.
        catalog: Resource listing and reading.
        tools: Tool dispatcher.
    """

    def __init__(self, drive: DriveAPI) -> None:
        """Initialize the server.

        Args:
            drive: Drive API handle, usually a DriveClient.
        """
        self.server = Server(SERVER_NAME)
        self.drive = drive
        self.catalog = ResourceCatalog(drive)
        self.tools = ToolDispatcher(drive)
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Register MCP resource and tool handlers."""

        # Registered directly so the pagination cursor reaches the catalog
        async def list_resources(request: types.ListResourcesRequest) -> types.ServerResult:
            cursor = request.params.cursor if request.params else None
            page = await self.catalog.list_resources(cursor)
            return types.ServerResult(
                types.ListResourcesResult(
                    resources=[
                        types.Resource(uri=entry.uri, name=entry.name, mimeType=entry.mime_type)
                        for entry in page.resources
                    ],
                    nextCursor=page.next_cursor,
                )
            )

        async def read_resource(request: types.ReadResourceRequest) -> types.ServerResult:
            content = await self.catalog.read_resource(str(request.params.uri))
            contents: types.TextResourceContents | types.BlobResourceContents
            if content.text is not None:
                contents = types.TextResourceContents(
                    uri=content.uri, mimeType=content.mime_type, text=content.text
                )
            else:
                contents = types.BlobResourceContents(
                    uri=content.uri, mimeType=content.mime_type, blob=content.blob or ""
                )
            return types.ServerResult(types.ReadResourceResult(contents=[contents]))

        self.server.request_handlers[types.ListResourcesRequest] = list_resources
        self.server.request_handlers[types.ReadResourceRequest] = read_resource

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """Return list of available tools."""
            return [
                Tool(
                    name=name.value,
                    description=definition.description,
                    inputSchema=tool_input_schema(definition.arguments),
                )
                for name, definition in TOOL_DEFINITIONS.items()
            ]

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            """Handle tool calls; failures become error results carrying the message."""
            try:
                text = await self.tools.dispatch(name, arguments)
            except Exception:
                logger.exception(f"Error calling tool {name}")
                raise
            return [TextContent(type="text", text=text)]

    async def close(self) -> None:
        """Release the Drive client's HTTP resources."""
        close = getattr(self.drive, "close", None)
        if close is not None:
            await close()

    async def run(self) -> None:
        """Run the MCP server using stdio transport."""
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    self.server.create_initialization_options(),
                )
        finally:
            await self.close()


def create_server(settings: Settings | None = None) -> GDriveServer:
    """Build a server backed by the stored credentials.

    Args:
        settings: Settings to use. Read from the environment when omitted.

    Returns:
        GDriveServer ready to run.

    Raises:
        CredentialsError: If the credentials file is missing or corrupt.
    """
    settings = settings or Settings.from_env()
    storage = TokenStorage(token_path=settings.credentials_path)

    status = storage.get_status()
    if status == TokenStatus.MISSING:
        raise CredentialsError(
            f"Credentials not found at {storage.token_path}. Run 'gdrive-mcp auth' first."
        )
    if status == TokenStatus.INVALID:
        raise CredentialsError(
            f"Credentials file {storage.token_path} is corrupted. Run 'gdrive-mcp auth' again."
        )

    manager = OAuthManager(
        storage=storage,
        keys_path=settings.oauth_keys_path,
        redirect_uri=settings.redirect_uri,
    )
    return GDriveServer(DriveClient(manager))


def main(settings: Settings | None = None) -> None:
    """Entry point for the Google Drive MCP server.

    Exits with status 1 when no usable credentials are stored.
    """
    settings = settings or Settings.from_env()
    # stdout carries the protocol; logging goes to stderr
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
    try:
        server = create_server(settings)
    except CredentialsError as e:
        logger.error(str(e))
        sys.exit(1)
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
