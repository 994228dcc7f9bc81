"""Drive files exposed as MCP resources.

Each file is addressed as ``gdrive:///<file id>``. Listing is paginated
one Drive page at a time; the cursor is Drive's page token, passed
through untouched.
"""

import base64
import logging

from pydantic import BaseModel

from gdrive_mcp.drive.client import DriveAPI
from gdrive_mcp.drive.content import ReadStrategy, is_text_mime_type, plan_read
from gdrive_mcp.errors import InvalidResourceURI

logger = logging.getLogger(__name__)

RESOURCE_URI_PREFIX = "gdrive:///"
RESOURCE_PAGE_SIZE = 10
DEFAULT_MIME_TYPE = "application/octet-stream"


def file_id_to_uri(file_id: str) -> str:
    """Build the resource URI for a Drive file ID."""
    return f"{RESOURCE_URI_PREFIX}{file_id}"


def uri_to_file_id(uri: str) -> str:
    """Extract the Drive file ID from a resource URI.

    Raises:
        InvalidResourceURI: If the URI has another scheme or no ID.
    """
    if not uri.startswith(RESOURCE_URI_PREFIX):
        raise InvalidResourceURI(f"Not a Google Drive resource URI: {uri}")
    file_id = uri[len(RESOURCE_URI_PREFIX) :]
    if not file_id:
        raise InvalidResourceURI(f"Resource URI has no file ID: {uri}")
    return file_id


class ResourceEntry(BaseModel):
    """One listed resource."""

    uri: str
    name: str
    mime_type: str | None = None


class ResourcePage(BaseModel):
    """A page of resources and the cursor for the next one."""

    resources: list[ResourceEntry]
    next_cursor: str | None = None


class ResourceContent(BaseModel):
    """Contents of a resource; exactly one of ``text`` and ``blob`` is set.

    Attributes:
        uri: The URI that was read.
        mime_type: Media type of the returned content (the export format
            for Google-native files).
        text: UTF-8 text content.
        blob: Base64-encoded binary content.
    """

    uri: str
    mime_type: str
    text: str | None = None
    blob: str | None = None


class ResourceCatalog:
    """Lists and reads Drive files as resources.

    Attributes:
        drive: Drive API used for every request.
    """

    def __init__(self, drive: DriveAPI) -> None:
        self.drive = drive

    async def list_resources(self, cursor: str | None = None) -> ResourcePage:
        """Fetch a single page of files.

        Args:
            cursor: Page token from a previous call, or None for the first page.

        Returns:
            Up to RESOURCE_PAGE_SIZE entries; ``next_cursor`` is set only
            when Drive has more files.
        """
        result = await self.drive.list_files(
            page_size=RESOURCE_PAGE_SIZE,
            fields="nextPageToken, files(id, name, mimeType)",
            page_token=cursor,
        )
        return ResourcePage(
            resources=[
                ResourceEntry(
                    uri=file_id_to_uri(f.id),
                    name=f.name or f.id,
                    mime_type=f.mime_type,
                )
                for f in result.files
            ],
            next_cursor=result.next_page_token,
        )

    async def read_resource(self, uri: str) -> ResourceContent:
        """Read a resource's content.

        Listed URIs always carry real file IDs, so no name resolution is done.

        Args:
            uri: A ``gdrive:///`` resource URI.

        Returns:
            The file content as text or base64 blob.
        """
        file_id = uri_to_file_id(uri)
        metadata = await self.drive.get_metadata(file_id, fields="mimeType")
        mime_type = metadata.mime_type or DEFAULT_MIME_TYPE
        plan = plan_read(mime_type)
        logger.debug(f"Reading {file_id} ({mime_type}) with {plan.strategy.value}")

        if plan.strategy == ReadStrategy.EXPORT:
            export_mime_type = plan.export_mime_type or "text/plain"
            data = await self.drive.export(file_id, export_mime_type)
            # Drawings export to PNG, which cannot travel as text
            if is_text_mime_type(export_mime_type):
                return ResourceContent(
                    uri=uri, mime_type=export_mime_type, text=data.decode("utf-8", errors="replace")
                )
            return ResourceContent(
                uri=uri, mime_type=export_mime_type, blob=base64.b64encode(data).decode("ascii")
            )

        data = await self.drive.download(file_id)
        if plan.strategy == ReadStrategy.RAW_TEXT:
            return ResourceContent(
                uri=uri, mime_type=mime_type, text=data.decode("utf-8", errors="replace")
            )
        return ResourceContent(
            uri=uri, mime_type=mime_type, blob=base64.b64encode(data).decode("ascii")
        )
