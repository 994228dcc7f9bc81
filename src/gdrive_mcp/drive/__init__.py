"""Google Drive API access: client, name resolution and media-type handling."""

from gdrive_mcp.drive.client import DriveAPI, DriveClient
from gdrive_mcp.drive.content import ReadPlan, ReadStrategy, plan_read
from gdrive_mcp.drive.models import DriveFile, FileList
from gdrive_mcp.drive.resolver import resolve_file_id

__all__ = [
    "DriveAPI",
    "DriveClient",
    "DriveFile",
    "FileList",
    "ReadPlan",
    "ReadStrategy",
    "plan_read",
    "resolve_file_id",
]
