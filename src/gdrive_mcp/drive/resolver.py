"""Resolution of user-supplied file references to Drive file IDs."""

import logging
import re

from gdrive_mcp.drive.client import DriveAPI
from gdrive_mcp.drive.queries import name_equals
from gdrive_mcp.errors import AmbiguousFileName, DriveFileNotFound

logger = logging.getLogger(__name__)

# Anything shaped like a Drive ID is trusted as one without a lookup.
FILE_ID_PATTERN = re.compile(r"[\w-]{20,}", re.ASCII)

NAME_LOOKUP_PAGE_SIZE = 5


def looks_like_file_id(value: str) -> bool:
    """Return True if ``value`` has the shape of a Drive file ID."""
    return FILE_ID_PATTERN.fullmatch(value) is not None


async def resolve_file_id(drive: DriveAPI, name_or_id: str) -> str:
    """Resolve a file name or ID to a single Drive file ID.

    IDs are returned unchanged without contacting Drive. Names are looked
    up by exact match; nothing is cached, so every call repeats the lookup.

    Args:
        drive: Drive API used for the name lookup.
        name_or_id: A Drive file ID or an exact file name.

    Returns:
        The file ID.

    Raises:
        DriveFileNotFound: If no file has that name.
        AmbiguousFileName: If several files share that name.
    """
    if looks_like_file_id(name_or_id):
        return name_or_id

    logger.info(f"Resolving file name '{name_or_id}'")
    result = await drive.list_files(
        query=name_equals(name_or_id),
        page_size=NAME_LOOKUP_PAGE_SIZE,
        fields="files(id, name)",
    )

    if not result.files:
        raise DriveFileNotFound(name_or_id)
    if len(result.files) > 1:
        raise AmbiguousFileName(name_or_id, result.files)

    return result.files[0].id
