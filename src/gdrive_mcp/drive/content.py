"""Media-type handling for reading and uploading Drive files.

Google-native files (Docs, Sheets, Slides, Drawings) have no bytes of
their own and must be exported. Everything else is downloaded as-is and
surfaced either as UTF-8 text or as base64.
"""

import mimetypes
from enum import Enum

from pydantic import BaseModel

GOOGLE_APPS_PREFIX = "application/vnd.google-apps"

EXPORT_MIME_TYPES = {
    "application/vnd.google-apps.document": "text/markdown",
    "application/vnd.google-apps.spreadsheet": "text/csv",
    "application/vnd.google-apps.presentation": "text/plain",
    "application/vnd.google-apps.drawing": "image/png",
}
DEFAULT_EXPORT_MIME_TYPE = "text/plain"

DEFAULT_UPLOAD_MIME_TYPE = "application/octet-stream"


class ReadStrategy(str, Enum):
    """How the bytes of a file are obtained and surfaced."""

    EXPORT = "export"
    RAW_TEXT = "raw_text"
    RAW_BINARY = "raw_binary"


class ReadPlan(BaseModel):
    """Result of plan_read().

    Attributes:
        strategy: Export, raw text download, or raw binary download.
        export_mime_type: Target format, set only for EXPORT plans.
    """

    strategy: ReadStrategy
    export_mime_type: str | None = None

    model_config = {"frozen": True}


def is_google_native(mime_type: str) -> bool:
    """Return True for Google Docs editor types that must be exported."""
    return mime_type.startswith(GOOGLE_APPS_PREFIX)


def is_text_mime_type(mime_type: str) -> bool:
    """Return True for media types whose bytes are decoded as UTF-8."""
    return mime_type.startswith("text/") or mime_type == "application/json"


def plan_read(mime_type: str) -> ReadPlan:
    """Choose how to read a file of the given media type.

    Total and pure: unknown Google-native types export to plain text,
    unknown other types are read as binary.
    """
    if is_google_native(mime_type):
        return ReadPlan(
            strategy=ReadStrategy.EXPORT,
            export_mime_type=EXPORT_MIME_TYPES.get(mime_type, DEFAULT_EXPORT_MIME_TYPE),
        )
    if is_text_mime_type(mime_type):
        return ReadPlan(strategy=ReadStrategy.RAW_TEXT)
    return ReadPlan(strategy=ReadStrategy.RAW_BINARY)


def guess_upload_mime_type(filename: str) -> str:
    """Infer a media type from a file name's extension."""
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or DEFAULT_UPLOAD_MIME_TYPE
