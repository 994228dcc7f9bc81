"""Pydantic models for Drive API v3 file resources."""

from pydantic import BaseModel, Field


class DriveFile(BaseModel):
    """A file as reported by Drive.

    Only ``id`` is guaranteed; the other attributes are present when they
    were requested through the ``fields`` parameter. Names are not unique.
    """

    id: str
    name: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")
    modified_time: str | None = Field(default=None, alias="modifiedTime")
    size: str | None = None

    model_config = {"populate_by_name": True}


class FileList(BaseModel):
    """One page of a files.list response."""

    files: list[DriveFile] = Field(default_factory=list)
    next_page_token: str | None = Field(default=None, alias="nextPageToken")

    model_config = {"populate_by_name": True}
