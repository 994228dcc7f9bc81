"""Tool registry and dispatcher for the Google Drive MCP server.

The set of tools is closed: ToolName enumerates every tool, each with
a pydantic model describing its arguments. Arguments are validated
before Drive is contacted.

Content edits (append, delete-text) download the whole file, change it
in memory and upload the whole body again. Two concurrent edits of the
same file race and the last upload wins.
"""

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from gdrive_mcp.drive.client import DriveAPI
from gdrive_mcp.drive.content import guess_upload_mime_type
from gdrive_mcp.drive.queries import full_text_contains
from gdrive_mcp.drive.resolver import resolve_file_id
from gdrive_mcp.errors import InvalidToolArguments, TextNotFound, ToolNotFound

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 10
SEARCH_FIELDS = "files(id, name, mimeType, modifiedTime, size)"

# Bodies written by update/append/delete-text are always plain text
TEXT_MIME_TYPE = "text/plain"


class ToolName(str, Enum):
    """Every tool the server exposes."""

    SEARCH = "search"
    UPLOAD_FILE_WITH_CONTENT = "upload_file_with_content"
    UPDATE_FILE_CONTENT = "update_file_content"
    DELETE_FILE = "delete_file"
    READ_FILE_CONTENT = "read_file_content"
    APPEND_FILE_CONTENT = "append_file_content"
    DELETE_FROM_FILE_CONTENT = "delete_from_file_content"


class ToolArguments(BaseModel):
    """Base for tool argument models: string values only, unknown keys ignored."""

    model_config = {"strict": True, "populate_by_name": True, "extra": "ignore"}


class SearchArguments(ToolArguments):
    query: str = Field(..., description="Search query")


class UploadArguments(ToolArguments):
    name: str = Field(..., description="Filename (e.g., test.txt)")
    content: str = Field(..., description="Text content")


class UpdateArguments(ToolArguments):
    file_id: str = Field(..., alias="fileId", description="File ID or exact name to update")
    new_content: str = Field(..., alias="newContent", description="New text content")


class DeleteArguments(ToolArguments):
    file_id: str = Field(..., alias="fileId", description="File ID or exact name to delete")


class ReadArguments(ToolArguments):
    filename: str = Field(..., description="Name of the file to read (e.g., test.txt)")


class AppendArguments(ToolArguments):
    filename: str = Field(..., description="Name of the file to append to (e.g., test.txt)")
    append_text: str = Field(..., alias="appendText", description="Text to append")


class DeleteTextArguments(ToolArguments):
    filename: str = Field(..., description="Name of the file to modify (e.g., test.txt)")
    target_text: str = Field(
        ..., alias="targetText", min_length=1, description="Text to delete (every occurrence)"
    )


class ToolDefinition(BaseModel):
    """Description and argument model of one tool."""

    description: str
    arguments: type[ToolArguments]


TOOL_DEFINITIONS: dict[ToolName, ToolDefinition] = {
    ToolName.SEARCH: ToolDefinition(
        description="Search for files in Google Drive",
        arguments=SearchArguments,
    ),
    ToolName.UPLOAD_FILE_WITH_CONTENT: ToolDefinition(
        description="Upload a new file with given name and content",
        arguments=UploadArguments,
    ),
    ToolName.UPDATE_FILE_CONTENT: ToolDefinition(
        description="Update content of an existing file",
        arguments=UpdateArguments,
    ),
    ToolName.DELETE_FILE: ToolDefinition(
        description="Delete a file by ID or exact name",
        arguments=DeleteArguments,
    ),
    ToolName.READ_FILE_CONTENT: ToolDefinition(
        description="Read the content of a text file by filename",
        arguments=ReadArguments,
    ),
    ToolName.APPEND_FILE_CONTENT: ToolDefinition(
        description="Append new text at the end of an existing file",
        arguments=AppendArguments,
    ),
    ToolName.DELETE_FROM_FILE_CONTENT: ToolDefinition(
        description="Delete every occurrence of specific text from an existing file",
        arguments=DeleteTextArguments,
    ),
}

_undefined_tools = set(ToolName) - set(TOOL_DEFINITIONS)
if _undefined_tools:
    raise RuntimeError(f"Tools without a definition: {sorted(t.value for t in _undefined_tools)}")


def tool_input_schema(arguments: type[ToolArguments]) -> dict[str, Any]:
    """Build the JSON schema advertised for a tool's arguments."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for field_name, field in arguments.model_fields.items():
        key = field.alias or field_name
        properties[key] = {"type": "string", "description": field.description}
        if field.is_required():
            required.append(key)
    return {"type": "object", "properties": properties, "required": required}


class ToolDispatcher:
    """Executes tool calls against Drive.

    Attributes:
        drive: Drive API used for every request.
    """

    def __init__(self, drive: DriveAPI) -> None:
        self.drive = drive
        self._handlers: dict[ToolName, Callable[[Any], Awaitable[str]]] = {
            ToolName.SEARCH: self._search,
            ToolName.UPLOAD_FILE_WITH_CONTENT: self._upload_file_with_content,
            ToolName.UPDATE_FILE_CONTENT: self._update_file_content,
            ToolName.DELETE_FILE: self._delete_file,
            ToolName.READ_FILE_CONTENT: self._read_file_content,
            ToolName.APPEND_FILE_CONTENT: self._append_file_content,
            ToolName.DELETE_FROM_FILE_CONTENT: self._delete_from_file_content,
        }

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> str:
        """Run a tool.

        Args:
            name: Tool name.
            arguments: Raw tool arguments from the client.

        Returns:
            Human-readable result text.

        Raises:
            ToolNotFound: If no tool has that name.
            InvalidToolArguments: If required arguments are missing or not strings.
            GDriveMCPError: Any failure from resolution or Drive.
        """
        try:
            tool = ToolName(name)
        except ValueError:
            raise ToolNotFound(name) from None

        parsed = self._parse_arguments(tool, arguments or {})
        return await self._handlers[tool](parsed)

    def _parse_arguments(self, tool: ToolName, arguments: dict[str, Any]) -> ToolArguments:
        model = TOOL_DEFINITIONS[tool].arguments
        try:
            return model.model_validate(arguments)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise InvalidToolArguments(f"Invalid arguments for {tool.value}: {problems}") from e

    async def _read_text(self, file_id: str) -> str:
        data = await self.drive.download(file_id)
        return data.decode("utf-8", errors="replace")

    async def _write_text(self, file_id: str, text: str) -> None:
        await self.drive.update_media(file_id, text.encode("utf-8"), TEXT_MIME_TYPE)

    async def _search(self, args: SearchArguments) -> str:
        result = await self.drive.list_files(
            query=full_text_contains(args.query),
            page_size=SEARCH_PAGE_SIZE,
            fields=SEARCH_FIELDS,
        )
        file_list = "\n".join(f"{f.name} ({f.mime_type})" for f in result.files)
        return f"Found {len(result.files)} files:\n{file_list}"

    async def _upload_file_with_content(self, args: UploadArguments) -> str:
        mime_type = guess_upload_mime_type(args.name)
        created = await self.drive.create(args.name, mime_type, args.content.encode("utf-8"))
        logger.info(f"Uploaded '{args.name}' as {created.id}")
        return f"File uploaded: {created.id}"

    async def _update_file_content(self, args: UpdateArguments) -> str:
        file_id = await resolve_file_id(self.drive, args.file_id)
        await self._write_text(file_id, args.new_content)
        return f"File updated: {file_id}"

    async def _delete_file(self, args: DeleteArguments) -> str:
        file_id = await resolve_file_id(self.drive, args.file_id)
        await self.drive.delete(file_id)
        logger.info(f"Deleted file {file_id}")
        return f"File deleted: {file_id}"

    async def _read_file_content(self, args: ReadArguments) -> str:
        file_id = await resolve_file_id(self.drive, args.filename)
        return await self._read_text(file_id)

    async def _append_file_content(self, args: AppendArguments) -> str:
        file_id = await resolve_file_id(self.drive, args.filename)
        current = await self._read_text(file_id)
        await self._write_text(file_id, f"{current}\n{args.append_text}")
        return f"Text appended to file: {file_id}"

    async def _delete_from_file_content(self, args: DeleteTextArguments) -> str:
        file_id = await resolve_file_id(self.drive, args.filename)
        current = await self._read_text(file_id)
        if args.target_text not in current:
            raise TextNotFound(args.target_text, file_id)
        # Literal match: every occurrence is removed, no pattern syntax
        await self._write_text(file_id, current.replace(args.target_text, ""))
        return f"Text deleted from file: {file_id}"
