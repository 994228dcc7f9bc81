"""Error taxonomy for the Google Drive MCP server.

Every error raised while serving a tool call or resource read terminates
that single request. The message text is surfaced to the client verbatim,
so messages are written for a human (or agent) deciding how to retry.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gdrive_mcp.drive.models import DriveFile


class GDriveMCPError(Exception):
    """Base class for all errors raised by gdrive-mcp."""


class DriveFileNotFound(GDriveMCPError):
    """A file name matched no file in Drive."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No file named '{name}' was found in Google Drive.")


class AmbiguousFileName(GDriveMCPError):
    """A file name matched more than one file in Drive.

    Attributes:
        name: The name that was looked up.
        candidates: Every file that matched, so the caller can retry by ID.
    """

    def __init__(self, name: str, candidates: "list[DriveFile]") -> None:
        self.name = name
        self.candidates = candidates
        listing = "\n".join(f"• {f.name} (ID: {f.id})" for f in candidates)
        super().__init__(
            f"Multiple files named '{name}' were found. "
            f"Use the exact file ID to pick one.\n\n{listing}"
        )


class ToolNotFound(GDriveMCPError):
    """The requested tool name is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool not found: {name}")


class InvalidToolArguments(GDriveMCPError):
    """Tool arguments are missing or have the wrong type."""


class TextNotFound(GDriveMCPError):
    """Text targeted for deletion does not occur in the file."""

    def __init__(self, target: str, file_id: str) -> None:
        self.target = target
        self.file_id = file_id
        super().__init__(f"The text '{target}' does not exist in file {file_id}.")


class InvalidResourceURI(GDriveMCPError):
    """A resource URI does not use the gdrive:/// scheme or carries no file ID."""


class RemoteFailure(GDriveMCPError):
    """The Google Drive API rejected a request or could not be reached.

    Attributes:
        status_code: HTTP status returned by Drive, or None for transport errors.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class CredentialsError(GDriveMCPError):
    """Stored OAuth credentials are missing, corrupt, or cannot be refreshed."""
