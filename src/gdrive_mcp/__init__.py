"""Google Drive MCP Server.

Exposes a Google Drive account to MCP clients as paginated resources
and a fixed set of file tools (search, upload, update, delete, read,
append, delete-text).
"""

from gdrive_mcp.__version__ import __version__

__all__ = ["__version__"]
