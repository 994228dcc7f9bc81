"""MCP server implementation for Google Drive.

Resources:
- gdrive:///<file id> for every file, listed ten per page
- Google Docs, Sheets and Slides are exported to Markdown, CSV and text

Tools (7):
- search: full-text search
- upload_file_with_content: create a file from text
- update_file_content / delete_file: by file ID or exact name
- read_file_content / append_file_content / delete_from_file_content

Transport: Stdio
Authentication: OAuth 2.0 with automatic token refresh
"""

from gdrive_mcp.server.gdrive_server import GDriveServer, create_server, main

__all__ = ["create_server", "GDriveServer", "main"]
