"""Version information for gdrive-mcp."""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION_NAME = "gdrive-mcp"


def _get_version() -> str:
    """Installed distribution version, else the checkout's VERSION file."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        pass

    # src/gdrive_mcp/__version__.py -> <checkout>/VERSION
    version_file = Path(__file__).resolve().parents[2] / "VERSION"
    if version_file.is_file():
        return version_file.read_text().strip()
    return "0.0.0+unknown"


__version__ = _get_version()
