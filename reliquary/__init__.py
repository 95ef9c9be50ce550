"""
Reliquary - a root-scoped remote filesystem.

Serves one graph directory over a small request/response API. Writes keep a
backup of content that changed behind the caller's back, deletes go to a
recycle area, and no path may leave the configured root.
"""

from reliquary import Config
from reliquary import FileGateway

__version__ = "0.1.0"

__all__ = [
    "Config",
    "FileGateway",
]
