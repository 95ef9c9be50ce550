"""
FileGateway stat probe.

Distinguishes "does not exist" from every other stat failure so the write
path can branch on whether its target pre-exists.
"""

from .errors import ProbeFailedError
from .models import FileStat, NOT_FOUND, ProbeResult
from .operations import stat_raw


def stat_path(resolved: str) -> ProbeResult:
    """
    Fetch metadata for an already-resolved path.

    Args:
        resolved: Absolute path that has passed the security check

    Returns:
        FileStat, or NOT_FOUND if nothing exists at the path

    Raises:
        ProbeFailedError: On permission or other I/O errors
    """
    try:
        st, is_dir = stat_raw(resolved)
    except (FileNotFoundError, NotADirectoryError):
        return NOT_FOUND
    except OSError as e:
        raise ProbeFailedError(f"stat failed: {e}", path=resolved, cause=e) from e

    return FileStat.from_os_stat(st, is_dir)
