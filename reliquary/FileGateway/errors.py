"""
FileGateway error taxonomy.

Every error carries a stable ``code`` so transports can map it without
string matching. I/O errors keep the underlying OSError on ``cause``.
"""

from typing import Optional


class GatewayError(Exception):
    """Base exception for all FileGateway errors."""

    code = "GatewayError"

    def __init__(self, message: str, path: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.cause = cause

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization."""
        return {"error": self.message, "code": self.code, "path": self.path}


class OutOfScopeError(GatewayError):
    """Raised when a path resolves outside the configured root."""

    code = "OutOfScope"

    def __init__(self, path: Optional[str], root: str, resolved: Optional[str] = None):
        message = f"Path outside graph directory: {path} (resolved: {resolved}, root: {root})"
        super().__init__(message, path=path)
        self.root = root
        self.resolved = resolved


class PathNotFoundError(GatewayError):
    """Raised when a file or directory does not exist."""

    code = "NotFound"


class ProbeFailedError(GatewayError):
    """Raised when stat fails for any reason other than absence."""

    code = "ProbeFailed"


class ReadFailedError(GatewayError):
    """Raised when a file exists but cannot be read."""

    code = "ReadFailed"


class WriteFailedError(GatewayError):
    """Raised when a write, move, copy or mkdir cannot be committed."""

    code = "WriteFailed"


class DangerousOperationError(GatewayError):
    """Raised on an attempt to delete a directory."""

    code = "DangerousOperation"


class BackupFailedError(GatewayError):
    """Raised when a backup copy cannot be written."""

    code = "BackupFailed"


class UnsupportedOperationError(GatewayError):
    """Raised for operations this backend does not provide."""

    code = "Unsupported"
