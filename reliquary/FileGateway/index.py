"""
FileGateway document index.

The caller-side record of what each file last looked like. The write path
consults it when a request does not say what the caller last saw, and
records the new modification time after a commit.
"""

import threading
from typing import Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class DocumentIndex(Protocol):
    """Out-of-band source of last-known content, keyed by relative path."""

    def get_content(self, relative_path: str) -> Optional[str]:
        """Last content the caller saw for a path, if any."""
        ...

    def set_content(self, relative_path: str, content: str) -> None:
        """Record content the caller now holds for a path."""
        ...

    def set_last_modified_at(self, relative_path: str, mtime: float) -> None:
        """Record the modification time (epoch ms) of a committed write."""
        ...


class InMemoryDocumentIndex:
    """Thread-safe dict-backed DocumentIndex."""

    def __init__(self):
        self._lock = threading.Lock()
        self._content: Dict[str, str] = {}
        self._mtimes: Dict[str, float] = {}

    def get_content(self, relative_path: str) -> Optional[str]:
        with self._lock:
            return self._content.get(relative_path)

    def set_content(self, relative_path: str, content: str) -> None:
        with self._lock:
            self._content[relative_path] = content

    def set_last_modified_at(self, relative_path: str, mtime: float) -> None:
        with self._lock:
            self._mtimes[relative_path] = mtime

    def get_last_modified_at(self, relative_path: str) -> Optional[float]:
        with self._lock:
            return self._mtimes.get(relative_path)
