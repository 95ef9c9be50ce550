"""
FileGateway conflict detection.

Decides whether the content on disk has moved away from what the caller last
saw. The answer only gates a backup; it never blocks a write.
"""

from typing import Any


def has_diverged(disk_content: Any, last_known_content: Any) -> bool:
    """
    Compare disk content with the caller's last-known content.

    Leading and trailing whitespace is ignored on both sides, so editor
    round-trips that only touch a trailing newline do not count.

    Args:
        disk_content: Content currently on disk
        last_known_content: Content the caller believes is on disk

    Returns:
        True only if both values are text and differ after stripping.
        Missing or non-text content cannot be compared and yields False.
    """
    if not isinstance(disk_content, str) or not isinstance(last_known_content, str):
        return False

    return disk_content.strip() != last_known_content.strip()
