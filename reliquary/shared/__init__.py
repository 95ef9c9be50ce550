"""
Shared utilities for Reliquary.

Provides access to common functionality used across Gate implementations.
"""

from reliquary.shared.gate import (
    GateLogger,
    GateErrorHandler,
    GateHealth,
    PathUtils,
    build_health_status,
)

__all__ = [
    "GateLogger",
    "GateErrorHandler",
    "GateHealth",
    "PathUtils",
    "build_health_status",
]
