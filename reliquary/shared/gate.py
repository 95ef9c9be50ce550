"""
Shared Gate utilities for Reliquary.

Provides the patterns every Gate implementation relies on:
- GateLogger: Unified logging with Python's logging module
- GateErrorHandler: Logging helpers for best-effort failures
- GateHealth: Protocol for health checks
- PathUtils: Common path operations
"""

from __future__ import annotations

import logging
import os
from functools import wraps
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)


# =============================================================================
# GateLogger - Unified logging for all Gates
# =============================================================================


class GateLogger:
    """
    Unified logging for all Gates.

    Each gate gets its own namespaced logger under "reliquary".
    """

    _loggers: Dict[str, logging.Logger] = {}
    _configured = False

    @classmethod
    def _ensure_configured(cls):
        """Ensure basic logging is configured."""
        if cls._configured:
            return

        root_logger = logging.getLogger("reliquary")
        if not root_logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                "[%(name)s] %(levelname)s: %(message)s"
            )
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)
            root_logger.setLevel(logging.INFO)

        cls._configured = True

    @classmethod
    def get(cls, gate_name: str) -> logging.Logger:
        """
        Get a logger for a specific gate.

        Args:
            gate_name: Name of the gate (e.g., "FileGateway", "Config")

        Returns:
            Logger instance for the gate
        """
        cls._ensure_configured()

        logger_name = f"reliquary.{gate_name}"
        if logger_name not in cls._loggers:
            cls._loggers[logger_name] = logging.getLogger(logger_name)

        return cls._loggers[logger_name]

    @classmethod
    def set_level(cls, level: int, gate_name: Optional[str] = None):
        """
        Set logging level.

        Args:
            level: Logging level (e.g., logging.DEBUG)
            gate_name: Specific gate to set level for, or None for all
        """
        if gate_name:
            cls.get(gate_name).setLevel(level)
        else:
            logging.getLogger("reliquary").setLevel(level)


# =============================================================================
# GateErrorHandler - Unified error handling
# =============================================================================


class GateErrorHandler:
    """
    Error handling for best-effort Gate operations.

    Used where a failure must be recorded but must not abort the
    primary action (backups, directory bootstrapping).
    """

    @staticmethod
    def handle(
        gate_name: str,
        operation: str,
        exception: Exception,
        default_return: Any = None,
        log_level: int = logging.ERROR,
    ) -> Any:
        """
        Handle and log a gate operation error.

        Args:
            gate_name: Name of the gate
            operation: Operation that failed
            exception: The exception that occurred
            default_return: Value to return on error
            log_level: Logging level to use

        Returns:
            The default_return value
        """
        logger = GateLogger.get(gate_name)
        logger.log(log_level, f"{operation} failed: {exception}")
        return default_return

    @staticmethod
    def wrap(
        gate_name: str,
        operation: str,
        errors: tuple = (Exception,),
        default_return: Any = None,
        log_level: int = logging.ERROR,
    ):
        """
        Decorator that logs and swallows the given error types.

        Args:
            gate_name: Name of the gate
            operation: Operation name for logging
            errors: Exception types to swallow; anything else propagates
            default_return: Value to return on error
            log_level: Logging level to use

        Returns:
            Decorator function
        """
        def decorator(func: Callable) -> Callable:
            @wraps(func)
            def wrapper(*args, **kwargs):
                try:
                    return func(*args, **kwargs)
                except errors as e:
                    return GateErrorHandler.handle(
                        gate_name, operation, e, default_return, log_level
                    )
            return wrapper
        return decorator


# =============================================================================
# GateHealth - Protocol for health checks
# =============================================================================


@runtime_checkable
class GateHealth(Protocol):
    """
    Protocol for gate health checking.

    All Gates implement this protocol to provide consistent
    health monitoring capabilities.
    """

    def is_healthy(self) -> bool:
        """Check if the gate is operational."""
        ...

    def get_health_status(self) -> Dict[str, Any]:
        """
        Get detailed health information.

        Returns:
            Dict with health details including:
            - healthy: bool
            - initialized: bool
            - dependencies: List[str]
            - details: Dict[str, Any]
        """
        ...

    def get_dependencies(self) -> List[str]:
        """List external dependencies (e.g., filesystem)."""
        ...


def build_health_status(
    gate_name: str,
    initialized: bool,
    dependencies: List[str],
    checks: Dict[str, bool],
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build a standardized health status dict.

    Args:
        gate_name: Name of the gate
        initialized: Whether the gate is initialized
        dependencies: List of dependency names
        checks: Dict of check name -> passed
        details: Additional details

    Returns:
        Standardized health status dict
    """
    all_checks_passed = all(checks.values()) if checks else True

    return {
        "gate": gate_name,
        "healthy": initialized and all_checks_passed,
        "initialized": initialized,
        "dependencies": dependencies,
        "checks": checks,
        "details": details or {},
    }


# =============================================================================
# PathUtils - Common path operations
# =============================================================================


class PathUtils:
    """Common path utilities for Gates."""

    @staticmethod
    def ensure_dir(path: Union[str, Path]) -> str:
        """
        Create a directory and any missing parents.

        Safe to race: an existing directory is not an error.

        Returns:
            The directory path as a string
        """
        path = os.fspath(path)
        os.makedirs(path, exist_ok=True)
        return path

    @staticmethod
    def ensure_parent(path: Union[str, Path]) -> str:
        """Create the parent directory of a file path. Returns the parent."""
        return PathUtils.ensure_dir(os.path.dirname(os.fspath(path)))

    @staticmethod
    def to_posix(path: Union[str, Path]) -> str:
        """Convert host separators to forward slashes."""
        return os.fspath(path).replace("\\", "/")
