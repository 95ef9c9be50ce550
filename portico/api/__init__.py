"""
HTTP routers for the Reliquary file API.
"""

from portico.api import files, health

__all__ = ["files", "health"]
