"""
Health check API endpoint.
"""

from __future__ import annotations

import os
from typing import Any, Dict

from fastapi import APIRouter, Response

from reliquary.FileGateway import FileGateway


def create_router(gateway: FileGateway) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    def api_health(response: Response) -> Dict[str, Any]:
        """Report whether the graph directory is usable."""
        status = gateway.get_health_status()
        if not status["healthy"]:
            response.status_code = 503

        return {
            "status": "ok" if status["healthy"] else "degraded",
            "graphDir": gateway.root,
            "exists": os.path.isdir(gateway.root),
            "gateway": status,
        }

    return router


__all__ = ["create_router"]
