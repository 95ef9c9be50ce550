"""
Reliquary filesystem API server.

Serves one graph directory over POST /api/fs/* endpoints.

Usage:
    RELIQUARY_GRAPH_DIR=/path/to/graphs python -m portico.run

Or as an app factory:
    uvicorn --factory portico.run:create_app
"""

from __future__ import annotations

from typing import Dict, Optional, Type

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from reliquary import Config
from reliquary.FileGateway import (
    FileGateway,
    GatewayConfig,
    DocumentIndex,
    GatewayError,
    OutOfScopeError,
    PathNotFoundError,
    DangerousOperationError,
    UnsupportedOperationError,
)
from reliquary.shared.gate import GateLogger

from portico.api import files as files_api
from portico.api import health as health_api

_log = GateLogger.get("Server")

# Anything not listed maps to 500
ERROR_STATUS: Dict[Type[GatewayError], int] = {
    OutOfScopeError: 403,
    PathNotFoundError: 404,
    DangerousOperationError: 400,
    UnsupportedOperationError: 400,
}


def status_for(error: GatewayError) -> int:
    """HTTP status for a gateway error."""
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 500


def register_error_handlers(app: FastAPI) -> None:
    """Translate gateway errors into JSON error responses."""

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        status = status_for(exc)
        if status >= 500:
            _log.error(f"{request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=status, content=exc.to_dict())


def create_app(
    config: Optional[GatewayConfig] = None,
    index: Optional[DocumentIndex] = None
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Gateway configuration (default: loaded from the environment)
        index: Document index shared by all requests

    Returns:
        Configured FastAPI app
    """
    if config is None:
        config = Config.load_gateway_config()

    gateway = FileGateway(config, index)

    app = FastAPI(title="Reliquary")
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    register_error_handlers(app)
    app.include_router(files_api.create_router(gateway))
    app.include_router(health_api.create_router(gateway))

    _log.info(f"Graph directory: {config.root}")
    return app


def main() -> None:
    """Run the server on the configured port."""
    manager = Config.ConfigManager()
    manager.apply_log_level()
    app = create_app(manager.to_gateway_config())
    port = manager.get("PORT", 3000)

    _log.info(f"Reliquary filesystem API server running on port {port}")
    uvicorn.run(app, host="0.0.0.0", port=port, log_config=None)


if __name__ == "__main__":
    main()
