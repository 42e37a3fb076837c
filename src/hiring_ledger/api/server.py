"""
FastAPI server for the ledger.

This module builds the FastAPI application that exposes ledger operations
over HTTP. It sets up:
- CORS middleware from ``config.security``
- The ledger store (backend chosen by ``config.database``)
- Exception handlers mapping ledger error kinds to HTTP status codes
- All routers from :mod:`hiring_ledger.api.routes`
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hiring_ledger import __version__
from hiring_ledger.api.models import ErrorModel
from hiring_ledger.api.routes import admin, applications, health
from hiring_ledger.config import LedgerConfig, config, configure_logging
from hiring_ledger.db.backend import create_backend
from hiring_ledger.ledger import LedgerError, LedgerStore

logger = logging.getLogger(__name__)

# ============================================================================
# ERROR MAPPING
# ============================================================================

ERROR_STATUS_CODES: dict[str, int] = {
    "InvalidInput": 400,
    "Unauthorized": 403,
    "NotFound": 404,
    "IndexOutOfRange": 404,
    "StorageFailure": 503,
}


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Render a ledger error as ``{"detail": ..., "error": <kind>}``."""
    status_code = ERROR_STATUS_CODES.get(exc.kind, 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": exc.kind},
    )


# ============================================================================
# APPLICATION FACTORY
# ============================================================================


def create_app(store: LedgerStore | None = None, cfg: LedgerConfig | None = None) -> FastAPI:
    """
    Build the FastAPI app around a ledger store.

    Args:
        store: Store to serve. Built from configuration when omitted.
        cfg: Configuration to read. Defaults to the module-level ``config``.

    Returns:
        Configured FastAPI application. The store is available as
        ``app.state.store``.
    """
    cfg = cfg or config
    if store is None:
        store = LedgerStore(create_backend(cfg))

    docs_url = "/docs" if cfg.security.docs_enabled else None
    app = FastAPI(
        title="Hiring Ledger",
        version=__version__,
        docs_url=docs_url,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_url else None,
    )
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(LedgerError, ledger_error_handler)

    app.include_router(health.router)
    error_responses = {code: {"model": ErrorModel} for code in set(ERROR_STATUS_CODES.values())}
    app.include_router(applications.router, responses=error_responses)
    app.include_router(admin.router, responses=error_responses)
    return app


# ============================================================================
# SERVER STARTUP
# ============================================================================


def start_server(host: str | None = None, port: int | None = None) -> None:
    """
    Run the API with uvicorn.

    Args:
        host: Interface to bind. Defaults to ``config.server.host``.
        port: Port to bind. Defaults to ``config.server.port``.
    """
    import uvicorn

    configure_logging()
    host = host or config.server.host
    port = port or config.server.port
    logger.info("Starting ledger API on %s:%d (%s backend)", host, port, config.database.backend)
    uvicorn.run(
        "hiring_ledger.api.server:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    start_server()
