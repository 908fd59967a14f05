"""
main.py — FastAPI Application Entrypoint

Purpose:
- Initialize application services (logging, config, storage, benchmark feed).
- Register API routers under `settings.API_PREFIX` and the `/ws` WebSocket.
- Define root-level health/status endpoints.
- Provide `app` object used by ASGI server (uvicorn / hypercorn).

This file should stay clean — no business logic here.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api import websocket
from app.api.v1 import ai, auth, benchmarks, companies, documents, exports, users, valuations, wizard
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging, get_logger
from app.services.benchmarks.broadcaster import BenchmarkBroadcaster
from app.services.storage import Storage, build_storage

logger = get_logger(__name__)

API_ROUTERS = (
    auth.router,
    users.router,
    companies.router,
    wizard.router,
    documents.router,
    valuations.router,
    exports.router,
    ai.router,
    benchmarks.router,
)


def create_app(
    storage: Optional[Storage] = None,
    broadcaster: Optional[BenchmarkBroadcaster] = None,
) -> FastAPI:
    """
    Build the ASGI app.

    `storage` / `broadcaster` are injected by tests; when omitted the storage
    backend is chosen from settings at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.storage = storage if storage is not None else build_storage(settings)
        app.state.benchmarks = broadcaster if broadcaster is not None else BenchmarkBroadcaster()
        logger.info(
            "Startup complete: storage=%s environment=%s",
            type(app.state.storage).__name__,
            settings.ENVIRONMENT,
        )
        yield
        await app.state.benchmarks.shutdown()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Business valuation, buyer matching and live industry benchmarks",
        version="0.1.0",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # CORS
    # -------------------------------------------------------------------------

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # -------------------------------------------------------------------------
    # Router Registration
    # -------------------------------------------------------------------------

    for router in API_ROUTERS:
        app.include_router(router, prefix=settings.API_PREFIX)
    app.include_router(websocket.router)

    # -------------------------------------------------------------------------
    # Health Check
    # -------------------------------------------------------------------------

    @app.get("/")
    def root():
        return {"status": "ok", "message": "Valuation backend running"}

    @app.get("/health")
    def health(request: Request):
        return {
            "status": "ok",
            "storage": request.app.state.storage.name,
            "websocketClients": len(request.app.state.benchmarks.connections),
        }

    return app


configure_logging(settings.LOG_LEVEL)

app = create_app()
