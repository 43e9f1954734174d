# =======================================================================================
# gatepass/main.py - FastAPI Application Entry Point
# =======================================================================================
import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .config import config
from .api.routes.members import router as members_router
from .api.routes.guests import router as guests_router
from .api.routes.credentials import router as credentials_router
from .api.routes.scan import router as scan_router
from .api.routes.logs import router as logs_router
from .models.schemas import HealthResponse
from .services import Services
from .store import DocumentStore, build_store
from .utils.exceptions import (
    GatepassError,
    CredentialIssueError,
    SubjectNotFoundError,
    CredentialNotFoundError,
    StoreError,
    TenantScopeError,
)

log = logging.getLogger("gatepass")

ERROR_STATUS = (
    (CredentialIssueError, 422),
    (SubjectNotFoundError, 404),
    (CredentialNotFoundError, 404),
    (TenantScopeError, 400),
    (StoreError, 503),
)


def configure_logging():
    level = logging.DEBUG if config.API_DEBUG else getattr(logging, config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(services: Optional[Services] = None) -> FastAPI:
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned: Optional[DocumentStore] = None
        if getattr(app.state, "services", None) is None:
            owned = build_store()
            app.state.services = Services(owned)
        log.info("Gate access API started (store=%s)", type(app.state.services.store).__name__)
        yield
        if owned is not None:
            await owned.close()

    app = FastAPI(
        title="Gatepass Access Control API",
        version="1.0.0",
        description="Credential issuance, validation and access logging for gated communities",
        debug=config.API_DEBUG,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GatepassError)
    async def gatepass_error_handler(request: Request, exc: GatepassError):
        status = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 400)
        if status >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status, content={"detail": str(exc), "error": type(exc).__name__})

    # Routers
    app.include_router(members_router, prefix="/api", tags=["members"])
    app.include_router(guests_router, prefix="/api", tags=["guests"])
    app.include_router(credentials_router, prefix="/api", tags=["credentials"])
    app.include_router(scan_router, prefix="/api", tags=["scan"])
    app.include_router(logs_router, prefix="/api", tags=["logs"])

    @app.get("/api/health", response_model=HealthResponse, tags=["health"])
    async def api_health(request: Request):
        try:
            await request.app.state.services.store.ping()
            return HealthResponse(status="ok", dataAvailable=True, message=None)
        except Exception as e:
            return HealthResponse(status="error", dataAvailable=False, message=str(e))

    return app


app = create_app()
