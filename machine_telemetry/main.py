# machine_telemetry/main.py
"""
FastAPI application factory.
Builds the long-lived clients once, wires them into the telemetry handler,
and mounts the ingestion and read routers.

Run with: uvicorn machine_telemetry.main:create_app --factory --host 0.0.0.0 --port 8080
"""

from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.orm import sessionmaker
from machine_telemetry.routers import events, operation_logs, machine_status, health
from machine_telemetry.config import Settings, load_settings
from machine_telemetry.database import create_db_engine, create_session_factory, create_tables
from machine_telemetry.exceptions import ConfigurationError
from machine_telemetry.services.event_handler import TelemetryEventHandler
from machine_telemetry.services.image_archive import ImageArchive
from machine_telemetry.services.inference_client import InferenceClient
from machine_telemetry.utils.logger import configure_logging, get_logger
import time

logger = get_logger(__name__)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional lightweight API key auth for the read endpoints.
    Telemetry ingestion and health check are excluded.
    Set API_KEY in .env. Leave empty to disable auth.
    """
    open_paths = {"/api/v1/events/telemetry", "/api/v1/health", "/docs", "/redoc", "/openapi.json"}

    def __init__(self, app, api_key: str):
        super().__init__(app)
        self.api_key = api_key

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.open_paths:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != self.api_key:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[sessionmaker] = None,
    inference_client: Optional[InferenceClient] = None,
    image_archive: Optional[ImageArchive] = None,
) -> FastAPI:
    """
    Build the app. Missing or invalid configuration raises ConfigurationError
    here, before any route can run. Collaborators passed in are used as-is.
    """
    if settings is None:
        result = load_settings()
        if not result.ok:
            for error in result.errors:
                logger.critical(f"Configuration error — {error}")
            raise ConfigurationError(result.errors)
        settings = result.settings
    else:
        provided = set()
        if session_factory is not None:
            provided.add("DATABASE_URL")
        if inference_client is not None:
            provided.update(("ML_ENDPOINT_URL", "ML_API_KEY"))
        if image_archive is not None:
            provided.add("BLOB_CONNECTION_STRING")
        missing = [name for name in settings.missing_required() if name not in provided]
        if missing:
            raise ConfigurationError([f"{name}: required when HANDLER_MODE={settings.HANDLER_MODE}"
                                      for name in missing])

    configure_logging(settings.LOG_LEVEL)

    # Only what is built here is closed on shutdown
    owned = []
    engine = None
    if session_factory is None:
        engine = create_db_engine(settings.DATABASE_URL)
        session_factory = create_session_factory(engine)

    if inference_client is None and settings.HANDLER_MODE in ("archive", "inference"):
        inference_client = InferenceClient(
            settings.ML_ENDPOINT_URL, settings.ML_API_KEY, timeout=settings.INFERENCE_TIMEOUT_SECONDS,
        )
        owned.append(inference_client)
    if image_archive is None and settings.HANDLER_MODE == "archive":
        image_archive = ImageArchive.from_connection_string(
            settings.BLOB_CONNECTION_STRING, settings.BLOB_CONTAINER_NAME,
        )
        owned.append(image_archive)

    app = FastAPI(
        title="Machine Telemetry API",
        description="IoT machine telemetry ingestion — inference, image archive, state-change log.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.handler = TelemetryEventHandler.from_settings(
        settings, session_factory, inference_client=inference_client, image_archive=image_archive,
    )

    if settings.API_KEY:
        app.add_middleware(APIKeyMiddleware, api_key=settings.API_KEY)

    # ── Request Timing Middleware ────────────────────────────────────────────
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.time()
        response = await call_next(request)
        duration = round((time.time() - start) * 1000, 2)
        logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
        return response

    # ── Global Exception Handler ─────────────────────────────────────────────
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(events.router,         prefix="/api/v1", tags=["Telemetry"])
    app.include_router(operation_logs.router, prefix="/api/v1", tags=["Operation Logs"])
    app.include_router(machine_status.router, prefix="/api/v1", tags=["Machine Status"])
    app.include_router(health.router,         prefix="/api/v1", tags=["Health"])

    # ── Startup / Shutdown ───────────────────────────────────────────────────
    @app.on_event("startup")
    async def startup():
        logger.info("Machine telemetry backend starting up...")
        create_tables(session_factory.kw["bind"])
        logger.info("Database tables ready")
        logger.info(f"Handler mode: {settings.HANDLER_MODE} (sentinel class: {settings.SENTINEL_CLASS})")

    @app.on_event("shutdown")
    async def shutdown():
        logger.info("Machine telemetry backend shutting down...")
        for client in owned:
            if isinstance(client, InferenceClient):
                await client.aclose()
            else:
                client.close()
        if engine is not None:
            engine.dispose()

    return app
