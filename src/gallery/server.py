"""FastAPI application factory and route setup for the gallery service."""

import logging
import secrets
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse

from gallery.config import GalleryConfig
from gallery.errors import GalleryError, InternalError, InvalidRequest
from gallery.handlers.api import ApiHandler
from gallery.metadata import RecordStore, create_metadata_store
from gallery.metadata.models import now_iso
from gallery.storage.backend import ObjectStore
from gallery.ui import render_index

logger = logging.getLogger(__name__)

# Module-level singleton so multiple create_app() calls (e.g. in tests)
# don't re-register the same Prometheus collectors in the global registry.
_instrumentator = None


def _get_instrumentator():
    global _instrumentator
    if _instrumentator is None:
        from prometheus_fastapi_instrumentator import Instrumentator

        _instrumentator = Instrumentator(excluded_handlers=["/metrics"])
    return _instrumentator


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    config: GalleryConfig,
    metadata: RecordStore | None = None,
    storage: ObjectStore | None = None,
) -> FastAPI:
    """Create and configure the gallery FastAPI application.

    Store clients are created once per process. Clients passed in are used
    as-is; missing ones are built from config by the lifespan hook. Either
    way they live on ``app.state`` and are closed on shutdown.

    Args:
        config: The loaded gallery configuration.
        metadata: Optional pre-built record store.
        storage: Optional pre-built object store.

    Returns:
        A configured FastAPI application ready to run.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize the store clients on startup and close them on shutdown."""
        if app.state.metadata is None:
            app.state.metadata = create_metadata_store(config)
        await app.state.metadata.init_db()

        try:
            if app.state.storage is None:
                app.state.storage = _create_object_store(config)
            await app.state.storage.init()
        except Exception:
            logger.error("Object store failed to start; closing metadata store")
            await app.state.metadata.close()
            raise

        logger.info(
            "Stores initialized: metadata=%s table=%s storage=%s bucket=%s",
            config.metadata.engine,
            config.metadata.table,
            config.storage.backend,
            config.storage.bucket,
        )

        yield

        await app.state.storage.close()
        await app.state.metadata.close()
        logger.info("Metadata store and object store closed")

    app = FastAPI(
        title="Gallery API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.metadata = metadata
    app.state.storage = storage

    _register_exception_handlers(app)
    _register_middleware(app)

    # /metrics must be registered before the routes it instruments are hit
    if config.observability.metrics:
        import gallery.metrics as _metrics

        _metrics.init_metrics()
        _get_instrumentator().instrument(app, metric_namespace="gallery").expose(
            app, endpoint="/metrics"
        )

    _setup_routes(app)

    return app


def _create_object_store(config: GalleryConfig) -> ObjectStore:
    """Create an object store instance based on configuration.

    Supports 'aws' and 'memory' backends.

    Args:
        config: The gallery configuration.

    Returns:
        An object store instance.
    """
    backend = config.storage.backend
    if backend == "aws":
        from gallery.storage.aws import S3ObjectStore

        return S3ObjectStore(
            bucket_name=config.storage.bucket,
            region=config.storage.region,
            endpoint_url=config.storage.endpoint_url,
            public_url_template=config.storage.public_url_template,
        )
    elif backend == "memory":
        from gallery.storage.memory import MemoryObjectStore

        return MemoryObjectStore(
            bucket_name=config.storage.bucket,
            region=config.storage.region,
            public_url_template=config.storage.public_url_template,
        )
    else:
        raise ValueError(f"Unknown storage backend: {backend}")


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


def _error_response(exc: GalleryError) -> Response:
    return JSONResponse(exc.to_body(), status_code=exc.http_status)


def _register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the FastAPI app."""

    @app.exception_handler(GalleryError)
    async def gallery_error_handler(request: Request, exc: GalleryError) -> Response:
        """Render GalleryError as a JSON error body."""
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
        """Map FastAPI validation errors to a 400 client input error."""
        messages = []
        for err in exc.errors():
            loc = " -> ".join(str(p) for p in err.get("loc", []))
            msg = err.get("msg", "Invalid value")
            messages.append(f"{loc}: {msg}" if loc else msg)
        combined = "; ".join(messages) or "Invalid request parameters"
        return _error_response(InvalidRequest(combined))

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> Response:
        """Catch unexpected exceptions and return InternalError."""
        logger.exception("Unhandled exception in request handler")
        return _error_response(InternalError())


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


def _register_middleware(app: FastAPI) -> None:
    """Register the request id / access log middleware."""

    # Paths to suppress from per-request logging
    _QUIET_PATHS = {"/metrics", "/health"}

    @app.middleware("http")
    async def request_log_middleware(request: Request, call_next) -> Response:
        """Tag every response with x-request-id and log one line per request."""
        request_id = secrets.token_hex(8)
        request.state.request_id = request_id
        start = time.monotonic()

        response = await call_next(request)

        duration_ms = round((time.monotonic() - start) * 1000, 2)
        response.headers["x-request-id"] = request_id

        if request.url.path not in _QUIET_PATHS:
            logger.info(
                "%s %s %d %.2fms",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": duration_ms,
                    "request_id": request_id,
                },
            )

        return response


# ---------------------------------------------------------------------------
# Route handlers
# ---------------------------------------------------------------------------


def _setup_routes(app: FastAPI) -> None:
    """Register the UI, health and JSON API routes on the application.

    Args:
        app: The FastAPI application to attach routes to.
    """
    api = ApiHandler(app)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> Response:
        """Serve the single-page gallery UI."""
        return HTMLResponse(content=render_index(app.state.config))

    @app.get("/health")
    async def health_check() -> Response:
        """Return static liveness status with the current time."""
        return JSONResponse({"status": "ok", "ts": now_iso()})

    @app.get("/api/s3/presign")
    async def presign(request: Request) -> Response:
        return await api.presign(request)

    @app.post("/api/db/save")
    async def save_record(request: Request) -> Response:
        return await api.save_record(request)

    @app.get("/api/db/list")
    async def list_records(request: Request) -> Response:
        return await api.list_records(request)

    @app.post("/api/db/update")
    async def update_record(request: Request) -> Response:
        return await api.update_record(request)

    @app.delete("/api/db/delete")
    async def delete_record(request: Request) -> Response:
        return await api.delete_record(request)
