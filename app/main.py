"""
Main FastAPI application for the statutory declaration service.
Handles CORS, request logging middleware, lifespan events, and router registration.
"""
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.routers import debug, declarations, health, proxy
from app.services.declaration import UnexpectedInternalError
from app.services.pdf_renderer import build_pdf_renderer
from app.services.validation import MissingFieldsError

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the PDF renderer and HTTP client once; release them on shutdown."""
    logger.info("=" * 60)
    logger.info("  Starting statutory declaration service …")
    logger.info("=" * 60)

    # 1. PDF backend, selected once from configuration
    app.state.pdf_renderer = build_pdf_renderer(settings)
    logger.info("✓ Environment : %s", settings.environment_name)
    logger.info("✓ PDF backend : %s", app.state.pdf_renderer.backend)
    if app.state.pdf_renderer.backend == "none":
        logger.warning("⚠ No PDF backend — documents will be returned as HTML")

    # 2. Outbound client for the n8n relay
    app.state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(settings.PROXY_TIMEOUT_SECONDS, connect=10.0)
    )
    if not settings.N8N_WEBHOOK_URL:
        logger.info("  N8N_WEBHOOK_URL not set — /api/webhook-proxy disabled")

    logger.info("=" * 60)
    logger.info("  Service ready on http://%s:%d", settings.HOST, settings.PORT)
    logger.info("  Swagger UI : http://%s:%d/docs", settings.HOST, settings.PORT)
    logger.info("  Health     : http://%s:%d/api/health", settings.HOST, settings.PORT)
    logger.info("=" * 60)

    yield  # ← server is running

    logger.info("Shutting down …")
    await app.state.http_client.aclose()
    await app.state.pdf_renderer.aclose()
    logger.info("✓ Shutdown complete.")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Statutory Declaration API",
    description=(
        "Generates statutory declarations for residential property financing "
        "from form or n8n webhook data.\n\n"
        "Key endpoints:\n"
        "- `POST /api/webhook` — any payload shape → PDF (HTML fallback)\n"
        "- `POST /api/generate-pdf` — extracted data → PDF only\n"
        "- `POST /api/pdf-filler` — frontend form → PDF (HTML fallback)\n"
        "- `POST /api/webhook-proxy` — relay a document upload to n8n\n"
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["Content-Disposition", "X-Environment", "X-PDF-Available", "X-PDF-Fallback-Reason"],
)


# ---------------------------------------------------------------------------
# Request / response logging middleware
# ---------------------------------------------------------------------------

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log every request with method, path, status code, and elapsed time.
    Attaches an ``X-Process-Time`` header (milliseconds) to every response.
    """
    t0 = time.monotonic()
    response = await call_next(request)
    elapsed_ms = round((time.monotonic() - t0) * 1000, 2)

    # Skip noisy health-check polling
    if request.url.path not in ("/api/health/", "/api/health", "/"):
        logger.info(
            "%s %s → %d  (%.2f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )

    response.headers["X-Process-Time"] = f"{elapsed_ms}ms"
    return response


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(MissingFieldsError)
async def missing_fields_handler(request: Request, exc: MissingFieldsError):
    """Reject incomplete declarations, naming every missing field."""
    logger.info("Rejected %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "missing_fields": exc.missing_fields},
    )


def _internal_error_response(request: Request, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": error,
            "path": str(request.url.path),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@app.exception_handler(UnexpectedInternalError)
async def internal_error_handler(request: Request, exc: UnexpectedInternalError):
    """Pipeline failures that are neither missing data nor PDF unavailability."""
    logger.error(
        "Declaration pipeline failed on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return _internal_error_response(request, str(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return a structured JSON error for any unhandled exception."""
    logger.error(
        "Unhandled exception on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    # Only the type: messages from client libraries may embed URLs with credentials
    return _internal_error_response(request, type(exc).__name__)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(health.router,       prefix="/api/health", tags=["Health"])
app.include_router(declarations.router, prefix="/api",        tags=["Declarations"])
app.include_router(proxy.router,        prefix="/api",        tags=["n8n"])
app.include_router(
    debug.router,
    prefix="/api",
    tags=["Debug"],
    include_in_schema=settings.ENABLE_DEBUG_ENDPOINTS,
)


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------

@app.get("/", tags=["Root"], include_in_schema=False)
async def root():
    """API root — returns basic service info."""
    return {
        "name": "Statutory Declaration API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
        "endpoints": {
            "webhook": "/api/webhook",
            "generate_pdf": "/api/generate-pdf",
            "pdf_filler": "/api/pdf-filler",
            "webhook_proxy": "/api/webhook-proxy",
        },
    }


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level="info",
    )
