"""
FastAPI application entry point.

This module creates and configures the FastAPI application.

For local development:
    uvicorn eventdrop.main:app --reload

For production:
    gunicorn eventdrop.main:app -w 4 -k uvicorn.workers.UvicornWorker

Workers share the event registry through its file lock. Mock storage lives
in process memory, so STORAGE_MOCK_MODE needs a single worker.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import admin, guest, health
from .config.settings import get_settings
from .core.errors import EventDropError, ValidationError

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    FastAPI calls this automatically when the application starts/stops.
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        "EventDrop API starting",
        extra={
            "version": settings.app_version,
            "events_file": settings.events_file,
            "mock_mode": {"storage": settings.storage_mock_mode},
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        # Guest pages still work without these; admin and storage calls fail per request.
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("EventDrop API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        description="""
        Branded guest-upload pages for events.

        ## Workflow

        1. **Create an event**: `POST /admin/create`
           - Upload a background image, get a guest link and QR code
        2. **Guests upload**: `POST /event/{event_id}/upload`
           - Photos and videos go straight to object storage
        3. **Browse uploads**: `GET /admin/photos/{event_id}`
           - Time-limited links to everything guests sent
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        guest.router,
        prefix="/event",
        tags=["Guests"],
    )

    app.include_router(
        admin.router,
        prefix="/admin",
        tags=["Admin"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "EventDrop API",
            "version": settings.app_version,
            "admin": "/admin",
            "health": "/health",
        }

    @app.exception_handler(EventDropError)
    async def eventdrop_exception_handler(request: Request, exc: EventDropError):
        """
        Map the error taxonomy onto HTTP responses.

        Storage failures keep their cause text so a guest knows the
        upload did not go through and can retry.
        """
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Request failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error_type": type(exc).__name__,
                "error": exc.message,
            },
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """
        Malformed form parts (a text value where a file belongs, say) are
        client errors like any other ValidationError.
        """
        fields = sorted({str(error["loc"][-1]) for error in exc.errors() if error.get("loc")})
        error = ValidationError(f"Invalid or missing fields: {', '.join(fields)}")
        return await eventdrop_exception_handler(request, error)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        We log the full error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.app_title,
            "version": settings.app_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "eventdrop.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
