"""FastAPI main application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from docvault import __version__
from docvault.api.auth import router as auth_router
from docvault.api.deps import get_blob_store
from docvault.api.files import router as files_router
from docvault.api.profiles import router as profiles_router
from docvault.core.config import settings
from docvault.core.exceptions import DocVaultError, TransportError, status_for
from docvault.core.logging import configure_logging, get_logger
from docvault.core.middleware import setup_middleware

logger = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    configure_logging()
    logger.info("Starting %s API", settings.APP_NAME)
    try:
        await run_in_threadpool(get_blob_store().ensure_bucket)
        logger.info("Bucket '%s' ready", settings.MINIO_BUCKET)
    except TransportError as e:
        logger.warning("Object storage not available: %s", e.message)

    yield

    logger.info("Shutting down %s API", settings.APP_NAME)


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Shared document vault: upload, browse, access links, administration",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Middleware
    setup_middleware(app)

    @app.exception_handler(DocVaultError)
    async def docvault_exception_handler(request: Request, exc: DocVaultError):
        return JSONResponse(
            status_code=status_for(exc),
            content={"detail": exc.message, "error": type(exc).__name__},
        )

    # Register routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(files_router, prefix="/api")
    app.include_router(profiles_router, prefix="/api")

    @app.get("/")
    async def root():
        return {
            "name": settings.APP_NAME,
            "version": __version__,
            "docs": "/docs",
        }

    @app.get("/api/health")
    async def health():
        """Quick health check endpoint."""
        return {"status": "ok"}

    return app


app = create_app()
