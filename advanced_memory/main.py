"""
Main entry point for the Advanced Memory API server.

Starts the FastAPI application with all routes and error handlers.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from advanced_memory import __version__
from advanced_memory.api.dependencies import get_container, shutdown_container
from advanced_memory.api.routes import router
from advanced_memory.api.schemas import ErrorResponse
from advanced_memory.core.exceptions import AdvancedMemoryError, ValidationError
from advanced_memory.core.logging import get_logger, setup_logging
from config.settings import get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info("Starting Advanced Memory API server...")

    try:
        await get_container()
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error("Failed to initialize services", error=str(e))
        raise

    yield

    logger.info("Shutting down Advanced Memory API server...")
    await shutdown_container()
    logger.info("All services cleaned up")


def _plain(details: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value if isinstance(value, (str, int, float, bool, type(None))) else str(value)
        for key, value in details.items()
    }


def _error_body(message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return ErrorResponse(error_message=message, details=_plain(details or {})).model_dump(
        mode="json"
    )


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    setup_logging(
        level=settings.log_level,
        json_format=settings.is_production,
    )

    app = FastAPI(
        title="Advanced Memory API",
        description="""
Knowledge services for agents:
- GraphRAG indexing with local and global search
- Per-user long-term memory with Mem0 ADD/UPDATE semantics
- Fact verification against trusted sources

**Local-first**: the default embedder, graph and memory store run in-process.
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api/v1")

    @app.get("/", tags=["Root"])
    async def root() -> dict:
        return {
            "name": "Advanced Memory API",
            "version": __version__,
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    @app.exception_handler(AdvancedMemoryError)
    async def service_error_handler(request: Request, exc: AdvancedMemoryError) -> JSONResponse:
        status_code = 400 if isinstance(exc, ValidationError) else 500
        if status_code == 500:
            logger.error("Service error", path=request.url.path, error=str(exc))
        else:
            logger.info("Rejected request", path=request.url.path, error=exc.message)

        return JSONResponse(
            status_code=status_code,
            content=_error_body(exc.message, exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=_error_body(
                "Invalid request",
                {"errors": "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in exc.errors()
                )},
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled exception", path=request.url.path, error=str(exc))
        message = str(exc) if settings.debug else "Internal server error"
        return JSONResponse(status_code=500, content=_error_body(message))

    return app


app = create_app()


def main() -> None:
    """Run the API server."""
    settings = get_settings()

    uvicorn.run(
        "advanced_memory.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=1 if settings.debug else settings.api_workers,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
