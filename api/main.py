"""
FastAPI main application for the Book Management API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import TokenService
from api.config import APIConfig
from api.database import BookStore
from api.docs import API_DESCRIPTION, DOCS_URL, OPENAPI_URL, install_docs
from api.models import ErrorResponse, HealthResponse
from api.routes import auth_router, books_router

# Setup logging
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    config: APIConfig = app.state.config
    logger.info("Starting Book Management API", database_url=config.database_url)

    store = BookStore(config.database_url, echo=config.database_echo)
    try:
        await store.init_schema()
        logger.info("Database connection established")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        await store.close()
        raise

    app.state.store = store
    app.openapi()

    yield

    # Shutdown
    logger.info("Shutting down Book Management API")
    await store.close()


def create_app(config: Optional[APIConfig] = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings to run with; read from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    config = config or APIConfig()

    app = FastAPI(
        title=config.api_title,
        description=API_DESCRIPTION,
        version=config.api_version,
        docs_url=DOCS_URL,
        openapi_url=OPENAPI_URL,
        redoc_url=None,
        lifespan=lifespan
    )
    app.state.config = config
    app.state.token_service = TokenService.from_config(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=str(exc.detail)).model_dump(exclude_none=True),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle malformed path parameters and login bodies."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(
                error="Invalid request",
                detail=[
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
                    for err in exc.errors()
                ]
            ).model_dump(exclude_none=True)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception", error=str(exc), path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(
                error="Internal server error",
                detail=str(exc) if config.debug else None
            ).model_dump(exclude_none=True)
        )

    # Health check endpoint (no authentication required)
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        store: Optional[BookStore] = getattr(request.app.state, "store", None)
        db_status = "unavailable"
        if store is not None:
            health_info = await store.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.now(timezone.utc),
            version=config.api_version,
            database_status=db_status
        )

    app.include_router(books_router)
    app.include_router(auth_router)
    install_docs(app)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=app.state.config.host,
        port=app.state.config.port,
        reload=app.state.config.debug,
        log_level=app.state.config.log_level.lower()
    )
