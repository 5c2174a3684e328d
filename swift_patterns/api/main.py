"""
FastAPI main application for the Swift pattern search API.
"""

import logging
import logging.config
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .models import ErrorResponse
from .routes import APIError, router
from swift_patterns.config.search_config import (
    API_CONFIG,
    LOG_CONFIG,
    ENVIRONMENT,
    DEBUG
)
from swift_patterns.search.search_engine import PatternSearchEngine

logger = logging.getLogger('api')


def create_app(engine: Optional[PatternSearchEngine] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        engine: Engine to serve (one is built from config at startup if None)

    Returns:
        FastAPI app
    """

    # ========================================================================
    # Application Lifespan
    # ========================================================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Swift Patterns API...")
        logger.info(f"Environment: {ENVIRONMENT}")
        logger.info(f"Debug mode: {DEBUG}")

        try:
            app.state.search_engine = engine or PatternSearchEngine()
            sources = app.state.search_engine.source_manager.enabled_sources()
            logger.info(f"Search engine ready with {len(sources)} enabled sources")
        except Exception as e:
            logger.error(f"Failed to initialize search engine: {e}")
            raise

        yield

        logger.info("Shutting down Swift Patterns API...")
        await app.state.search_engine.close()
        app.state.search_engine = None
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Swift Patterns API",
        description="Search Swift and SwiftUI articles from curated blogs",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url="/redoc" if DEBUG else None
    )

    # ========================================================================
    # CORS Configuration
    # ========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=API_CONFIG['cors_origins'],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/")
    async def root():
        """Service name plus the tool endpoints."""
        prefix = router.prefix
        return {
            "name": app.title,
            "version": app.version,
            "endpoints": {
                "search": f"{prefix}/search",
                "patterns": f"{prefix}/patterns",
                "sources": f"{prefix}/sources",
                "toggle_source": f"{prefix}/sources/{{source_id}}/{{enable|disable}}",
                "health": f"{prefix}/health"
            },
            "documentation": app.docs_url
        }

    # ========================================================================
    # Error Handlers
    # ========================================================================

    @app.exception_handler(APIError)
    async def api_error(request, exc: APIError):
        logger.warning(f"{request.url.path} -> {exc.status_code} {exc.body.code}: {exc.body.error}")
        return JSONResponse(status_code=exc.status_code, content=exc.body.model_dump())

    @app.exception_handler(500)
    async def unhandled_error(request, exc):
        logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=True)
        body = ErrorResponse(
            error="Internal server error",
            code="INTERNAL_ERROR",
            details={"message": str(exc)} if DEBUG else None
        )
        return JSONResponse(status_code=500, content=body.model_dump())

    return app


def build_app() -> FastAPI:
    """uvicorn factory: configures logging, then builds the app."""
    logging.config.dictConfig(LOG_CONFIG)
    return create_app()
