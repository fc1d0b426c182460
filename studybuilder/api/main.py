"""
FastAPI application for the study builder.

Serves the block catalog, study templates and draft validation/submission.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studybuilder.api.middleware import RequestIDMiddleware
from studybuilder.api.v1 import api_router
from studybuilder.api.v1.dependencies import get_catalog, get_template_registry
from studybuilder.api.v1.error_handlers import register_error_handlers
from studybuilder.core.logging import configure_logging
from studybuilder.settings import Settings, get_settings


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the catalog and templates at startup so bad seed data fails fast."""
    catalog = get_catalog()
    registry = get_template_registry()
    logger.info(f"Loaded {len(catalog)} block types and {registry.count()} templates")
    yield
    logger.info("Shutting down study builder API")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application from settings (environment settings by default)."""
    settings = settings or get_settings()
    configure_logging(level=settings.log_level, format_type=settings.log_format)
    
    app = FastAPI(
        title=settings.app_name,
        description="Block catalog, study templates and study draft validation",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIDMiddleware)
    
    register_error_handlers(app)
    app.include_router(api_router)
    
    @app.get("/health", tags=["health"])
    async def health():
        return {
            "status": "healthy",
            "version": settings.app_version,
            "environment": settings.environment,
        }
    
    return app


app = create_app()
