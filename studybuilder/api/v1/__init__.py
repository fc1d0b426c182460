"""API v1 package."""

from fastapi import APIRouter

from studybuilder.api.v1.routers import catalog_router, drafts_router, templates_router


api_router = APIRouter(prefix="/api/v1")
api_router.include_router(catalog_router)
api_router.include_router(templates_router)
api_router.include_router(drafts_router)


__all__ = ["api_router"]
