"""API v1 routers."""

from studybuilder.api.v1.routers.catalog import router as catalog_router
from studybuilder.api.v1.routers.drafts import router as drafts_router
from studybuilder.api.v1.routers.templates import router as templates_router


__all__ = [
    "catalog_router",
    "drafts_router",
    "templates_router",
]
