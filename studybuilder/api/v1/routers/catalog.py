"""Block catalog endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from studybuilder.api.v1.dependencies import get_catalog
from studybuilder.api.v1.exceptions import NotFoundError, UnprocessableError
from studybuilder.api.v1.schemas import (
    BlockCatalogEntry,
    BlockCatalogListResponse,
    ErrorResponse,
)
from studybuilder.domain.study import BlockCatalog, StudyType, UnknownBlockType


router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get(
    "/blocks",
    response_model=BlockCatalogListResponse,
    summary="List block types",
    description="Returns the block library, optionally limited to one study type.",
    responses={
        422: {"model": ErrorResponse, "description": "Unknown study type"},
    },
)
async def list_blocks(
    study_type: Optional[str] = None,
    catalog: BlockCatalog = Depends(get_catalog),
) -> BlockCatalogListResponse:
    """List catalog entries."""
    if study_type is None:
        definitions = catalog.definitions()
    else:
        try:
            parsed = StudyType(study_type)
        except ValueError:
            raise UnprocessableError(
                "UNKNOWN_STUDY_TYPE",
                f"Unknown study type: '{study_type}'",
                details={"allowed": [t.value for t in StudyType]},
            )
        definitions = catalog.list_for_study_type(parsed)
    
    blocks = [BlockCatalogEntry.model_validate(d.to_catalog_entry()) for d in definitions]
    return BlockCatalogListResponse(blocks=blocks, total=len(blocks), study_type=study_type)


@router.get(
    "/blocks/{block_type}",
    response_model=BlockCatalogEntry,
    summary="Get block type",
    responses={
        404: {"model": ErrorResponse, "description": "Block type not found"},
    },
)
async def get_block(
    block_type: str,
    catalog: BlockCatalog = Depends(get_catalog),
) -> BlockCatalogEntry:
    """Get one catalog entry by block type."""
    try:
        definition = catalog.lookup(block_type)
    except UnknownBlockType:
        raise NotFoundError("block_type", block_type)
    return BlockCatalogEntry.model_validate(definition.to_catalog_entry())
