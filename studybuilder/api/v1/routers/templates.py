"""Study template endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends

from studybuilder.api.v1.dependencies import get_instantiator, get_template_registry
from studybuilder.api.v1.exceptions import NotFoundError, UnprocessableError
from studybuilder.api.v1.schemas import (
    BlockPayload,
    ErrorResponse,
    InstantiateRequest,
    InstantiateResponse,
    TemplateDetail,
    TemplateListResponse,
    TemplateMetadataResponse,
    TemplateSummary,
)
from studybuilder.domain.study import (
    MissingRequiredVariable,
    StudyTemplate,
    TemplateInstantiator,
    TemplateNotFound,
    TemplateRegistry,
    UnknownBlockType,
)
from studybuilder.domain.study.serialization import block_to_json, template_to_json


router = APIRouter(prefix="/templates", tags=["templates"])


def _get_template(registry: TemplateRegistry, template_id: str) -> StudyTemplate:
    try:
        return registry.get(template_id)
    except TemplateNotFound:
        raise NotFoundError("template", template_id)


@router.get(
    "",
    response_model=TemplateListResponse,
    summary="List study templates",
)
async def list_templates(
    category: Optional[str] = None,
    q: Optional[str] = None,
    registry: TemplateRegistry = Depends(get_template_registry),
) -> TemplateListResponse:
    """List templates, optionally filtered by category or search text."""
    templates = registry.search(q) if q else registry.list_all()
    if category:
        templates = [t for t in templates if t.category == category]
    
    summaries = []
    for template in templates:
        detail = template_to_json(template)
        summaries.append(TemplateSummary(
            id=template.id,
            name=template.name,
            description=template.description,
            category=template.category,
            block_count=len(template.blocks),
            variable_count=len(template.variables),
            metadata=TemplateMetadataResponse.model_validate(detail["metadata"]),
        ))
    return TemplateListResponse(
        templates=summaries,
        total=len(summaries),
        categories=registry.categories(),
    )


@router.get(
    "/{template_id}",
    response_model=TemplateDetail,
    summary="Get study template",
    responses={
        404: {"model": ErrorResponse, "description": "Template not found"},
    },
)
async def get_template(
    template_id: str,
    registry: TemplateRegistry = Depends(get_template_registry),
) -> TemplateDetail:
    template = _get_template(registry, template_id)
    return TemplateDetail.model_validate(template_to_json(template))


@router.post(
    "/{template_id}/instantiate",
    response_model=InstantiateResponse,
    summary="Instantiate a template",
    description="Binds template variables and returns a fresh ordered block list.",
    responses={
        404: {"model": ErrorResponse, "description": "Template not found"},
        422: {"model": ErrorResponse, "description": "Missing required variable"},
    },
)
async def instantiate_template(
    template_id: str,
    request: InstantiateRequest,
    registry: TemplateRegistry = Depends(get_template_registry),
    instantiator: TemplateInstantiator = Depends(get_instantiator),
) -> InstantiateResponse:
    template = _get_template(registry, template_id)
    try:
        blocks = instantiator.instantiate(template, request.bindings)
    except MissingRequiredVariable as e:
        raise UnprocessableError(
            "MISSING_REQUIRED_VARIABLE",
            str(e),
            details={"key": e.key, "template_id": template_id},
        )
    except UnknownBlockType as e:
        raise UnprocessableError(
            "UNKNOWN_BLOCK_TYPE",
            str(e),
            details={"block_type": e.block_type, "template_id": template_id},
        )
    
    return InstantiateResponse(
        template_id=template.id,
        blocks=[BlockPayload.model_validate(block_to_json(b)) for b in blocks],
        estimated_duration=sum(b.estimated_duration for b in blocks),
    )
