"""API schema models."""

from studybuilder.api.v1.schemas.common import CamelModel, ErrorResponse
from studybuilder.api.v1.schemas.catalog import (
    BlockCatalogEntry,
    BlockCatalogListResponse,
    CatalogCustomization,
    CatalogMetadata,
    CatalogUsage,
)
from studybuilder.api.v1.schemas.study import (
    BlockPayload,
    DraftPayload,
    DraftSnapshotResponse,
    InstantiateRequest,
    InstantiateResponse,
    SessionConfigPayload,
    StudySettingsPayload,
    SubmitResponse,
    TemplateBlockResponse,
    TemplateDetail,
    TemplateListResponse,
    TemplateMetadataResponse,
    TemplateSummary,
    TemplateVariableResponse,
    ValidationIssueResponse,
    ValidationResultResponse,
)


__all__ = [
    # Common
    "CamelModel",
    "ErrorResponse",
    # Catalog
    "BlockCatalogEntry",
    "BlockCatalogListResponse",
    "CatalogCustomization",
    "CatalogMetadata",
    "CatalogUsage",
    # Drafts
    "BlockPayload",
    "DraftPayload",
    "DraftSnapshotResponse",
    "SessionConfigPayload",
    "StudySettingsPayload",
    "SubmitResponse",
    # Validation
    "ValidationIssueResponse",
    "ValidationResultResponse",
    # Templates
    "InstantiateRequest",
    "InstantiateResponse",
    "TemplateBlockResponse",
    "TemplateDetail",
    "TemplateListResponse",
    "TemplateMetadataResponse",
    "TemplateSummary",
    "TemplateVariableResponse",
]
