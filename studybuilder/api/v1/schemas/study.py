"""Draft, template and validation API schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from studybuilder.api.v1.schemas.common import CamelModel
from studybuilder.domain.study import SessionType, StudyType


# =============================================================================
# Drafts
# =============================================================================

class BlockPayload(CamelModel):
    """A block in wire form."""
    
    id: str
    type: str
    name: str = ""
    description: str = ""
    estimated_duration: int = 1
    settings: Dict[str, Any] = Field(default_factory=dict)
    order: int = 0
    is_required: bool = False
    template_id: Optional[str] = None


class SessionConfigPayload(CamelModel):
    duration_minutes: int = 0
    interview_questions: List[str] = Field(default_factory=list)
    meeting_platform: Optional[str] = None


class StudySettingsPayload(CamelModel):
    record_screen: bool = False
    record_audio: bool = False
    record_video: bool = False
    track_clicks: bool = True
    track_scrolling: bool = False


class DraftPayload(CamelModel):
    """A study draft: setup fields, ordered blocks and settings flags."""
    
    title: str = ""
    description: str = ""
    study_type: StudyType = StudyType.USABILITY
    session_type: SessionType = SessionType.UNMODERATED
    target_participants: int = 15
    duration: Optional[int] = None
    compensation: float = 0.0
    session_config: Optional[SessionConfigPayload] = None
    blocks: List[BlockPayload] = Field(default_factory=list)
    settings: StudySettingsPayload = Field(default_factory=StudySettingsPayload)


class SubmitResponse(BaseModel):
    study_id: str


class DraftSnapshotResponse(BaseModel):
    draft_key: str
    draft: DraftPayload


# =============================================================================
# Validation
# =============================================================================

class ValidationIssueResponse(BaseModel):
    scope: str
    code: str
    message: str
    field: Optional[str] = None
    step: Optional[str] = None


class ValidationResultResponse(BaseModel):
    is_valid: bool
    errors: List[ValidationIssueResponse] = Field(default_factory=list)
    warnings: List[ValidationIssueResponse] = Field(default_factory=list)


# =============================================================================
# Templates
# =============================================================================

class TemplateVariableResponse(CamelModel):
    key: str
    label: str
    type: str = "text"
    required: bool = False
    default_value: Optional[str] = None
    placeholder: Optional[str] = None


class TemplateBlockResponse(CamelModel):
    type: str
    name: Optional[str] = None
    description: Optional[str] = None
    estimated_duration: Optional[int] = None
    is_required: Optional[bool] = None
    settings: Dict[str, Any] = Field(default_factory=dict)


class TemplateMetadataResponse(CamelModel):
    estimated_duration: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    complexity: str = "simple"
    version: str = "1.0.0"


class TemplateSummary(CamelModel):
    """Brief template info for list responses."""
    
    id: str
    name: str
    description: str
    category: str
    block_count: int
    variable_count: int
    metadata: TemplateMetadataResponse


class TemplateDetail(CamelModel):
    """Full template definition response."""
    
    id: str
    name: str
    description: str
    category: str
    variables: List[TemplateVariableResponse]
    blocks: List[TemplateBlockResponse]
    metadata: TemplateMetadataResponse


class TemplateListResponse(BaseModel):
    templates: List[TemplateSummary]
    total: int
    categories: List[str] = Field(default_factory=list)


class InstantiateRequest(BaseModel):
    """Variable bindings, keyed by template variable key."""
    
    bindings: Dict[str, str] = Field(default_factory=dict)


class InstantiateResponse(BaseModel):
    template_id: str
    blocks: List[BlockPayload]
    estimated_duration: int
