"""Study definition domain module.

Provides the block catalog, template instantiation, the ordered block list,
draft validation and the wizard state machine.
"""

from studybuilder.domain.study.errors import (
    BlockNotFound,
    CatalogLoadError,
    DuplicateBlockId,
    MissingRequiredVariable,
    StudyBuilderError,
    SubmissionError,
    TemplateNotFound,
    UnknownBlockType,
)
from studybuilder.domain.study.types import (
    ValidationIssue,
    ValidationIssueCode,
    ValidationResult,
    WizardStep,
)
from studybuilder.domain.study.models import (
    Block,
    BlockType,
    Complexity,
    SessionConfig,
    SessionType,
    StudyDraft,
    StudySettings,
    StudySetup,
    StudyTemplate,
    StudyType,
    TemplateBlock,
    TemplateMetadata,
    TemplateVariable,
    new_block_id,
)
from studybuilder.domain.study.block_list import OrderedBlockList
from studybuilder.domain.study.catalog import (
    BlockCatalog,
    BlockDefinition,
    BlockUsage,
    StudyTypeRules,
)
from studybuilder.domain.study.catalog_loader import (
    HttpCatalogSource,
    SchemaValidator,
    YamlCatalogSource,
)
from studybuilder.domain.study.template_registry import TemplateRegistry
from studybuilder.domain.study.instantiator import TemplateInstantiator, template_from_draft
from studybuilder.domain.study.validation import ValidationEngine
from studybuilder.domain.study.persistence import (
    DraftStore,
    FileDraftStore,
    HttpStudyClient,
    InMemoryDraftStore,
    InMemoryStudyClient,
    StudyCreationClient,
)
from studybuilder.domain.study.wizard import (
    StepTransition,
    SubmissionResult,
    WizardState,
    WizardStepController,
)
from studybuilder.domain.study.autosave import AutosaveStatus, DraftAutosaver, restore_draft
from studybuilder.domain.study.session import StudyBuilderSession


__all__ = [
    # Errors
    "BlockNotFound",
    "CatalogLoadError",
    "DuplicateBlockId",
    "MissingRequiredVariable",
    "StudyBuilderError",
    "SubmissionError",
    "TemplateNotFound",
    "UnknownBlockType",
    # Validation types
    "ValidationIssue",
    "ValidationIssueCode",
    "ValidationResult",
    "WizardStep",
    # Models
    "Block",
    "BlockType",
    "Complexity",
    "SessionConfig",
    "SessionType",
    "StudyDraft",
    "StudySettings",
    "StudySetup",
    "StudyTemplate",
    "StudyType",
    "TemplateBlock",
    "TemplateMetadata",
    "TemplateVariable",
    "new_block_id",
    # Engine
    "OrderedBlockList",
    "BlockCatalog",
    "BlockDefinition",
    "BlockUsage",
    "StudyTypeRules",
    "HttpCatalogSource",
    "SchemaValidator",
    "YamlCatalogSource",
    "TemplateRegistry",
    "TemplateInstantiator",
    "template_from_draft",
    "ValidationEngine",
    # Persistence
    "DraftStore",
    "FileDraftStore",
    "HttpStudyClient",
    "InMemoryDraftStore",
    "InMemoryStudyClient",
    "StudyCreationClient",
    # Wizard and session
    "StepTransition",
    "SubmissionResult",
    "WizardState",
    "WizardStepController",
    "AutosaveStatus",
    "DraftAutosaver",
    "restore_draft",
    "StudyBuilderSession",
]
