"""Typed models for study blocks and templates.

Blocks and templates are frozen dataclasses; edits go through
OrderedBlockList and StudyDraft transitions, which return new values.
"""

import copy
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from studybuilder.domain.study.errors import UnknownBlockType

if TYPE_CHECKING:
    from studybuilder.domain.study.block_list import OrderedBlockList


MIN_BLOCK_DURATION = 1
MAX_BLOCK_DURATION = 180


class BlockType(str, Enum):
    """Closed set of block types."""
    WELCOME = "welcome"
    OPEN_QUESTION = "open_question"
    OPINION_SCALE = "opinion_scale"
    SIMPLE_INPUT = "simple_input"
    MULTIPLE_CHOICE = "multiple_choice"
    CONTEXT_SCREEN = "context_screen"
    YES_NO = "yes_no"
    FIVE_SECOND_TEST = "five_second_test"
    CARD_SORT = "card_sort"
    TREE_TEST = "tree_test"
    SCREENER = "screener"
    PROTOTYPE_TEST = "prototype_test"
    LIVE_WEBSITE_TEST = "live_website_test"
    THANK_YOU = "thank_you"
    IMAGE_UPLOAD = "image_upload"
    FILE_UPLOAD = "file_upload"

    @classmethod
    def parse(cls, value: Any) -> "BlockType":
        """Parse a raw value, raising UnknownBlockType outside the closed set."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownBlockType(str(value))


class StudyType(str, Enum):
    """Study categories with their own structural rules."""
    USABILITY = "usability"
    SURVEY = "survey"
    INTERVIEW = "interview"
    CARD_SORTING = "card_sorting"
    PROTOTYPE = "prototype"


class SessionType(str, Enum):
    """How sessions are run. Moderated studies get a session step."""
    UNMODERATED = "unmoderated"
    MODERATED = "moderated"


class Complexity(str, Enum):
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


def new_block_id() -> str:
    """Generate a fresh opaque block id."""
    return f"block_{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Block:
    """A unit of participant experience."""

    id: str
    type: BlockType
    name: str
    description: str = ""
    estimated_duration: int = 1  # minutes
    settings: Dict[str, Any] = field(default_factory=dict)
    order: int = 0
    is_required: bool = False
    template_id: Optional[str] = None

    def with_changes(self, **changes: Any) -> "Block":
        """Return a copy with fields replaced; settings are always deep-copied."""
        if "type" in changes:
            changes["type"] = BlockType.parse(changes["type"])
        settings = changes.pop("settings", self.settings)
        return replace(self, settings=copy.deepcopy(settings), **changes)

    def with_order(self, order: int) -> "Block":
        if order == self.order:
            return self
        return replace(self, order=order)


# -----------------------------------------------------------------------------
# Templates
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class TemplateVariable:
    """A parameter a template exposes to the user."""
    key: str
    label: str
    type: str = "text"
    required: bool = False
    default_value: Optional[str] = None
    placeholder: Optional[str] = None

    @property
    def marker(self) -> str:
        """Text marker substituted with the bound value."""
        return f"[{self.key}]"


@dataclass(frozen=True)
class TemplateBlock:
    """A block definition inside a template, before instantiation."""
    type: BlockType
    name: Optional[str] = None
    description: Optional[str] = None
    estimated_duration: Optional[int] = None
    is_required: Optional[bool] = None
    settings: Dict[str, Any] = field(default_factory=dict)
    source_id: Optional[str] = None  # authoring id, never reused on instances


@dataclass(frozen=True)
class TemplateMetadata:
    estimated_duration: Optional[int] = None
    tags: Tuple[str, ...] = ()
    complexity: Complexity = Complexity.SIMPLE
    version: str = "1.0.0"


@dataclass(frozen=True)
class StudyTemplate:
    """Immutable catalog-defined study blueprint."""
    id: str
    name: str
    description: str
    category: str
    variables: Tuple[TemplateVariable, ...] = ()
    blocks: Tuple[TemplateBlock, ...] = ()
    metadata: TemplateMetadata = field(default_factory=TemplateMetadata)

    def __post_init__(self):
        keys = [v.key for v in self.variables]
        duplicates = sorted({k for k in keys if keys.count(k) > 1})
        if duplicates:
            raise ValueError(
                f"Template '{self.id}' declares duplicate variable keys: {', '.join(duplicates)}"
            )

    def get_variable(self, key: str) -> Optional[TemplateVariable]:
        for variable in self.variables:
            if variable.key == key:
                return variable
        return None

    def default_bindings(self) -> Dict[str, str]:
        """Bindings built from every variable's default value."""
        return {
            v.key: v.default_value
            for v in self.variables
            if v.default_value is not None
        }

    @property
    def block_types(self) -> List[BlockType]:
        return [b.type for b in self.blocks]


# -----------------------------------------------------------------------------
# Draft parts
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionConfig:
    """Moderated session configuration."""
    duration_minutes: int = 0
    interview_questions: Tuple[str, ...] = ()
    meeting_platform: Optional[str] = None


@dataclass(frozen=True)
class StudySetup:
    """Study-level metadata captured in the setup step."""
    title: str = ""
    description: str = ""
    study_type: StudyType = StudyType.USABILITY
    session_type: SessionType = SessionType.UNMODERATED
    target_participants: int = 15
    duration: Optional[int] = None  # minutes, researcher-declared
    compensation: float = 0.0
    session_config: Optional[SessionConfig] = None

    @property
    def is_moderated(self) -> bool:
        return self.session_type == SessionType.MODERATED


@dataclass(frozen=True)
class StudySettings:
    """Recording and tracking flags."""
    record_screen: bool = False
    record_audio: bool = False
    record_video: bool = False
    track_clicks: bool = True
    track_scrolling: bool = False


@dataclass(frozen=True)
class StudyDraft:
    """The in-progress study: setup, ordered blocks and settings.

    A draft has no server identity; it only gets one when submission succeeds.
    """
    setup: StudySetup
    blocks: "OrderedBlockList"
    settings: StudySettings = field(default_factory=StudySettings)

    @classmethod
    def empty(cls, study_type: StudyType = StudyType.USABILITY) -> "StudyDraft":
        """Create a from-scratch draft with no blocks."""
        from studybuilder.domain.study.block_list import OrderedBlockList

        return cls(
            setup=StudySetup(study_type=StudyType(study_type)),
            blocks=OrderedBlockList(),
        )

    def with_blocks(self, blocks: "OrderedBlockList") -> "StudyDraft":
        return replace(self, blocks=blocks)

    def with_setup(self, **changes: Any) -> "StudyDraft":
        if "study_type" in changes:
            changes["study_type"] = StudyType(changes["study_type"])
        if "session_type" in changes:
            changes["session_type"] = SessionType(changes["session_type"])
        return replace(self, setup=replace(self.setup, **changes))

    def with_settings(self, **changes: Any) -> "StudyDraft":
        return replace(self, settings=replace(self.settings, **changes))

    @property
    def total_duration(self) -> int:
        """Sum of block durations in minutes."""
        return sum(b.estimated_duration for b in self.blocks)

