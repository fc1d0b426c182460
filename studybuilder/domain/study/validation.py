"""Draft validation.

The engine is pure: it takes a draft and returns a ValidationResult. It never
caches, so callers re-run it after every mutation. Errors block wizard
progression, warnings never do.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from studybuilder.domain.study.catalog import BlockCatalog
from studybuilder.domain.study.errors import UnknownBlockType
from studybuilder.domain.study.models import (
    MAX_BLOCK_DURATION,
    MIN_BLOCK_DURATION,
    Block,
    BlockType,
    StudyDraft,
)
from studybuilder.domain.study.types import (
    DRAFT_SCOPE,
    ValidationIssue,
    ValidationIssueCode,
    ValidationResult,
    WizardStep,
)


DEFAULT_DURATION_WARNING_MINUTES = 60
DEFAULT_MAX_BLOCKS = 50

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
MIN_PARTICIPANTS = 1
MAX_PARTICIPANTS = 1000
MIN_SESSION_MINUTES = 15

FIVE_SECOND_MIN = 1
FIVE_SECOND_MAX = 30
MIN_CHOICE_OPTIONS = 2
MAX_CHOICE_OPTIONS = 20
MIN_CARD_SORT_ITEMS = 3
MAX_UPLOAD_FILES = 10
MAX_IMAGE_BYTES = 50 * 1024 * 1024
MAX_FILE_BYTES = 100 * 1024 * 1024

INPUT_TYPES = frozenset({"text", "number", "email", "date", "url", "tel"})
SCALE_TYPES = frozenset({"stars", "numbers", "emotions"})


# -----------------------------------------------------------------------------
# Per-type settings rules
#
# Each rule takes a block's settings and returns (field, message) pairs.
# -----------------------------------------------------------------------------

SettingsProblem = Tuple[str, str]
SettingsRule = Callable[[Mapping[str, Any]], List[SettingsProblem]]


def _text(settings: Mapping[str, Any], key: str) -> str:
    value = settings.get(key)
    return value.strip() if isinstance(value, str) else ""


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_text(settings: Mapping[str, Any], key: str, label: str) -> List[SettingsProblem]:
    if not _text(settings, key):
        return [(key, f"{label} is required")]
    return []


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _non_empty_strings(value: Any) -> Optional[List[str]]:
    """The list's non-blank strings, or None when value is not a list."""
    if not isinstance(value, list):
        return None
    return [v for v in value if isinstance(v, str) and v.strip()]


def _welcome(settings):
    return _require_text(settings, "title", "Welcome title")


def _open_question(settings):
    problems = _require_text(settings, "question", "Question")
    min_length, max_length = settings.get("minLength"), settings.get("maxLength")
    if _is_int(min_length) and _is_int(max_length) and min_length > max_length:
        problems.append(("minLength", "Minimum length cannot exceed maximum length"))
    return problems


def _opinion_scale(settings):
    problems = _require_text(settings, "question", "Question")
    scale_type = settings.get("scaleType")
    if scale_type is not None and scale_type not in SCALE_TYPES:
        problems.append(("scaleType", f"Unknown scale type '{scale_type}'"))
    low, high = settings.get("minValue"), settings.get("maxValue")
    if _is_int(low) and _is_int(high) and low >= high:
        problems.append(("maxValue", "Scale maximum must be greater than its minimum"))
    return problems


def _simple_input(settings):
    problems = _require_text(settings, "question", "Question")
    input_type = settings.get("inputType", "text")
    if input_type not in INPUT_TYPES:
        problems.append(("inputType", f"Unknown input type '{input_type}'"))
    return problems


def _choices(settings, key="options"):
    options = _non_empty_strings(settings.get(key))
    if options is None or len(options) < MIN_CHOICE_OPTIONS:
        return [(key, f"At least {MIN_CHOICE_OPTIONS} non-empty options are required")]
    if len(options) > MAX_CHOICE_OPTIONS:
        return [(key, f"No more than {MAX_CHOICE_OPTIONS} options are allowed")]
    return []


def _multiple_choice(settings):
    return _require_text(settings, "question", "Question") + _choices(settings)


def _context_screen(settings):
    return _require_text(settings, "content", "Content")


def _yes_no(settings):
    return _require_text(settings, "question", "Question")


def _five_second_test(settings):
    problems = _require_text(settings, "instruction", "Instruction")
    if not _is_http_url(settings.get("imageUrl")):
        problems.append(("imageUrl", "A valid image URL is required"))
    duration = settings.get("displayDuration")
    if not _is_int(duration) or not FIVE_SECOND_MIN <= duration <= FIVE_SECOND_MAX:
        problems.append((
            "displayDuration",
            f"Display duration must be between {FIVE_SECOND_MIN} and {FIVE_SECOND_MAX} seconds",
        ))
    return problems


def _card_sort(settings):
    problems = _require_text(settings, "instruction", "Instruction")
    items = _non_empty_strings(settings.get("items"))
    if items is None or len(items) < MIN_CARD_SORT_ITEMS:
        problems.append(("items", f"At least {MIN_CARD_SORT_ITEMS} cards are required"))
    max_categories = settings.get("maxCategories")
    if max_categories is not None and (not _is_int(max_categories) or not 1 <= max_categories <= 20):
        problems.append(("maxCategories", "Maximum categories must be between 1 and 20"))
    return problems


def _tree_test(settings):
    return _require_text(settings, "task", "Task")


def _screener(settings):
    problems = _require_text(settings, "question", "Question") + _choices(settings)
    options = set(_non_empty_strings(settings.get("options")) or [])
    qualifying = _non_empty_strings(settings.get("qualifyingOptions"))
    if qualifying is not None and not set(qualifying).issubset(options):
        problems.append(("qualifyingOptions", "Qualifying options must be among the options"))
    return problems


def _url_task(url_key):
    def rule(settings):
        problems = []
        if not _is_http_url(settings.get(url_key)):
            problems.append((url_key, "A valid http(s) URL is required"))
        return problems + _require_text(settings, "task", "Task")
    return rule


def _thank_you(settings):
    return _require_text(settings, "title", "Thank-you title")


def _upload(max_bytes):
    def rule(settings):
        problems = []
        formats = _non_empty_strings(settings.get("allowedFormats"))
        if formats is not None and not formats:
            problems.append(("allowedFormats", "At least one file format is required"))
        max_files = settings.get("maxFiles", 1)
        if not _is_int(max_files) or not 1 <= max_files <= MAX_UPLOAD_FILES:
            problems.append(("maxFiles", f"Max files must be between 1 and {MAX_UPLOAD_FILES}"))
        max_size = settings.get("maxFileSize")
        if max_size is not None and (not _is_int(max_size) or not 0 < max_size <= max_bytes):
            problems.append(("maxFileSize", f"Max file size must be between 1 and {max_bytes} bytes"))
        return problems
    return rule


SETTINGS_RULES: Dict[BlockType, SettingsRule] = {
    BlockType.WELCOME: _welcome,
    BlockType.OPEN_QUESTION: _open_question,
    BlockType.OPINION_SCALE: _opinion_scale,
    BlockType.SIMPLE_INPUT: _simple_input,
    BlockType.MULTIPLE_CHOICE: _multiple_choice,
    BlockType.CONTEXT_SCREEN: _context_screen,
    BlockType.YES_NO: _yes_no,
    BlockType.FIVE_SECOND_TEST: _five_second_test,
    BlockType.CARD_SORT: _card_sort,
    BlockType.TREE_TEST: _tree_test,
    BlockType.SCREENER: _screener,
    BlockType.PROTOTYPE_TEST: _url_task("prototypeUrl"),
    BlockType.LIVE_WEBSITE_TEST: _url_task("websiteUrl"),
    BlockType.THANK_YOU: _thank_you,
    BlockType.IMAGE_UPLOAD: _upload(MAX_IMAGE_BYTES),
    BlockType.FILE_UPLOAD: _upload(MAX_FILE_BYTES),
}

_unruled = [t.value for t in BlockType if t not in SETTINGS_RULES]
if _unruled:
    raise RuntimeError(f"No settings rule for block types: {', '.join(_unruled)}")


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------

class ValidationEngine:
    """Validate study drafts against catalog-declared rules.

    Usage:
        engine = ValidationEngine(catalog)
        result = engine.validate(draft)
        step_result = engine.validate_step(draft, WizardStep.BLOCKS)
    """

    def __init__(
        self,
        catalog: BlockCatalog,
        duration_warning_minutes: int = DEFAULT_DURATION_WARNING_MINUTES,
    ):
        self.catalog = catalog
        self.duration_warning_minutes = duration_warning_minutes
        self._step_validators = {
            WizardStep.SETUP: self._validate_setup,
            WizardStep.BLOCKS: self._validate_blocks,
            WizardStep.SESSION: self._validate_session,
            WizardStep.PARTICIPANTS: self._validate_participants,
            WizardStep.SETTINGS: self._validate_settings,
            WizardStep.REVIEW: self.validate,
        }

    def validate(self, draft: StudyDraft) -> ValidationResult:
        """Validate the whole draft."""
        result = ValidationResult.success()
        for step in WizardStep:
            if step != WizardStep.REVIEW:
                result = result.merge(self._step_validators[step](draft))
        return result

    def validate_step(self, draft: StudyDraft, step: Any) -> ValidationResult:
        """Validate only what one wizard step is responsible for."""
        return self._step_validators[WizardStep(step)](draft)

    def validate_block(self, block: Block) -> List[ValidationIssue]:
        """Field-level errors for a single block."""
        step = WizardStep.BLOCKS.value
        try:
            definition = self.catalog.lookup(block.type)
        except UnknownBlockType as e:
            return [ValidationIssue(
                code=ValidationIssueCode.UNKNOWN_BLOCK_TYPE,
                message=str(e),
                scope=block.id, field="type", step=step,
            )]
        errors = []

        if not block.name.strip():
            errors.append(ValidationIssue(
                code=ValidationIssueCode.MISSING_NAME,
                message="Block name is required",
                scope=block.id, field="name", step=step,
            ))
        if definition.requires_description and not block.description.strip():
            errors.append(ValidationIssue(
                code=ValidationIssueCode.MISSING_DESCRIPTION,
                message=f"{definition.display_name} blocks need a description",
                scope=block.id, field="description", step=step,
            ))
        if not _is_int(block.estimated_duration) or not (
            MIN_BLOCK_DURATION <= block.estimated_duration <= MAX_BLOCK_DURATION
        ):
            errors.append(ValidationIssue(
                code=ValidationIssueCode.DURATION_OUT_OF_RANGE,
                message=(
                    f"Estimated duration must be between {MIN_BLOCK_DURATION} "
                    f"and {MAX_BLOCK_DURATION} minutes"
                ),
                scope=block.id, field="estimated_duration", step=step,
            ))
        for field_name, message in SETTINGS_RULES[block.type](block.settings):
            errors.append(ValidationIssue(
                code=ValidationIssueCode.INVALID_SETTING,
                message=message,
                scope=block.id, field=f"settings.{field_name}", step=step,
            ))
        return errors

    def validate_customization(self, block: Block, changes: Mapping[str, Any]) -> ValidationResult:
        """Check a proposed edit against the catalog's customizable fields."""
        issues = self.catalog.check_customization(block.type, changes, scope=block.id)
        return ValidationResult.from_issues(issues)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _validate_setup(self, draft: StudyDraft) -> ValidationResult:
        setup = draft.setup
        step = WizardStep.SETUP.value
        errors = []

        title = setup.title.strip()
        if not TITLE_MIN_LENGTH <= len(title) <= TITLE_MAX_LENGTH:
            errors.append(ValidationIssue(
                code=ValidationIssueCode.INVALID_TITLE,
                message=f"Title must be {TITLE_MIN_LENGTH}-{TITLE_MAX_LENGTH} characters",
                field="title", step=step,
            ))
        if len(setup.description.strip()) < DESCRIPTION_MIN_LENGTH:
            errors.append(ValidationIssue(
                code=ValidationIssueCode.INVALID_DESCRIPTION,
                message=f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters",
                field="description", step=step,
            ))
        return ValidationResult.from_issues(errors)

    def _validate_blocks(self, draft: StudyDraft) -> ValidationResult:
        rules = self.catalog.study_type_rules(draft.setup.study_type)
        blocks = draft.blocks.to_list()
        step = WizardStep.BLOCKS.value
        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []

        min_blocks = max(1, rules.min_blocks)
        max_blocks = rules.max_blocks or DEFAULT_MAX_BLOCKS
        if len(blocks) < min_blocks:
            errors.append(ValidationIssue(
                code=ValidationIssueCode.TOO_FEW_BLOCKS,
                message=f"Add at least {min_blocks} block(s) to your study",
                step=step,
            ))
        if len(blocks) > max_blocks:
            errors.append(ValidationIssue(
                code=ValidationIssueCode.TOO_MANY_BLOCKS,
                message=f"{rules.study_type.value} studies allow at most {max_blocks} blocks",
                step=step,
            ))

        for block in blocks:
            if not rules.allows(block.type):
                errors.append(ValidationIssue(
                    code=ValidationIssueCode.BLOCK_TYPE_NOT_ALLOWED,
                    message=f"{block.type.value} blocks are not allowed in {rules.study_type.value} studies",
                    scope=block.id, field="type", step=step,
                ))

        if blocks and rules.must_start_with and blocks[0].type != rules.must_start_with:
            errors.append(ValidationIssue(
                code=ValidationIssueCode.BLOCK_ORDER_RULE,
                message=f"{rules.study_type.value} studies must start with a {rules.must_start_with.value} block",
                step=step,
            ))
        if blocks and rules.must_end_with and blocks[-1].type != rules.must_end_with:
            errors.append(ValidationIssue(
                code=ValidationIssueCode.BLOCK_ORDER_RULE,
                message=f"{rules.study_type.value} studies must end with a {rules.must_end_with.value} block",
                step=step,
            ))

        for block in blocks:
            errors.extend(self.validate_block(block))

        total = sum(b.estimated_duration for b in blocks if _is_int(b.estimated_duration))
        if total > self.duration_warning_minutes:
            warnings.append(ValidationIssue(
                code=ValidationIssueCode.DURATION_EXCEEDS_THRESHOLD,
                message=(
                    f"Estimated duration is {total} minutes; studies longer than "
                    f"{self.duration_warning_minutes} minutes see more drop-off"
                ),
                step=step,
            ))
        return ValidationResult.from_issues(errors, warnings)

    def _validate_session(self, draft: StudyDraft) -> ValidationResult:
        setup = draft.setup
        if not setup.is_moderated:
            return ValidationResult.success()

        step = WizardStep.SESSION.value
        config = setup.session_config
        if config is None:
            return ValidationResult.from_issues([ValidationIssue(
                code=ValidationIssueCode.MISSING_SESSION_CONFIG,
                message="Moderated studies need a session configuration",
                field="session_config", step=step,
            )])

        errors = []
        if config.duration_minutes < MIN_SESSION_MINUTES:
            errors.append(ValidationIssue(
                code=ValidationIssueCode.INVALID_SESSION_DURATION,
                message=f"Sessions must last at least {MIN_SESSION_MINUTES} minutes",
                field="session_config.duration_minutes", step=step,
            ))
        if not any(q.strip() for q in config.interview_questions):
            errors.append(ValidationIssue(
                code=ValidationIssueCode.MISSING_INTERVIEW_QUESTIONS,
                message="Add at least one interview question",
                field="session_config.interview_questions", step=step,
            ))
        return ValidationResult.from_issues(errors)

    def _validate_participants(self, draft: StudyDraft) -> ValidationResult:
        setup = draft.setup
        step = WizardStep.PARTICIPANTS.value
        errors = []

        if not MIN_PARTICIPANTS <= setup.target_participants <= MAX_PARTICIPANTS:
            errors.append(ValidationIssue(
                code=ValidationIssueCode.INVALID_PARTICIPANTS,
                message=f"Target participants must be between {MIN_PARTICIPANTS} and {MAX_PARTICIPANTS}",
                field="target_participants", step=step,
            ))
        if setup.compensation < 0:
            errors.append(ValidationIssue(
                code=ValidationIssueCode.INVALID_COMPENSATION,
                message="Compensation cannot be negative",
                field="compensation", step=step,
            ))
        return ValidationResult.from_issues(errors)

    def _validate_settings(self, draft: StudyDraft) -> ValidationResult:
        rules = self.catalog.study_type_rules(draft.setup.study_type)
        warnings = []
        if rules.recording_recommended and not draft.settings.record_screen:
            warnings.append(ValidationIssue(
                code=ValidationIssueCode.RECORDING_RECOMMENDED,
                message=f"Screen recording is recommended for {rules.study_type.value} studies",
                scope=DRAFT_SCOPE, field="record_screen", step=WizardStep.SETTINGS.value,
            ))
        return ValidationResult.from_issues([], warnings)
