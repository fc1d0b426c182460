"""Study builder session - one researcher editing one draft.

Wires the edit loop: each mutation produces a new draft, the wizard state is
refreshed against it and the autosaver (if any) is rescheduled. Block ids
coming from the UI can be stale; mutations by a stale id are logged and
ignored (they return False).
"""

import logging
from typing import Any, Mapping, Optional, Union

from studybuilder.domain.study.block_list import OrderedBlockList
from studybuilder.domain.study.catalog import BlockCatalog
from studybuilder.domain.study.autosave import DraftAutosaver
from studybuilder.domain.study.errors import BlockNotFound
from studybuilder.domain.study.instantiator import TemplateInstantiator
from studybuilder.domain.study.models import (
    Block,
    StudyDraft,
    StudyTemplate,
    StudyType,
)
from studybuilder.domain.study.persistence import StudyCreationClient
from studybuilder.domain.study.types import ValidationResult, WizardStep
from studybuilder.domain.study.validation import ValidationEngine
from studybuilder.domain.study.wizard import (
    StepTransition,
    SubmissionResult,
    WizardState,
    WizardStepController,
)


logger = logging.getLogger(__name__)


class StudyBuilderSession:
    """Facade over the draft, wizard state, validation engine and autosaver.

    When an autosaver is attached, mutations must run inside an event loop.
    """

    def __init__(
        self,
        catalog: BlockCatalog,
        draft: Optional[StudyDraft] = None,
        engine: Optional[ValidationEngine] = None,
        autosaver: Optional[DraftAutosaver] = None,
        study_type: StudyType = StudyType.USABILITY,
    ):
        self.catalog = catalog
        self.engine = engine or ValidationEngine(catalog)
        self.controller = WizardStepController(self.engine)
        self.instantiator = TemplateInstantiator(catalog)
        self.autosaver = autosaver

        self._draft = draft or StudyDraft.empty(study_type)
        self._state = self.controller.start(self._draft)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def draft(self) -> StudyDraft:
        return self._draft

    @property
    def blocks(self) -> OrderedBlockList:
        return self._draft.blocks

    @property
    def wizard_state(self) -> WizardState:
        return self._state

    @property
    def current_step(self) -> WizardStep:
        return self._state.current_step

    @property
    def validation(self) -> ValidationResult:
        """Whole-draft validation, recomputed on every access."""
        return self.engine.validate(self._draft)

    def step_validation(self, step: Optional[WizardStep] = None) -> ValidationResult:
        return self.engine.validate_step(self._draft, step or self._state.current_step)

    def is_step_complete(self, step: WizardStep) -> bool:
        return self._state.is_completed(step)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit(self, draft: StudyDraft) -> None:
        if draft == self._draft:
            return
        self._draft = draft
        self._state = self.controller.refresh(self._state, draft)
        if self.autosaver is not None and not self.autosaver.closed:
            self.autosaver.schedule(draft)

    def _commit_blocks(self, blocks: OrderedBlockList) -> None:
        self._commit(self._draft.with_blocks(blocks))

    def _ignore_stale(self, operation: str, error: BlockNotFound) -> bool:
        logger.info(f"Ignoring {operation} for stale block '{error.block_id}'")
        return False

    # ------------------------------------------------------------------
    # Block operations
    # ------------------------------------------------------------------

    def add_block(self, block_type: Any, at_index: Optional[int] = None, **overrides: Any) -> Block:
        """Create a block with catalog defaults and insert it (append by default)."""
        block = self.catalog.create_block(block_type, **overrides)
        self._commit_blocks(self._draft.blocks.insert(block, at_index))
        return self._draft.blocks.get(block.id)

    def insert_block(self, block: Block, at_index: Optional[int] = None) -> None:
        """Insert an existing block. Raises DuplicateBlockId on an id clash."""
        self.catalog.lookup(block.type)
        self._commit_blocks(self._draft.blocks.insert(block, at_index))

    def remove_block(self, block_id: str) -> bool:
        try:
            blocks = self._draft.blocks.remove(block_id)
        except BlockNotFound as e:
            return self._ignore_stale("remove", e)
        self._commit_blocks(blocks)
        return True

    def duplicate_block(self, block_id: str) -> bool:
        try:
            blocks = self._draft.blocks.duplicate(block_id)
        except BlockNotFound as e:
            return self._ignore_stale("duplicate", e)
        self._commit_blocks(blocks)
        return True

    def move_block(self, block_id: str, to_index: int) -> bool:
        try:
            blocks = self._draft.blocks.move(block_id, to_index)
        except BlockNotFound as e:
            return self._ignore_stale("move", e)
        self._commit_blocks(blocks)
        return True

    def handle_drag(self, active_id: str, over_id: Optional[str]) -> bool:
        """Apply a drag-end event {activeId, overId}."""
        try:
            blocks = self._draft.blocks.apply_drag(active_id, over_id)
        except BlockNotFound as e:
            return self._ignore_stale("drag", e)
        self._commit_blocks(blocks)
        return True

    def edit_block(self, block_id: str, **changes: Any) -> bool:
        try:
            blocks = self._draft.blocks.update(block_id, **changes)
        except BlockNotFound as e:
            return self._ignore_stale("edit", e)
        self._commit_blocks(blocks)
        return True

    def customize_block(
        self,
        block_id: str,
        changes: Mapping[str, Any],
    ) -> Union[bool, ValidationResult]:
        """Apply a catalog-checked customization.

        ``changes`` holds block fields and/or a ``settings`` dict merged over
        the current settings. Returns False for a stale id, otherwise the
        customization check result; the edit is applied only when it is valid.
        """
        block = self._draft.blocks.get_optional(block_id)
        if block is None:
            return self._ignore_stale("customize", BlockNotFound(block_id))

        result = self.engine.validate_customization(block, changes)
        if not result.is_valid:
            return result

        fields = {k: v for k, v in changes.items() if k != "settings"}
        if "settings" in changes:
            merged = dict(block.settings)
            merged.update(changes["settings"])
            fields["settings"] = merged
        self._commit_blocks(self._draft.blocks.update(block_id, **fields))
        return result

    def apply_template(
        self,
        template: StudyTemplate,
        bindings: Optional[Mapping[str, str]] = None,
    ) -> OrderedBlockList:
        """Replace the draft's blocks with a fresh instantiation of the template."""
        blocks = self.instantiator.instantiate(template, bindings or {})
        self._commit_blocks(blocks)
        return blocks

    # ------------------------------------------------------------------
    # Setup and settings
    # ------------------------------------------------------------------

    def update_setup(self, **changes: Any) -> None:
        self._commit(self._draft.with_setup(**changes))

    def update_settings(self, **changes: Any) -> None:
        self._commit(self._draft.with_settings(**changes))

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _navigate(self, transition: StepTransition) -> StepTransition:
        self._state = transition.state
        return transition

    def next_step(self) -> StepTransition:
        return self._navigate(self.controller.next(self._state, self._draft))

    def previous_step(self) -> StepTransition:
        return self._navigate(self.controller.previous(self._state, self._draft))

    def go_to_step(self, step: WizardStep) -> StepTransition:
        return self._navigate(self.controller.go_to(self._state, self._draft, step))

    async def submit(self, client: StudyCreationClient) -> SubmissionResult:
        """Submit from the review step. A successful submit ends autosaving and drops the snapshot."""
        outcome = await self.controller.submit(self._state, self._draft, client)
        self._state = outcome.state
        if outcome.accepted and self.autosaver is not None:
            await self.autosaver.aclose()
            await self.autosaver.store.delete_draft(self.autosaver.draft_key)
        return outcome

    async def close(self) -> None:
        if self.autosaver is not None:
            await self.autosaver.aclose()
