"""Wizard step controller.

A finite state machine over the wizard steps. Transitions are pure: each
takes the current WizardState and draft and returns a new state. Forward
moves are gated on the validation result for the current step.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import FrozenSet, List, Optional

from studybuilder.domain.study.models import StudyDraft
from studybuilder.domain.study.persistence import StudyCreationClient
from studybuilder.domain.study.serialization import draft_to_payload
from studybuilder.domain.study.types import ValidationResult, WizardStep
from studybuilder.domain.study.validation import ValidationEngine


logger = logging.getLogger(__name__)


def active_steps(draft: StudyDraft) -> List[WizardStep]:
    """Steps shown for this draft; the session step only exists for moderated studies."""
    return [
        step for step in WizardStep
        if step != WizardStep.SESSION or draft.setup.is_moderated
    ]


@dataclass(frozen=True)
class WizardState:
    current_step: WizardStep = WizardStep.SETUP
    completed_steps: FrozenSet[WizardStep] = field(default_factory=frozenset)
    submitted_study_id: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.submitted_study_id is not None

    def is_completed(self, step: WizardStep) -> bool:
        return WizardStep(step) in self.completed_steps


@dataclass(frozen=True)
class StepTransition:
    """Outcome of a navigation request.

    When refused, state is the input state with stale completions dropped.
    """
    state: WizardState
    allowed: bool
    result: ValidationResult = field(default_factory=ValidationResult.success)
    reason: Optional[str] = None


@dataclass(frozen=True)
class SubmissionResult:
    state: WizardState
    accepted: bool
    study_id: Optional[str] = None
    result: ValidationResult = field(default_factory=ValidationResult.success)
    reason: Optional[str] = None


class WizardStepController:
    """Sequence setup -> blocks -> (session) -> participants -> settings -> review.

    Usage:
        controller = WizardStepController(engine)
        state = controller.start(draft)
        transition = controller.next(state, draft)
        if transition.allowed:
            state = transition.state
    """

    def __init__(self, engine: ValidationEngine):
        self.engine = engine

    def start(self, draft: StudyDraft) -> WizardState:
        return WizardState(current_step=active_steps(draft)[0])

    def next(self, state: WizardState, draft: StudyDraft) -> StepTransition:
        if state.is_finished:
            return StepTransition(state, False, reason="Study already submitted")
        state = self.refresh(state, draft)
        steps = active_steps(draft)
        current = state.current_step
        if current == WizardStep.REVIEW:
            return StepTransition(state, False, reason="Submit the study to leave the review step")

        result = self.engine.validate_step(draft, current)
        if not result.is_valid:
            return StepTransition(
                state, False, result,
                reason=f"Fix {len(result.errors)} error(s) in {current.value} to continue",
            )

        following = steps[steps.index(current) + 1]
        new_state = replace(
            state,
            current_step=following,
            completed_steps=state.completed_steps | {current},
        )
        return StepTransition(new_state, True, result)

    def previous(self, state: WizardState, draft: StudyDraft) -> StepTransition:
        state = self.refresh(state, draft)
        steps = active_steps(draft)
        index = steps.index(state.current_step)
        if index == 0:
            return StepTransition(state, True)
        return StepTransition(replace(state, current_step=steps[index - 1]), True)

    def go_to(self, state: WizardState, draft: StudyDraft, step: WizardStep) -> StepTransition:
        """Jump to the current step or any completed active step."""
        state = self.refresh(state, draft)
        target = WizardStep(step)
        if target == state.current_step:
            return StepTransition(state, True)
        if target not in active_steps(draft):
            return StepTransition(state, False, reason=f"Step '{target.value}' is not part of this study")
        if target not in state.completed_steps:
            return StepTransition(state, False, reason=f"Step '{target.value}' has not been completed yet")
        return StepTransition(replace(state, current_step=target), True)

    def refresh(self, state: WizardState, draft: StudyDraft) -> WizardState:
        """Recompute completion after the draft changed.

        Completed steps that left the active set or whose validation now
        fails are dropped. A current step that left the active set falls
        back to the nearest earlier active step.
        """
        steps = active_steps(draft)
        completed = frozenset(
            step for step in state.completed_steps
            if step in steps and self.engine.validate_step(draft, step).is_valid
        )

        current = state.current_step
        if current not in steps:
            order = list(WizardStep)
            earlier = [s for s in steps if order.index(s) < order.index(current)]
            current = earlier[-1] if earlier else steps[0]

        if completed == state.completed_steps and current == state.current_step:
            return state
        return replace(state, current_step=current, completed_steps=completed)

    async def submit(
        self,
        state: WizardState,
        draft: StudyDraft,
        client: StudyCreationClient,
    ) -> SubmissionResult:
        """Hand a valid draft to the study creation collaborator.

        Raises:
            SubmissionError: the collaborator failed; the state is unchanged
        """
        if state.is_finished:
            return SubmissionResult(state, False, state.submitted_study_id, reason="Study already submitted")
        if state.current_step != WizardStep.REVIEW:
            return SubmissionResult(state, False, reason="Studies can only be submitted from the review step")

        result = self.engine.validate(draft)
        if not result.is_valid:
            return SubmissionResult(
                state, False, result=result,
                reason=f"Draft has {len(result.errors)} validation error(s)",
            )

        study_id = await client.create_study(draft_to_payload(draft))
        logger.info(f"Study submitted: {study_id} ({len(draft.blocks)} blocks)")
        finished = replace(
            state,
            completed_steps=state.completed_steps | {WizardStep.REVIEW},
            submitted_study_id=study_id,
        )
        return SubmissionResult(finished, True, study_id, result)
