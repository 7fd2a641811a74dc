"""Step rules and validation for goal drafts.

Everything here is a pure function of the draft, so the creation flow, the
goal service and the API all agree on what "ready" means.
"""
from enum import IntEnum
from typing import Optional
from uuid import UUID

from goalflow.models.goal import Goal, GoalDraft
from goalflow.models.question import QuestionDraft
from goalflow.models.schedule import ScheduleDraft
from goalflow.services.question_composer import question_error
from goalflow.services.schedule_editor import cadence_error, spacing_error
from goalflow.utils.text import trimmed


class GoalDraftError(ValueError):
    """A draft is not ready to be committed."""


class FlowStep(IntEnum):
    """Goal creation steps, in order."""

    INTENT = 0
    PROMPTS = 1
    RHYTHM = 2
    COMMITMENT = 3
    REVIEW = 4

    @property
    def title(self) -> str:
        return _STEP_TITLES[self]

    @property
    def is_final(self) -> bool:
        return self is FlowStep.REVIEW

    def next(self) -> Optional["FlowStep"]:
        return None if self.is_final else FlowStep(self + 1)

    def previous(self) -> Optional["FlowStep"]:
        return None if self is FlowStep.INTENT else FlowStep(self - 1)


_STEP_TITLES = {
    FlowStep.INTENT: "Intent",
    FlowStep.PROMPTS: "Prompts",
    FlowStep.RHYTHM: "Rhythm",
    FlowStep.COMMITMENT: "Commitment",
    FlowStep.REVIEW: "Review",
}


def forward_hint(step: FlowStep, draft: GoalDraft) -> Optional[str]:
    """
    Message explaining what blocks leaving ``step``, or None.

    Args:
        step: Current step
        draft: Draft being edited

    Returns:
        A short instruction such as "Add a goal title to continue"
    """
    if step is FlowStep.INTENT:
        if not trimmed(draft.title):
            return "Add a goal title to continue"
        if not draft.has_resolved_category:
            return "Select a focus area to continue"
    elif step is FlowStep.PROMPTS:
        if not any(question.has_content for question in draft.question_drafts):
            return "Add at least one tracking question"
    elif step is FlowStep.RHYTHM:
        if not draft.schedule.times:
            return "Add at least one reminder time"
        return cadence_error(draft.schedule)
    return None


def can_advance(step: FlowStep, draft: GoalDraft) -> bool:
    return forward_hint(step, draft) is None


def validate_draft(draft: GoalDraft, reminder_limit: Optional[int] = None) -> None:
    """
    Check every step's requirements and the stored shape of the goal.

    Besides the step hints, each question that will be stored must pass the
    composer's checks and the reminder times must respect the spacing rule.

    Args:
        draft: Draft about to be committed
        reminder_limit: Optional cap on reminder times

    Raises:
        GoalDraftError: With the first unmet requirement
    """
    for step in FlowStep:
        hint = forward_hint(step, draft)
        if hint is not None:
            raise GoalDraftError(hint)

    for question in draft.question_drafts:
        if not question.has_content:
            continue
        message = question_error(question)
        if message is not None:
            raise GoalDraftError(f"{question.trimmed_text}: {message}")

    message = spacing_error(draft.schedule, reminder_limit=reminder_limit)
    if message is not None:
        raise GoalDraftError(message)


def draft_from_goal(goal: Goal) -> GoalDraft:
    """Load a stored goal into an editable draft, keeping question identities."""
    return GoalDraft(
        title=goal.title,
        motivation=goal.description,
        category=goal.category,
        custom_category_label=goal.custom_category_label or "",
        question_drafts=[
            QuestionDraft(
                id=UUID(question.id),
                text=question.text,
                response_type=question.response_type,
                options=question.options or [],
                validation_rules=question.validation_rules,
                is_active=question.is_active,
            )
            for question in goal.questions
        ],
        schedule=ScheduleDraft(**goal.schedule.model_dump(exclude={"end_date"})),
    )
