"""Goal creation flow - drives a draft from intent to a stored goal."""
import logging
from datetime import date, datetime, time
from typing import Iterable, Optional
from uuid import UUID

from pymongo.errors import PyMongoError

from goalflow.config import settings
from goalflow.models.goal import Goal, GoalDraft, TrackingCategory
from goalflow.models.question import QuestionDraft
from goalflow.models.schedule import Frequency, ScheduleTime, Weekday
from goalflow.models.suggestion import CadencePreset, GoalSuggestion, PromptTemplate
from goalflow.services import catalog
from goalflow.services.goal_drafts import (
    FlowStep,
    can_advance,
    draft_from_goal,
    forward_hint,
    validate_draft,
)
from goalflow.services.question_composer import QuestionComposer, question_error
from goalflow.services.schedule_conflicts import ConflictChecker
from goalflow.services.schedule_editor import ScheduleEditor
from goalflow.services.suggestion_service import GoalSuggestionError
from goalflow.utils.text import dedupe_options, trimmed


logger = logging.getLogger(__name__)


class GoalCreationFlow:
    """
    Step-by-step goal creation (or editing) over an in-memory draft.

    Each instance owns its draft exclusively. Nothing is written until the
    review step is confirmed.
    """

    def __init__(
        self,
        goal_service,
        suggestion_service=None,
        conflict_checker: Optional[ConflictChecker] = None,
        reminder_limit: Optional[int] = settings.wizard_reminder_limit,
        editing_goal_id: Optional[str] = None,
        draft: Optional[GoalDraft] = None,
    ):
        self.goal_service = goal_service
        self.suggestion_service = suggestion_service
        self.conflict_checker = conflict_checker
        self.reminder_limit = reminder_limit
        self.editing_goal_id = editing_goal_id
        self.composer = QuestionComposer()
        self.step = FlowStep.INTENT
        self.error_message: Optional[str] = None
        self.saved_goal: Optional[Goal] = None
        self._load(draft or GoalDraft())

    @classmethod
    def for_goal(cls, goal: Goal, goal_service, **kwargs) -> "GoalCreationFlow":
        """Open an edit flow over an existing goal."""
        return cls(goal_service, editing_goal_id=goal.id, draft=draft_from_goal(goal), **kwargs)

    def _load(self, draft: GoalDraft) -> None:
        self.draft = draft
        self.schedule_editor = ScheduleEditor(
            draft.schedule,
            reminder_limit=self.reminder_limit,
            conflict_checker=self.conflict_checker,
        )
        self.suggestions: list[GoalSuggestion] = []
        self.suggestion_error: Optional[str] = None

    # Intent

    def update_title(self, text: str) -> None:
        if self.draft.title != text:
            self.draft.title = text
            self._clear_suggestions()

    def update_motivation(self, text: str) -> None:
        if self.draft.motivation != text:
            self.draft.motivation = text
            self._clear_suggestions()

    def select_category(self, category: TrackingCategory) -> None:
        previous = self.draft.category
        self.draft.category = category
        if category is not TrackingCategory.CUSTOM:
            self.draft.custom_category_label = ""
        if previous is not category:
            self._clear_suggestions()

    def update_custom_category_label(self, text: str) -> None:
        """Typing a label implies the custom category."""
        self.draft.custom_category_label = text
        if trimmed(text):
            self.draft.category = TrackingCategory.CUSTOM
        self._clear_suggestions()

    def update_celebration_message(self, text: str) -> None:
        self.draft.celebration_message = text

    # Prompts

    @property
    def applied_template_ids(self) -> set[str]:
        return {q.template_id for q in self.draft.question_drafts if q.template_id is not None}

    @property
    def applied_suggestion_ids(self) -> set[UUID]:
        return {q.suggestion_id for q in self.draft.question_drafts if q.suggestion_id is not None}

    def recommended_templates(self, limit: int = 3) -> list[PromptTemplate]:
        return catalog.top_templates(self.draft.category, limit=limit)

    def additional_templates(self, excluding: Iterable[str] = ()) -> list[PromptTemplate]:
        return catalog.additional_templates(self.draft.category, excluding)

    def apply_template(self, template: PromptTemplate) -> Optional[QuestionDraft]:
        """Add the template's question once. Re-applying is a no-op."""
        if template.id in self.applied_template_ids:
            return None
        blueprint = template.blueprint
        question = QuestionDraft(
            text=blueprint.text,
            response_type=blueprint.response_type,
            options=list(blueprint.options or []),
            validation_rules=blueprint.validation_rules,
            template_id=template.id,
        )
        self.draft.question_drafts.append(question)
        return question

    def apply_suggestion(self, suggestion: GoalSuggestion) -> Optional[QuestionDraft]:
        """
        Add a suggested question.

        Returns:
            The new question, or None (with ``suggestion_error`` set) when the
            suggestion would not pass the composer's checks
        """
        question = QuestionDraft(
            text=trimmed(suggestion.prompt),
            response_type=suggestion.response_type,
            options=dedupe_options(suggestion.options) if suggestion.response_type.uses_options else [],
            validation_rules=suggestion.validation_rules,
            suggestion_id=suggestion.id,
        )
        message = question_error(question)
        if message is not None:
            self.suggestion_error = message
            return None
        self.draft.question_drafts.append(question)
        self.suggestions = [s for s in self.suggestions if s.id != suggestion.id]
        return question

    def add_custom_question(self, question: QuestionDraft) -> None:
        self.draft.question_drafts.append(question)

    def update_question(self, question: QuestionDraft) -> bool:
        """Replace the question with the same id. Returns False if there is none."""
        for index, existing in enumerate(self.draft.question_drafts):
            if existing.id == question.id:
                self.draft.question_drafts[index] = question
                return True
        return False

    def remove_question(self, question_id: UUID) -> None:
        self.draft.question_drafts = [
            question for question in self.draft.question_drafts if question.id != question_id
        ]

    def reorder_questions(self, from_index: int, to_index: int) -> bool:
        """Move a question. Out-of-range source indexes leave the order alone."""
        questions = self.draft.question_drafts
        if not 0 <= from_index < len(questions):
            return False
        question = questions.pop(from_index)
        questions.insert(max(0, min(to_index, len(questions))), question)
        return True

    def save_composer(self) -> Optional[QuestionDraft]:
        """Store the composer's question into the draft."""
        return self.composer.save(self.draft.question_drafts)

    def suggestion_context(self) -> str:
        """Context sent along with the motivation when asking for suggestions."""
        sections = []
        motivation = trimmed(self.draft.motivation)
        if motivation:
            sections.append(motivation)
        if self.draft.category is not None:
            sections.append(f"Category: {self.draft.category.display_name}")
        sections.append(f"Cadence: {self.draft.schedule.cadence_label}")
        if self.draft.question_drafts:
            existing = "\n".join(f"- {q.trimmed_text}" for q in self.draft.question_drafts)
            sections.append(f"Existing prompts:\n{existing}")
        return "\n\n".join(sections)

    async def load_suggestions(self, limit: int = settings.suggestion_limit) -> list[GoalSuggestion]:
        """
        Ask the suggestion service for new questions.

        Errors are kept in ``suggestion_error`` rather than raised.
        """
        self._clear_suggestions()
        if self.suggestion_service is None:
            self.suggestion_error = "Suggestions are not available right now."
            return []

        title = trimmed(self.draft.title)
        if not title and not trimmed(self.draft.motivation):
            self.suggestion_error = GoalSuggestionError.MISSING_INPUT
            return []

        try:
            results = await self.suggestion_service.suggestions(
                title=title,
                description=self.suggestion_context(),
                limit=max(1, limit),
            )
        except GoalSuggestionError as e:
            self.suggestion_error = str(e)
            return []

        existing = {q.trimmed_text.casefold() for q in self.draft.question_drafts}
        filtered = [
            suggestion for suggestion in results
            if trimmed(suggestion.prompt)
            and trimmed(suggestion.prompt).casefold() not in existing
        ]
        self.suggestions = filtered[:settings.suggestion_limit]
        if not self.suggestions:
            self.suggestion_error = GoalSuggestionError.EMPTY_PAYLOAD
        return self.suggestions

    def _clear_suggestions(self) -> None:
        self.suggestions = []
        self.suggestion_error = None

    # Rhythm

    def cadence_presets(self) -> list[CadencePreset]:
        return list(catalog.CADENCE_PRESETS)

    def select_cadence(self, preset: CadencePreset) -> None:
        self.schedule_editor.apply_preset(preset)

    def select_weekly_day(self, weekday: Weekday) -> None:
        self.schedule_editor.set_frequency(Frequency.WEEKLY)
        self.schedule_editor.update_selected_weekdays({weekday})

    def update_custom_interval(self, days: int) -> None:
        self.schedule_editor.set_frequency(Frequency.CUSTOM)
        self.schedule_editor.update_interval_day_count(days)

    def recommended_reminder_times(self) -> list[ScheduleTime]:
        return catalog.recommended_times()

    def add_reminder_time(self, value: ScheduleTime | time | datetime) -> bool:
        return self.schedule_editor.add_schedule_time(value)

    def remove_reminder_time(self, value: ScheduleTime | time | datetime) -> None:
        self.schedule_editor.remove_schedule_time(value)

    def toggle_reminder_time(self, value: ScheduleTime | time | datetime) -> bool:
        return self.schedule_editor.toggle_schedule_time(value)

    def update_timezone(self, timezone: str) -> None:
        self.schedule_editor.set_timezone(timezone)

    def update_start_date(self, start_date: date) -> None:
        self.schedule_editor.set_start_date(start_date)

    def suggested_reminder_time(self, starting_at: Optional[ScheduleTime] = None) -> ScheduleTime:
        return self.schedule_editor.suggested_reminder_time(starting_at)

    def conflict_description(self) -> Optional[str]:
        return self.schedule_editor.conflict_description()

    # Navigation

    @property
    def can_move_forward(self) -> bool:
        return can_advance(self.step, self.draft)

    @property
    def can_move_backward(self) -> bool:
        return self.step.previous() is not None

    def forward_hint(self) -> Optional[str]:
        return forward_hint(self.step, self.draft)

    async def move_forward(self) -> bool:
        """
        Advance one step, or commit on the review step.

        Returns:
            True if the step changed or the goal was stored
        """
        if not self.can_move_forward:
            return False
        if self.step.is_final:
            return await self.save() is not None
        self.step = self.step.next()
        return True

    def move_backward(self) -> bool:
        previous = self.step.previous()
        if previous is None:
            return False
        self.step = previous
        return True

    async def save(self) -> Optional[Goal]:
        """
        Commit the draft through the goal service.

        On failure the error text lands in ``error_message`` and the step and
        draft are left as they were, so the user can retry.
        """
        self.error_message = None
        try:
            validate_draft(self.draft, reminder_limit=self.reminder_limit)
            if self.editing_goal_id is None:
                goal = await self.goal_service.create_goal(self.draft)
            else:
                goal = await self.goal_service.update_goal_from_draft(self.editing_goal_id, self.draft)
        except (ValueError, PyMongoError) as e:
            logger.warning("Goal commit failed", extra={"error": str(e)})
            self.error_message = str(e)
            return None

        self.saved_goal = goal
        if self.editing_goal_id is None:
            self.reset_draft()
        return goal

    def reset_draft(self) -> None:
        self._load(GoalDraft())
        self.composer.reset()
        self.step = FlowStep.INTENT
        self.error_message = None
