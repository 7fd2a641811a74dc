"""Tests for the goal creation flow and draft step rules."""
from unittest.mock import AsyncMock, MagicMock

import pytest


def _ready_draft():
    from goalflow.models.goal import GoalDraft, TrackingCategory
    from goalflow.models.question import QuestionDraft
    from goalflow.models.schedule import ScheduleDraft, ScheduleTime

    return GoalDraft(
        title="Drink water",
        category=TrackingCategory.HEALTH,
        question_drafts=[QuestionDraft(text="Did you drink 8 glasses?")],
        schedule=ScheduleDraft(times=[ScheduleTime(hour=12, minute=30)]),
    )


class TestStepRules:
    """Tests for can_advance and forward_hint."""

    def test_intent_needs_title(self):
        """Test empty title blocks intent until a title is set."""
        from goalflow.models.goal import GoalDraft, TrackingCategory
        from goalflow.services.goal_drafts import FlowStep, can_advance, forward_hint

        draft = GoalDraft(category=TrackingCategory.HEALTH)

        assert can_advance(FlowStep.INTENT, draft) is False
        assert forward_hint(FlowStep.INTENT, draft) == "Add a goal title to continue"

        draft.title = "Drink water"
        assert can_advance(FlowStep.INTENT, draft) is True

    def test_custom_category_needs_label(self):
        """Test custom category only resolves with a label."""
        from goalflow.models.goal import GoalDraft, TrackingCategory
        from goalflow.services.goal_drafts import FlowStep, forward_hint

        draft = GoalDraft(title="Garden", category=TrackingCategory.CUSTOM, custom_category_label="  ")

        assert forward_hint(FlowStep.INTENT, draft) == "Select a focus area to continue"

    def test_prompts_need_a_question_with_content(self):
        """Test blank questions do not count."""
        from goalflow.models.goal import GoalDraft
        from goalflow.models.question import QuestionDraft
        from goalflow.services.goal_drafts import FlowStep, forward_hint

        draft = GoalDraft(question_drafts=[QuestionDraft(text="   ")])

        assert forward_hint(FlowStep.PROMPTS, draft) == "Add at least one tracking question"

    def test_weekly_rhythm_needs_weekday(self):
        """Test weekly with no weekdays blocks rhythm until Monday is chosen."""
        from goalflow.models.schedule import Frequency, Weekday
        from goalflow.services.goal_drafts import FlowStep, can_advance

        draft = _ready_draft()
        draft.schedule.frequency = Frequency.WEEKLY

        assert can_advance(FlowStep.RHYTHM, draft) is False

        draft.schedule.selected_weekdays = {Weekday.MONDAY}
        assert can_advance(FlowStep.RHYTHM, draft) is True

    def test_rhythm_needs_reminder(self):
        """Test at least one reminder time is required."""
        from goalflow.services.goal_drafts import FlowStep, forward_hint

        draft = _ready_draft()
        draft.schedule.times = []

        assert forward_hint(FlowStep.RHYTHM, draft) == "Add at least one reminder time"

    def test_steps_have_no_skips(self):
        """Test next and previous move one step at a time."""
        from goalflow.services.goal_drafts import FlowStep

        assert FlowStep.INTENT.next() is FlowStep.PROMPTS
        assert FlowStep.REVIEW.next() is None
        assert FlowStep.INTENT.previous() is None
        assert FlowStep.REVIEW.previous() is FlowStep.COMMITMENT


class TestTemplatesAndSuggestions:
    """Tests for applying templates and suggestions."""

    def test_apply_template_reproduces_blueprint(self):
        """Test the question matches the template exactly."""
        from goalflow.services.catalog import get_template
        from goalflow.services.goal_creation_flow import GoalCreationFlow

        flow = GoalCreationFlow(goal_service=MagicMock())
        template = get_template("fitness-minutes")

        question = flow.apply_template(template)

        assert question.text == template.blueprint.text
        assert question.response_type == template.blueprint.response_type
        assert question.options == []
        assert question.validation_rules == template.blueprint.validation_rules
        assert question.template_id == "fitness-minutes"

    def test_apply_template_is_idempotent(self):
        """Test applying the same template twice adds one question."""
        from goalflow.services.catalog import get_template
        from goalflow.services.goal_creation_flow import GoalCreationFlow

        flow = GoalCreationFlow(goal_service=MagicMock())
        template = get_template("mood-check-in")

        flow.apply_template(template)
        assert flow.apply_template(template) is None
        assert len(flow.draft.question_drafts) == 1

    def test_apply_suggestion_reproduces_suggestion(self):
        """Test the question keeps prompt, type and options."""
        from goalflow.models.question import ResponseType
        from goalflow.models.suggestion import GoalSuggestion
        from goalflow.services.goal_creation_flow import GoalCreationFlow

        flow = GoalCreationFlow(goal_service=MagicMock())
        suggestion = GoalSuggestion(
            prompt="How was your energy?",
            response_type=ResponseType.MULTIPLE_CHOICE,
            options=["Low", "Medium", "High"],
        )

        question = flow.apply_suggestion(suggestion)

        assert question.text == suggestion.prompt
        assert question.response_type is ResponseType.MULTIPLE_CHOICE
        assert question.options == ["Low", "Medium", "High"]
        assert question.suggestion_id == suggestion.id

    def test_apply_suggestion_dedupes_options(self):
        """Test suggested options are trimmed and deduplicated ignoring case."""
        from goalflow.models.question import ResponseType
        from goalflow.models.suggestion import GoalSuggestion
        from goalflow.services.goal_creation_flow import GoalCreationFlow

        flow = GoalCreationFlow(goal_service=MagicMock())
        suggestion = GoalSuggestion(
            prompt="  How was your energy? ",
            response_type=ResponseType.MULTIPLE_CHOICE,
            options=["Low", " low", "", "High"],
        )

        question = flow.apply_suggestion(suggestion)

        assert question.text == "How was your energy?"
        assert question.options == ["Low", "High"]

    def test_apply_suggestion_without_options_is_refused(self):
        """Test a multiple choice suggestion with no options is not added."""
        from goalflow.models.question import ResponseType
        from goalflow.models.suggestion import GoalSuggestion
        from goalflow.services.goal_creation_flow import GoalCreationFlow

        flow = GoalCreationFlow(goal_service=MagicMock())
        suggestion = GoalSuggestion(prompt="Pick one", response_type=ResponseType.MULTIPLE_CHOICE)
        flow.suggestions = [suggestion]

        assert flow.apply_suggestion(suggestion) is None
        assert flow.draft.question_drafts == []
        assert flow.suggestion_error == "Add at least one option"
        assert flow.suggestions == [suggestion]

    @pytest.mark.asyncio
    async def test_load_suggestions_filters_duplicates(self):
        """Test suggestions repeating an existing question are dropped."""
        from goalflow.models.goal import TrackingCategory
        from goalflow.models.question import QuestionDraft, ResponseType
        from goalflow.models.suggestion import GoalSuggestion
        from goalflow.services.goal_creation_flow import GoalCreationFlow

        suggestion_service = AsyncMock()
        suggestion_service.suggestions.return_value = [
            GoalSuggestion(prompt="Did you drink water?", response_type=ResponseType.BOOLEAN),
            GoalSuggestion(prompt="How many glasses?", response_type=ResponseType.NUMERIC),
        ]
        flow = GoalCreationFlow(goal_service=MagicMock(), suggestion_service=suggestion_service)
        flow.update_title("Hydrate")
        flow.select_category(TrackingCategory.HEALTH)
        flow.add_custom_question(QuestionDraft(text="did you drink water?"))

        results = await flow.load_suggestions()

        assert [s.prompt for s in results] == ["How many glasses?"]
        kwargs = suggestion_service.suggestions.call_args.kwargs
        assert kwargs["title"] == "Hydrate"
        assert "Category: Health" in kwargs["description"]

    @pytest.mark.asyncio
    async def test_load_suggestions_needs_input(self):
        """Test an empty draft does not call the service."""
        from goalflow.services.goal_creation_flow import GoalCreationFlow
        from goalflow.services.suggestion_service import GoalSuggestionError

        suggestion_service = AsyncMock()
        flow = GoalCreationFlow(goal_service=MagicMock(), suggestion_service=suggestion_service)

        assert await flow.load_suggestions() == []
        assert flow.suggestion_error == GoalSuggestionError.MISSING_INPUT
        suggestion_service.suggestions.assert_not_called()


class TestQuestionList:
    """Tests for editing and ordering draft questions."""

    def _flow(self):
        from goalflow.models.question import QuestionDraft
        from goalflow.services.goal_creation_flow import GoalCreationFlow

        flow = GoalCreationFlow(goal_service=MagicMock())
        for text in ("First", "Second", "Third"):
            flow.add_custom_question(QuestionDraft(text=text))
        return flow

    def test_update_question_replaces_in_place(self):
        """Test an edited question keeps its position and id."""
        flow = self._flow()
        edited = flow.draft.question_drafts[1].model_copy(update={"text": "Second, edited"})

        assert flow.update_question(edited) is True
        assert [q.text for q in flow.draft.question_drafts] == ["First", "Second, edited", "Third"]
        assert flow.draft.question_drafts[1].id == edited.id

    def test_update_unknown_question(self):
        """Test updating a question that is not in the draft changes nothing."""
        from goalflow.models.question import QuestionDraft

        flow = self._flow()

        assert flow.update_question(QuestionDraft(text="Stray")) is False
        assert len(flow.draft.question_drafts) == 3

    def test_reorder_questions(self):
        """Test moving a question to the front and past the end."""
        flow = self._flow()

        assert flow.reorder_questions(2, 0) is True
        assert [q.text for q in flow.draft.question_drafts] == ["Third", "First", "Second"]

        assert flow.reorder_questions(0, 10) is True
        assert [q.text for q in flow.draft.question_drafts] == ["First", "Second", "Third"]

    @pytest.mark.parametrize("from_index", [-1, 3, 10])
    def test_reorder_out_of_range_is_ignored(self, from_index):
        """Test a bad source index leaves the order alone."""
        flow = self._flow()

        assert flow.reorder_questions(from_index, 0) is False
        assert [q.text for q in flow.draft.question_drafts] == ["First", "Second", "Third"]


@pytest.mark.asyncio
class TestNavigation:
    """Tests for moving through steps and committing."""

    async def test_move_forward_blocked_without_requirements(self):
        """Test the flow stays put when the step is incomplete."""
        from goalflow.services.goal_creation_flow import GoalCreationFlow
        from goalflow.services.goal_drafts import FlowStep

        flow = GoalCreationFlow(goal_service=AsyncMock())

        assert await flow.move_forward() is False
        assert flow.step is FlowStep.INTENT
        assert flow.forward_hint() == "Add a goal title to continue"

    async def test_full_walk_commits_on_review(self):
        """Test walking every step commits once and resets the draft."""
        from goalflow.models.goal import TrackingCategory
        from goalflow.models.schedule import ScheduleTime
        from goalflow.services.catalog import get_template
        from goalflow.services.goal_creation_flow import GoalCreationFlow
        from goalflow.services.goal_drafts import FlowStep

        goal_service = AsyncMock()
        goal_service.create_goal.return_value = MagicMock(id="goal-1")
        flow = GoalCreationFlow(goal_service=goal_service)

        flow.update_title("Drink water")
        flow.select_category(TrackingCategory.HEALTH)
        assert await flow.move_forward() is True
        flow.apply_template(get_template("fitness-workout"))
        assert await flow.move_forward() is True
        assert flow.add_reminder_time(ScheduleTime(hour=9, minute=0)) is True
        assert flow.add_reminder_time(ScheduleTime(hour=9, minute=3)) is False
        assert await flow.move_forward() is True
        assert await flow.move_forward() is True
        assert flow.step is FlowStep.REVIEW

        committed = flow.draft
        assert await flow.move_forward() is True

        goal_service.create_goal.assert_awaited_once_with(committed)
        assert flow.step is FlowStep.INTENT
        assert flow.draft.title == ""

    async def test_storage_failure_keeps_draft_at_review(self):
        """Test a failed save surfaces the error and keeps everything."""
        from pymongo.errors import PyMongoError
        from goalflow.services.goal_creation_flow import GoalCreationFlow
        from goalflow.services.goal_drafts import FlowStep

        goal_service = AsyncMock()
        goal_service.create_goal.side_effect = PyMongoError("disk full")
        flow = GoalCreationFlow(goal_service=goal_service, draft=_ready_draft())
        flow.step = FlowStep.REVIEW

        assert await flow.move_forward() is False

        assert flow.error_message == "disk full"
        assert flow.step is FlowStep.REVIEW
        assert flow.draft.title == "Drink water"
        goal_service.create_goal.assert_awaited_once()

    async def test_commit_enforces_reminder_cap(self):
        """Test a draft over the reminder cap never reaches storage."""
        from goalflow.models.schedule import ScheduleTime
        from goalflow.services.goal_creation_flow import GoalCreationFlow
        from goalflow.services.goal_drafts import FlowStep

        draft = _ready_draft()
        draft.schedule.times = [ScheduleTime(hour=h, minute=0) for h in (7, 9, 12, 18)]
        goal_service = AsyncMock()
        flow = GoalCreationFlow(goal_service=goal_service, draft=draft)
        flow.step = FlowStep.REVIEW

        assert await flow.move_forward() is False

        assert flow.error_message == "Use at most 3 reminder times"
        assert flow.step is FlowStep.REVIEW
        goal_service.create_goal.assert_not_called()

    async def test_move_backward(self):
        """Test stepping back is allowed except from the first step."""
        from goalflow.services.goal_creation_flow import GoalCreationFlow
        from goalflow.services.goal_drafts import FlowStep

        flow = GoalCreationFlow(goal_service=AsyncMock())
        assert flow.move_backward() is False

        flow.step = FlowStep.RHYTHM
        assert flow.move_backward() is True
        assert flow.step is FlowStep.PROMPTS

    async def test_edit_flow_saves_over_existing_goal(self, goal_doc):
        """Test an edit flow keeps question identity and calls update."""
        from goalflow.models.goal import Goal
        from goalflow.services.goal_creation_flow import GoalCreationFlow
        from goalflow.services.goal_drafts import FlowStep

        doc = goal_doc()
        goal = Goal(**{**doc, "_id": str(doc["_id"])})
        goal_service = AsyncMock()
        goal_service.update_goal_from_draft.return_value = goal

        flow = GoalCreationFlow.for_goal(goal, goal_service)
        assert str(flow.draft.question_drafts[0].id) == goal.questions[0].id

        flow.step = FlowStep.REVIEW
        assert await flow.move_forward() is True
        goal_service.update_goal_from_draft.assert_awaited_once_with(goal.id, flow.draft)
