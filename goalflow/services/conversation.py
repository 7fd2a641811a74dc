"""Conversational goal creation - a coach infers the goal from one sentence."""
import asyncio
import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field
from pymongo.errors import PyMongoError

from goalflow.models.goal import Goal, GoalDraft
from goalflow.models.inference import (
    InferenceResult,
    InferredCategory,
    InferredFrequency,
    InferredGoalConfiguration,
    InferredTimeSlot,
    InferredTrackingMethod,
)
from goalflow.models.question import QuestionDraft, ResponseType, ValidationRules
from goalflow.models.schedule import Frequency, ScheduleDraft, Weekday
from goalflow.services.inference_service import GoalInferenceService, infer_with_fallback
from goalflow.services.schedule_editor import DEFAULT_INTERVAL_DAYS
from goalflow.utils.text import trimmed


logger = logging.getLogger(__name__)

GREETING = "Hey! What would you like to track?"
CREATING = "Perfect! Creating your goal now..."
FAILURE = "Oops, something went wrong. Let's try again!"
UPDATED = "Updated!"
DEFAULT_QUESTION = "How did it go today?"

_METHOD_LABELS = {
    InferredTrackingMethod.YES_NO: "Yes / No",
    InferredTrackingMethod.COUNT: "Count it",
    InferredTrackingMethod.SCALE: "Rate 1-10",
    InferredTrackingMethod.JOURNAL: "Write about it",
}

_FREQUENCY_LABELS = {
    InferredFrequency.DAILY: "Every day",
    InferredFrequency.WEEKLY: "Once a week",
    InferredFrequency.CUSTOM: "Custom schedule",
}


class ConversationState(str, Enum):
    GREETING = "greeting"
    AWAITING_GOAL_INPUT = "awaiting_goal_input"
    INFERRING = "inferring"
    REVIEWING_INFERENCE = "reviewing_inference"
    EDITING_DETAIL = "editing_detail"
    CONFIRM_AND_CREATE = "confirm_and_create"
    COMPLETE = "complete"


class DetailType(str, Enum):
    CATEGORY = "category"
    TRACKING_METHOD = "tracking_method"
    FREQUENCY = "frequency"
    REMINDER_TIME = "reminder_time"


class MessageRole(str, Enum):
    COACH = "coach"
    USER = "user"


class ConversationMessage(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    role: MessageRole
    text: str
    sent_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def typing_delay(text: str) -> float:
    """
    Seconds the coach "types" before a message appears.

    Examples:
        >>> typing_delay("Hi")
        0.5
        >>> typing_delay("x" * 500)
        1.2
    """
    return min(1.2, max(0.5, len(text) / 80))


def summarize(configuration: InferredGoalConfiguration) -> str:
    """Coach message describing an inferred configuration."""
    return (
        "Got it! Here's what I set up for you:\n\n"
        f"{configuration.title} ({configuration.category.value.capitalize()})\n"
        f"{_METHOD_LABELS[configuration.tracking_method]}\n"
        f"{_FREQUENCY_LABELS[configuration.frequency]}\n"
        f"{configuration.suggested_reminder_slot.display_name}\n\n"
        f"{configuration.motivational_message}"
    ).rstrip()


def _validation_rules(response_type: ResponseType) -> Optional[ValidationRules]:
    if response_type is ResponseType.NUMERIC:
        return ValidationRules(minimum_value=0, maximum_value=100, allows_empty=False)
    if response_type is ResponseType.SCALE:
        return ValidationRules(minimum_value=1, maximum_value=10, allows_empty=False)
    return None


def draft_from_configuration(
    configuration: InferredGoalConfiguration,
    description: str = "",
    timezone_name: str = "UTC",
    start_date: Optional[date] = None,
) -> GoalDraft:
    """
    Build a committable draft from an inferred configuration.

    Weekly goals remind on the start date's weekday; custom goals use a
    three-day interval.
    """
    start_date = start_date or date.today()
    frequency = configuration.frequency.to_frequency()
    schedule = ScheduleDraft(
        frequency=frequency,
        times=[configuration.suggested_reminder_slot.to_schedule_time()],
        timezone=timezone_name,
        start_date=start_date,
    )
    if frequency is Frequency.WEEKLY:
        schedule.selected_weekdays = {Weekday.from_date(start_date)}
    elif frequency is Frequency.CUSTOM:
        schedule.interval_day_count = DEFAULT_INTERVAL_DAYS

    response_type = configuration.tracking_method.to_response_type()
    question = QuestionDraft(
        text=trimmed(configuration.tracking_question) or DEFAULT_QUESTION,
        response_type=response_type,
        validation_rules=_validation_rules(response_type),
    )
    return GoalDraft(
        title=configuration.title,
        motivation=description,
        category=configuration.category.to_tracking_category(),
        question_drafts=[question],
        schedule=schedule,
        celebration_message=configuration.motivational_message,
    )


class ConversationalGoalFlow:
    """
    Chat-style goal creation.

    The model gets one attempt per input; any failure settles on keyword
    inference for that input.
    """

    def __init__(
        self,
        goal_service,
        inference_service: Optional[GoalInferenceService] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        timezone_name: str = "UTC",
    ):
        self.goal_service = goal_service
        self.inference_service = inference_service
        self.sleep = sleep
        self.timezone_name = timezone_name
        self.state = ConversationState.GREETING
        self.messages: list[ConversationMessage] = []
        self.description = ""
        self.configuration: Optional[InferredGoalConfiguration] = None
        self.used_fallback = False
        self.editing_detail: Optional[DetailType] = None
        self.created_goal: Optional[Goal] = None
        self.is_coach_typing = False

    async def start(self) -> None:
        await self._say(GREETING)
        self.state = ConversationState.AWAITING_GOAL_INPUT

    async def handle_goal_input(self, text: str) -> Optional[InferenceResult]:
        """Infer a configuration from the user's sentence. Blank input is ignored."""
        text = trimmed(text)
        if not text:
            return None

        self.messages.append(ConversationMessage(role=MessageRole.USER, text=text))
        self.description = text
        self.state = ConversationState.INFERRING

        result = await infer_with_fallback(self.inference_service, text)
        self.configuration = result.configuration
        self.used_fallback = result.used_fallback

        await self._say(summarize(result.configuration))
        self.state = ConversationState.REVIEWING_INFERENCE
        return result

    def begin_editing(self, detail: DetailType) -> None:
        if self.configuration is None:
            return
        self.editing_detail = detail
        self.state = ConversationState.EDITING_DETAIL

    def override_detail(
        self,
        category: Optional[InferredCategory] = None,
        tracking_method: Optional[InferredTrackingMethod] = None,
        frequency: Optional[InferredFrequency] = None,
        time_slot: Optional[InferredTimeSlot] = None,
    ) -> None:
        """Apply the user's corrections to the inferred configuration."""
        if self.configuration is None:
            return
        update = {
            "category": category,
            "tracking_method": tracking_method,
            "frequency": frequency,
            "suggested_reminder_slot": time_slot,
        }
        self.configuration = self.configuration.model_copy(
            update={key: value for key, value in update.items() if value is not None}
        )
        self.messages.append(ConversationMessage(role=MessageRole.COACH, text=UPDATED))
        self.editing_detail = None
        self.state = ConversationState.REVIEWING_INFERENCE

    def to_draft(self, start_date: Optional[date] = None) -> GoalDraft:
        if self.configuration is None:
            raise ValueError("Nothing has been inferred yet")
        return draft_from_configuration(
            self.configuration,
            description=self.description,
            timezone_name=self.timezone_name,
            start_date=start_date,
        )

    async def confirm(self) -> Optional[Goal]:
        """
        Commit the reviewed configuration.

        Returns:
            The created goal, or None if storing failed (the conversation
            returns to review so the user can try again)
        """
        if self.configuration is None:
            return None

        self.state = ConversationState.CONFIRM_AND_CREATE
        await self._say(CREATING)
        try:
            goal = await self.goal_service.create_goal(self.to_draft())
        except (ValueError, PyMongoError) as e:
            logger.warning("Conversational goal creation failed", extra={"error": str(e)})
            self.messages.append(ConversationMessage(role=MessageRole.COACH, text=FAILURE))
            self.state = ConversationState.REVIEWING_INFERENCE
            return None

        self.created_goal = goal
        self.state = ConversationState.COMPLETE
        self.messages.append(ConversationMessage(
            role=MessageRole.COACH,
            text=f'Done! Your goal "{goal.title}" is ready. You\'ve got this!',
        ))
        return goal

    async def _say(self, text: str) -> None:
        self.is_coach_typing = True
        await self.sleep(typing_delay(text))
        self.is_coach_typing = False
        self.messages.append(ConversationMessage(role=MessageRole.COACH, text=text))
