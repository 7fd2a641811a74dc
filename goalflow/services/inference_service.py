"""Goal inference - turn a free-text description into a goal configuration."""
import logging
from typing import Optional

from pydantic import ValidationError

from goalflow.config import settings
from goalflow.models.inference import (
    InferenceResult,
    InferredCategory,
    InferredFrequency,
    InferredGoalConfiguration,
    InferredTimeSlot,
    InferredTrackingMethod,
)
from goalflow.utils.llm import ChatCompletionsClient, LLMRequestError, LLMUnavailableError
from goalflow.utils.text import clean_title


logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.7

INSTRUCTIONS = """You are a helpful goal-tracking assistant. Your job is to understand what
the user wants to track and configure a complete goal for them.

When analyzing a goal description:
1. Infer the most appropriate category based on keywords and context
2. Determine the best tracking method:
   - yes_no: For binary actions (did I do it or not?)
   - count: For countable activities (how many times, glasses of water, etc.)
   - scale: For subjective ratings (energy level, mood, quality)
   - journal: For reflection or detailed tracking
3. Suggest a frequency that matches the goal type
4. Choose a reminder time that fits the activity:
   - morning: exercise, meditation, vitamins
   - midday: water intake, lunch habits
   - evening: reflection, workouts, habits
   - night: journaling, sleep prep, gratitude
5. Create a natural tracking question
6. Provide an encouraging motivational message

Reply only with a JSON object with the keys: title (3-7 words), category
(health, fitness, productivity, habits, mood, learning, social, finance),
tracking_method (yes_no, count, scale, journal), frequency (daily, weekly,
custom), tracking_question, suggested_reminder_slot (morning, midday,
evening, night), motivational_message (10-20 words) and confidence_score
(0.0 to 1.0)."""


class InferenceError(Exception):
    """Base class for inference failures. Callers fall back on any of them."""


class InferenceUnavailableError(InferenceError):
    def __init__(self):
        super().__init__("Goal inference is not available right now.")


class GenerationFailedError(InferenceError):
    def __init__(self, message: str):
        super().__init__(f"Failed to analyze goal: {message}")


class LowConfidenceError(InferenceError):
    def __init__(self):
        super().__init__("Could not confidently understand your goal. Please provide more details.")


class GoalInferenceService:
    """Infers goal configurations with a language model."""

    def __init__(
        self,
        client: Optional[ChatCompletionsClient] = None,
        min_confidence: float = settings.inference_min_confidence,
    ):
        self.client = client or ChatCompletionsClient.from_settings()
        self.min_confidence = min_confidence

    @property
    def is_available(self) -> bool:
        return self.client.is_available

    async def infer_goal_configuration(self, text: str) -> InferredGoalConfiguration:
        """
        Infer a configuration from the user's description.

        The request is bounded by the client's timeout; a timeout is a
        generation failure like any other.

        Raises:
            InferenceUnavailableError: If no model endpoint is configured
            GenerationFailedError: If the request or decoding fails
            LowConfidenceError: If the model is not confident enough
        """
        prompt = (
            f'The user wants to track: "{text.strip()}"\n\n'
            "Analyze this and create a complete goal configuration.\n"
            "Be confident - infer everything you can from the context.\n"
            "If it's about water, it's health + count.\n"
            "If it's about exercise, it's fitness + yes_no.\n"
            "Make smart assumptions like a helpful coach would."
        )
        try:
            payload = await self.client.complete_json(INSTRUCTIONS, prompt)
        except LLMUnavailableError:
            raise InferenceUnavailableError()
        except LLMRequestError as e:
            raise GenerationFailedError(str(e))

        try:
            configuration = InferredGoalConfiguration.model_validate(payload)
        except ValidationError as e:
            raise GenerationFailedError(f"unexpected configuration ({e.error_count()} errors)")

        if configuration.confidence_score < self.min_confidence:
            raise LowConfidenceError()
        return configuration


_CATEGORY_KEYWORDS: list[tuple[InferredCategory, list[str]]] = [
    (InferredCategory.HEALTH, ["water", "hydrat", "sleep", "vitamin", "medicine", "health", "doctor", "weight"]),
    (InferredCategory.FITNESS, ["exercise", "workout", "run", "walk", "gym", "steps", "miles", "fitness", "yoga", "stretch"]),
    (InferredCategory.PRODUCTIVITY, ["work", "task", "project", "focus", "productive", "meeting", "deadline"]),
    (InferredCategory.HABITS, ["habit", "routine", "daily", "morning", "evening", "ritual"]),
    (InferredCategory.MOOD, ["mood", "meditat", "mindful", "gratitude", "stress", "anxiety", "happy", "calm", "journal"]),
    (InferredCategory.LEARNING, ["read", "study", "learn", "book", "course", "practice", "skill", "language"]),
    (InferredCategory.SOCIAL, ["friend", "family", "call", "connect", "social", "relationship"]),
    (InferredCategory.FINANCE, ["save", "spend", "budget", "money", "invest", "expense", "finance"]),
]

_COUNT_KEYWORDS = ["glass", "cup", "hour", "minute", "page", "step", "mile", "time", "many"]
_SCALE_KEYWORDS = ["rate", "level", "how well", "quality", "feel", "mood", "energy"]
_JOURNAL_KEYWORDS = ["journal", "write", "reflect", "note", "thought"]

_MOTIVATION = {
    InferredCategory.HEALTH: "Taking care of your health is the best investment you can make!",
    InferredCategory.FITNESS: "Every step forward is progress. You've got this!",
    InferredCategory.PRODUCTIVITY: "Small consistent actions lead to big results. Keep going!",
    InferredCategory.HABITS: "Habits are the compound interest of self-improvement.",
    InferredCategory.MOOD: "Checking in with yourself is a powerful act of self-care.",
    InferredCategory.LEARNING: "Every day is a chance to learn something new.",
    InferredCategory.SOCIAL: "Connections make life richer. Nurture your relationships!",
    InferredCategory.FINANCE: "Financial awareness is the first step to freedom.",
}


def _mentions(text: str, keywords: list[str]) -> bool:
    return any(keyword in text for keyword in keywords)


class FallbackGoalInference:
    """Deterministic keyword inference used when the model cannot answer."""

    @classmethod
    def infer(cls, text: str) -> InferredGoalConfiguration:
        lowered = text.lower()
        category = cls.infer_category(lowered)
        method = cls.infer_tracking_method(lowered, category)
        return InferredGoalConfiguration(
            title=clean_title(text),
            category=category,
            tracking_method=method,
            frequency=InferredFrequency.WEEKLY if "week" in lowered else InferredFrequency.DAILY,
            tracking_question=cls.question(text, method),
            suggested_reminder_slot=cls.infer_time_slot(lowered, category),
            motivational_message=_MOTIVATION[category],
            confidence_score=FALLBACK_CONFIDENCE,
        )

    @staticmethod
    def infer_category(lowered: str) -> InferredCategory:
        for category, keywords in _CATEGORY_KEYWORDS:
            if _mentions(lowered, keywords):
                return category
        return InferredCategory.HABITS

    @staticmethod
    def infer_tracking_method(lowered: str, category: InferredCategory) -> InferredTrackingMethod:
        if _mentions(lowered, _COUNT_KEYWORDS):
            return InferredTrackingMethod.COUNT
        if _mentions(lowered, _SCALE_KEYWORDS):
            return InferredTrackingMethod.SCALE
        if _mentions(lowered, _JOURNAL_KEYWORDS):
            return InferredTrackingMethod.JOURNAL
        if category is InferredCategory.MOOD:
            return InferredTrackingMethod.SCALE
        if category is InferredCategory.HEALTH and "water" in lowered:
            return InferredTrackingMethod.COUNT
        return InferredTrackingMethod.YES_NO

    @staticmethod
    def infer_time_slot(lowered: str, category: InferredCategory) -> InferredTimeSlot:
        # Explicit mentions win over category defaults
        if "morning" in lowered:
            return InferredTimeSlot.MORNING
        if "lunch" in lowered or "noon" in lowered:
            return InferredTimeSlot.MIDDAY
        if "evening" in lowered or "after work" in lowered:
            return InferredTimeSlot.EVENING
        if "night" in lowered or "bed" in lowered:
            return InferredTimeSlot.NIGHT

        if category is InferredCategory.HEALTH:
            return InferredTimeSlot.MIDDAY if "water" in lowered else InferredTimeSlot.MORNING
        if category is InferredCategory.MOOD:
            if "journal" in lowered or "gratitude" in lowered:
                return InferredTimeSlot.NIGHT
            return InferredTimeSlot.MORNING
        if category in (InferredCategory.FITNESS, InferredCategory.PRODUCTIVITY):
            return InferredTimeSlot.MORNING
        return InferredTimeSlot.EVENING

    @staticmethod
    def question(text: str, method: InferredTrackingMethod) -> str:
        cleaned = text.strip().lower()
        if method is InferredTrackingMethod.COUNT:
            if "water" in cleaned:
                return "How many glasses of water did you drink?"
            return f"How many times did you {cleaned}?"
        if method is InferredTrackingMethod.SCALE:
            return f"Rate your {cleaned} today (1-10)"
        if method is InferredTrackingMethod.JOURNAL:
            return f"How did your {cleaned} go today?"
        return f"Did you {cleaned} today?"


async def infer_with_fallback(service: Optional[GoalInferenceService], text: str) -> InferenceResult:
    """
    Try the model once, then fall back to keyword inference.

    There is no retry: any inference error settles on the fallback for this
    input.
    """
    if service is not None:
        try:
            configuration = await service.infer_goal_configuration(text)
            return InferenceResult(configuration=configuration, used_fallback=False)
        except InferenceError as e:
            logger.info("Falling back to keyword inference", extra={"reason": str(e)})

    return InferenceResult(configuration=FallbackGoalInference.infer(text), used_fallback=True)
