"""Inferred goal configuration model definitions."""
from enum import Enum

from pydantic import BaseModel, Field

from goalflow.models.goal import TrackingCategory
from goalflow.models.question import ResponseType
from goalflow.models.schedule import Frequency, ScheduleTime


class InferredCategory(str, Enum):
    """Categories the inference may choose (never custom)."""

    HEALTH = "health"
    FITNESS = "fitness"
    PRODUCTIVITY = "productivity"
    HABITS = "habits"
    MOOD = "mood"
    LEARNING = "learning"
    SOCIAL = "social"
    FINANCE = "finance"

    def to_tracking_category(self) -> TrackingCategory:
        return TrackingCategory(self.value)


class InferredTrackingMethod(str, Enum):
    """How progress is tracked."""

    YES_NO = "yes_no"  # did you do it?
    COUNT = "count"  # how many?
    SCALE = "scale"  # rate 1-10
    JOURNAL = "journal"  # write about it

    def to_response_type(self) -> ResponseType:
        return {
            InferredTrackingMethod.YES_NO: ResponseType.BOOLEAN,
            InferredTrackingMethod.COUNT: ResponseType.NUMERIC,
            InferredTrackingMethod.SCALE: ResponseType.SCALE,
            InferredTrackingMethod.JOURNAL: ResponseType.TEXT,
        }[self]


class InferredFrequency(str, Enum):
    """Check-in frequency."""

    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"

    def to_frequency(self) -> Frequency:
        return Frequency(self.value)


class InferredTimeSlot(str, Enum):
    """Reminder time of day."""

    MORNING = "morning"
    MIDDAY = "midday"
    EVENING = "evening"
    NIGHT = "night"

    def to_schedule_time(self) -> ScheduleTime:
        hour = {
            InferredTimeSlot.MORNING: 8,
            InferredTimeSlot.MIDDAY: 12,
            InferredTimeSlot.EVENING: 18,
            InferredTimeSlot.NIGHT: 21,
        }[self]
        return ScheduleTime(hour=hour, minute=0)

    @property
    def display_name(self) -> str:
        return f"{self.value.capitalize()} ({self.to_schedule_time().formatted()})"


class InferredGoalConfiguration(BaseModel):
    """A complete goal configuration inferred from a free-text description."""

    title: str
    category: InferredCategory
    tracking_method: InferredTrackingMethod
    frequency: InferredFrequency
    tracking_question: str
    suggested_reminder_slot: InferredTimeSlot
    motivational_message: str = ""
    confidence_score: float = Field(ge=0.0, le=1.0)


class InferenceRequest(BaseModel):
    """Free-text goal description to infer from."""

    text: str


class InferenceResult(BaseModel):
    """Inferred configuration and whether the keyword fallback produced it."""

    configuration: InferredGoalConfiguration
    used_fallback: bool
