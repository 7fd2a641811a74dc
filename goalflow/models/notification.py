"""Planned reminder model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from goalflow.models.schedule import Weekday


class TriggerKind(str, Enum):
    """How a reminder fires."""

    CALENDAR = "calendar"  # repeating match on hour/minute (+ weekday or day)
    DATE = "date"  # one-off at fire_at


class NotificationTrigger(BaseModel):
    kind: TriggerKind
    repeats: bool
    timezone: str
    hour: Optional[int] = None
    minute: Optional[int] = None
    weekday: Optional[Weekday] = None
    day: Optional[int] = None
    fire_at: Optional[datetime] = None


class NotificationRequest(BaseModel):
    """A reminder planned for a goal."""

    id: str = Field(alias="_id", serialization_alias="id")
    goal_id: str
    question_id: Optional[str] = None
    title: str
    body: str
    trigger: NotificationTrigger

    model_config = {"populate_by_name": True}
