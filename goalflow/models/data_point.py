"""Check-in data point model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from goalflow.models.schedule import ScheduleTime


class CheckInResponse(BaseModel):
    """One answer submitted during a check-in."""

    question_id: str
    numeric_value: Optional[float] = None
    text_value: Optional[str] = None
    bool_value: Optional[bool] = None
    selected_options: Optional[list[str]] = None
    time_value: Optional[ScheduleTime] = None


class CheckInCreate(BaseModel):
    """Check-in creation model."""

    responses: list[CheckInResponse]
    timestamp: Optional[datetime] = None
    mood: Optional[int] = Field(default=None, ge=1, le=10)
    location: Optional[str] = None


class DataPoint(BaseModel):
    """Full data point model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    goal_id: str
    question_id: Optional[str] = None
    timestamp: datetime
    numeric_value: Optional[float] = None
    text_value: Optional[str] = None
    bool_value: Optional[bool] = None
    selected_options: Optional[list[str]] = None
    time_value: Optional[ScheduleTime] = None
    mood: Optional[int] = None
    location: Optional[str] = None

    model_config = {"populate_by_name": True}
