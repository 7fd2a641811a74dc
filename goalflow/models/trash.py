"""Trash (soft-delete) model definitions."""
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, Field

from goalflow.models.data_point import DataPoint
from goalflow.models.goal import Goal


class GoalSnapshot(BaseModel):
    """Everything needed to rebuild a deleted goal."""

    goal: Goal
    data_points: list[DataPoint] = Field(default_factory=list)


class GoalTrashItem(BaseModel):
    """Full trash item model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    goal_snapshot: str  # serialized GoalSnapshot JSON
    original_goal_id: str
    goal_title: str
    deleted_at: datetime
    user_note: Optional[str] = None

    model_config = {"populate_by_name": True}

    def snapshot(self) -> GoalSnapshot:
        return GoalSnapshot.model_validate_json(self.goal_snapshot)

    def purge_date(self, retention_days: int = 30) -> datetime:
        return _as_utc(self.deleted_at) + timedelta(days=retention_days)

    def days_until_purge(self, now: Optional[datetime] = None, retention_days: int = 30) -> int:
        now = _as_utc(now or datetime.now(timezone.utc))
        remaining = self.purge_date(retention_days) - now
        return max(0, remaining.days)


def _as_utc(value: datetime) -> datetime:
    # Mongo hands back naive datetimes that are already UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
