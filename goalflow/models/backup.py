"""Backup export, import and merge model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from goalflow.models.data_point import DataPoint
from goalflow.models.goal import Goal


BACKUP_VERSION = 1


class BackupGoal(Goal):
    """A goal with its data points, as written to a backup file."""

    data_points: list[DataPoint] = Field(default_factory=list)


class BackupPayload(BaseModel):
    """Backup file contents."""

    version: int = BACKUP_VERSION
    exported_at: datetime
    goals: list[BackupGoal] = Field(default_factory=list)


class ImportSummary(BaseModel):
    goals_imported: int
    data_points_imported: int
    goals_skipped: int = 0


class ConflictType(str, Enum):
    GOAL_METADATA = "goal_metadata"
    QUESTION_DIVERGENCE = "question_divergence"
    DATA_POINT_COLLISION = "data_point_collision"


class MergeConflict(BaseModel):
    """One field that differs between two backups of the same goal."""

    type: ConflictType
    goal_id: str
    goal_title: str
    field: str
    primary_value: str
    secondary_value: str
    recommendation: str


class MergeSummary(BaseModel):
    total_conflicts: int
    goal_conflicts: int
    question_conflicts: int
    data_point_conflicts: int
    can_proceed_without_conflicting_data: bool


class MergeConflictReport(BaseModel):
    timestamp: datetime
    conflicts: list[MergeConflict]
    summary: MergeSummary


class MergeStrategy(str, Enum):
    """What to do when both backups disagree about a goal."""

    STOP_ON_CONFLICT = "stop_on_conflict"  # return the report only
    SKIP_CONFLICTING = "skip_conflicting"  # merge everything else


class MergeRequest(BaseModel):
    primary: BackupPayload
    secondary: BackupPayload
    strategy: MergeStrategy = MergeStrategy.STOP_ON_CONFLICT


class MergeResult(BaseModel):
    """Merged payload (absent when stopped) and the conflicts found."""

    merged: Optional[BackupPayload] = None
    conflicts: Optional[MergeConflictReport] = None
    success: bool

    @property
    def has_conflicts(self) -> bool:
        return self.conflicts is not None and bool(self.conflicts.conflicts)
