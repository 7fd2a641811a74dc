"""Backup service - export, import and merge of every goal and data point."""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo.errors import PyMongoError

from goalflow.models.backup import (
    BACKUP_VERSION,
    BackupGoal,
    BackupPayload,
    ConflictType,
    ImportSummary,
    MergeConflict,
    MergeConflictReport,
    MergeResult,
    MergeStrategy,
    MergeSummary,
)
from goalflow.models.data_point import DataPoint
from goalflow.models.question import Question
from goalflow.services.notification_scheduler import NotificationScheduling
from goalflow.utils.ids import to_object_id


logger = logging.getLogger(__name__)


class BackupError(ValueError):
    """A backup cannot be imported."""


class BackupService:
    """Service for exporting and importing backups."""

    def __init__(self, db, scheduler: Optional[NotificationScheduling] = None):
        """Initialize service with database connection."""
        self.db = db
        self.goals = db["goals"]
        self.data_points = db["data_points"]
        self.scheduler = scheduler

    async def export_backup(self) -> BackupPayload:
        """
        Export every goal with its data points.

        Returns:
            Payload with goals oldest first and data points in time order
        """
        goal_docs = await self.goals.find({}).sort("created_at", 1).to_list(length=None)
        point_docs = await self.data_points.find({}).sort("timestamp", 1).to_list(length=None)

        points_by_goal: dict[str, list[DataPoint]] = {}
        for doc in point_docs:
            point = DataPoint(**{**doc, "_id": str(doc["_id"])})
            points_by_goal.setdefault(point.goal_id, []).append(point)

        goals = [
            BackupGoal(**{**doc, "_id": str(doc["_id"])}, data_points=points_by_goal.get(str(doc["_id"]), []))
            for doc in goal_docs
        ]
        logger.info("Backup exported", extra={"goals": len(goals), "data_points": len(point_docs)})
        return BackupPayload(version=BACKUP_VERSION, exported_at=datetime.now(timezone.utc), goals=goals)

    async def import_backup(self, payload: BackupPayload, replace_existing: bool = True) -> ImportSummary:
        """
        Import a backup.

        Args:
            payload: Backup contents
            replace_existing: Delete every current goal first; otherwise
                goals whose ID already exists are skipped

        Returns:
            Counts of imported and skipped goals

        Raises:
            BackupError: If the backup is empty or from a newer version
            PyMongoError: If a write fails; the goals inserted by this
                import are removed again
        """
        if payload.version > BACKUP_VERSION:
            raise BackupError(f"This backup was created with a newer version ({payload.version}).")
        if not payload.goals:
            raise BackupError("The selected backup file is empty.")

        if replace_existing:
            await self._remove_existing_goals()
            goals = list(payload.goals)
        else:
            ids = [to_object_id(goal.id) for goal in payload.goals]
            existing = await self.goals.find({"_id": {"$in": ids}}).to_list(length=None)
            existing_ids = {str(doc["_id"]) for doc in existing}
            goals = [goal for goal in payload.goals if goal.id not in existing_ids]

        if not goals:
            return ImportSummary(goals_imported=0, data_points_imported=0, goals_skipped=len(payload.goals))

        goal_ids = [to_object_id(goal.id) for goal in goals]
        point_docs = [_point_doc(point, goal.id) for goal in goals for point in goal.data_points]
        await self.goals.insert_many([_goal_doc(goal) for goal in goals])
        try:
            if point_docs:
                await self.data_points.insert_many(point_docs)
        except PyMongoError:
            logger.exception("Backup import failed, rolling back", extra={"goals": len(goals)})
            await self.data_points.delete_many({"_id": {"$in": [doc["_id"] for doc in point_docs]}})
            await self.goals.delete_many({"_id": {"$in": goal_ids}})
            raise

        for goal in goals:
            if goal.is_active:
                await self._schedule(goal)

        summary = ImportSummary(
            goals_imported=len(goals),
            data_points_imported=len(point_docs),
            goals_skipped=len(payload.goals) - len(goals),
        )
        logger.info("Backup imported", extra=summary.model_dump())
        return summary

    async def _remove_existing_goals(self) -> None:
        existing = await self.goals.find({}).to_list(length=None)
        for doc in existing:
            await self._cancel(str(doc["_id"]))
        await self.goals.delete_many({})
        await self.data_points.delete_many({})

    async def _schedule(self, goal: BackupGoal) -> None:
        if self.scheduler is None:
            return
        try:
            await self.scheduler.schedule_notifications(goal)
        except Exception:
            logger.exception("Failed to schedule reminders", extra={"goal_id": goal.id})

    async def _cancel(self, goal_id: str) -> None:
        if self.scheduler is None:
            return
        try:
            await self.scheduler.cancel_notifications(goal_id)
        except Exception:
            logger.exception("Failed to cancel reminders", extra={"goal_id": goal_id})


def _goal_doc(goal: BackupGoal) -> dict:
    return {
        "_id": to_object_id(goal.id),
        **goal.model_dump(mode="json", exclude={"id", "data_points", "created_at", "updated_at"}),
        "created_at": goal.created_at,
        "updated_at": goal.updated_at,
    }


def _point_doc(point: DataPoint, goal_id: str) -> dict:
    return {
        "_id": to_object_id(point.id, kind="data point"),
        **point.model_dump(mode="json", exclude={"id", "goal_id", "timestamp"}),
        "goal_id": goal_id,
        "timestamp": point.timestamp,
    }


def merge_backups(
    primary: BackupPayload,
    secondary: BackupPayload,
    strategy: MergeStrategy = MergeStrategy.STOP_ON_CONFLICT,
    now: Optional[datetime] = None,
) -> MergeResult:
    """
    Merge two backups of the same data.

    Goals found in only one backup are kept as they are. Goals found in both
    take their metadata from the more recently updated copy and the union of
    their questions and data points. A goal with any conflict is left out of
    the merge; with ``STOP_ON_CONFLICT`` nothing is merged at all.

    Returns:
        The merge result with a conflict report when anything disagreed
    """
    now = now or datetime.now(timezone.utc)
    conflicts: list[MergeConflict] = []
    merged_goals: list[BackupGoal] = []

    secondary_by_id = {goal.id: goal for goal in secondary.goals}
    primary_ids = {goal.id for goal in primary.goals}

    for goal in primary.goals:
        other = secondary_by_id.get(goal.id)
        if other is None:
            merged_goals.append(goal)
            continue
        merged, goal_conflicts = _merge_goal(goal, other)
        conflicts.extend(goal_conflicts)
        if not goal_conflicts:
            merged_goals.append(merged)
    merged_goals.extend(goal for goal in secondary.goals if goal.id not in primary_ids)

    if conflicts and strategy is MergeStrategy.STOP_ON_CONFLICT:
        return MergeResult(merged=None, conflicts=_report(conflicts, now), success=False)

    payload = BackupPayload(
        version=max(primary.version, secondary.version),
        exported_at=now,
        goals=sorted(merged_goals, key=lambda g: _utc(g.created_at)),
    )
    report = _report(conflicts, now) if conflicts else None
    return MergeResult(merged=payload, conflicts=report, success=True)


def _merge_goal(primary: BackupGoal, secondary: BackupGoal) -> tuple[BackupGoal, list[MergeConflict]]:
    winner = primary if _utc(primary.updated_at) > _utc(secondary.updated_at) else secondary
    conflicts = []

    def conflict(kind: ConflictType, field: str, first: str, second: str, recommendation: str) -> None:
        conflicts.append(MergeConflict(
            type=kind,
            goal_id=primary.id,
            goal_title=winner.title,
            field=field,
            primary_value=first,
            secondary_value=second,
            recommendation=recommendation,
        ))

    if primary.title != secondary.title:
        conflict(ConflictType.GOAL_METADATA, "title", primary.title, secondary.title,
                 f"Using '{winner.title}' (most recent)")
    if primary.description != secondary.description:
        conflict(ConflictType.GOAL_METADATA, "description", primary.description[:50], secondary.description[:50],
                 "Using description from most recent version")
    if primary.is_active != secondary.is_active:
        conflict(ConflictType.GOAL_METADATA, "is_active", str(primary.is_active), str(secondary.is_active),
                 f"Using '{winner.is_active}' (most recent)")

    questions: dict[str, Question] = {question.id: question for question in primary.questions}
    for question in secondary.questions:
        existing = questions.get(question.id)
        if existing is None:
            questions[question.id] = question
            continue
        if existing.text != question.text:
            conflict(ConflictType.QUESTION_DIVERGENCE, "question.text", existing.text, question.text,
                     "Manual resolution required")
        if existing.response_type is not question.response_type:
            conflict(ConflictType.QUESTION_DIVERGENCE, "question.response_type",
                     existing.response_type.value, question.response_type.value, "Manual resolution required")

    points: dict[str, DataPoint] = {point.id: point for point in primary.data_points}
    for point in secondary.data_points:
        existing = points.get(point.id)
        if existing is None:
            points[point.id] = point
            continue
        if not _same_answer(existing, point):
            newer = existing if _utc(existing.timestamp) > _utc(point.timestamp) else point
            points[point.id] = newer
            conflict(ConflictType.DATA_POINT_COLLISION, "data_point",
                     f"timestamp: {existing.timestamp.isoformat()}", f"timestamp: {point.timestamp.isoformat()}",
                     f"Using entry with timestamp {newer.timestamp.isoformat()}")

    merged = winner.model_copy(update={
        "id": primary.id,
        "created_at": min(primary.created_at, secondary.created_at, key=_utc),
        "updated_at": max(primary.updated_at, secondary.updated_at, key=_utc),
        "questions": list(questions.values()),
        "data_points": sorted(points.values(), key=lambda p: _utc(p.timestamp)),
    })
    return merged, conflicts


def _same_answer(first: DataPoint, second: DataPoint) -> bool:
    return (
        _utc(first.timestamp) == _utc(second.timestamp)
        and first.numeric_value == second.numeric_value
        and first.text_value == second.text_value
        and first.bool_value == second.bool_value
        and first.selected_options == second.selected_options
    )


def _report(conflicts: list[MergeConflict], now: datetime) -> MergeConflictReport:
    def count(kind: ConflictType) -> int:
        return sum(1 for c in conflicts if c.type is kind)

    return MergeConflictReport(
        timestamp=now,
        conflicts=conflicts,
        summary=MergeSummary(
            total_conflicts=len(conflicts),
            goal_conflicts=count(ConflictType.GOAL_METADATA),
            question_conflicts=count(ConflictType.QUESTION_DIVERGENCE),
            data_point_conflicts=count(ConflictType.DATA_POINT_COLLISION),
            can_proceed_without_conflicting_data=True,
        ),
    )


def _utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
