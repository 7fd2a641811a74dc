"""Goal deletion service - soft delete, restore and purge of goals."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from pymongo.errors import PyMongoError

from goalflow.config import settings
from goalflow.models.data_point import DataPoint
from goalflow.models.goal import Goal
from goalflow.models.trash import GoalSnapshot, GoalTrashItem
from goalflow.services.notification_scheduler import NotificationScheduling
from goalflow.utils.ids import to_object_id


logger = logging.getLogger(__name__)


class GoalAlreadyExistsError(ValueError):
    """Restoring would overwrite a goal that is already present."""

    def __init__(self, goal_id: str):
        super().__init__(f"A goal with ID {goal_id} already exists")
        self.goal_id = goal_id


class GoalDeletionService:
    """Moves goals to the trash and back."""

    def __init__(
        self,
        db,
        scheduler: Optional[NotificationScheduling] = None,
        retention_days: int = settings.trash_retention_days,
    ):
        """Initialize service with database connection."""
        self.db = db
        self.goals = db["goals"]
        self.data_points = db["data_points"]
        self.trash = db["goal_trash"]
        self.scheduler = scheduler
        self.retention_days = retention_days

    def _doc_to_trash_item(self, doc: dict) -> GoalTrashItem:
        return GoalTrashItem(**{**doc, "_id": str(doc["_id"])})

    async def move_to_trash(self, goal_id: str, user_note: Optional[str] = None) -> GoalTrashItem:
        """
        Soft delete a goal.

        The goal and its data points are serialized into a trash item, its
        reminders are cancelled and the live documents are removed.

        Args:
            goal_id: Goal ID
            user_note: Optional note kept with the trash item

        Returns:
            The new trash item

        Raises:
            ValueError: If goal not found
        """
        object_id = to_object_id(goal_id)
        goal_doc = await self.goals.find_one({"_id": object_id})
        if not goal_doc:
            raise ValueError("Goal not found")

        now = datetime.now(timezone.utc)
        goal = Goal(**{**goal_doc, "_id": str(goal_doc["_id"]), "updated_at": now})

        cursor = self.data_points.find({"goal_id": goal.id}).sort("timestamp", 1)
        point_docs = await cursor.to_list(length=None)
        data_points = [DataPoint(**{**doc, "_id": str(doc["_id"])}) for doc in point_docs]

        snapshot = GoalSnapshot(goal=goal, data_points=data_points)
        trash_doc = {
            "goal_snapshot": snapshot.model_dump_json(),
            "original_goal_id": goal.id,
            "goal_title": goal.title,
            "deleted_at": now,
            "user_note": user_note,
        }
        result = await self.trash.insert_one(trash_doc)
        trash_doc["_id"] = result.inserted_id

        await self._cancel(goal.id)
        await self.goals.delete_one({"_id": object_id})
        await self.data_points.delete_many({"goal_id": goal.id})

        item = self._doc_to_trash_item(trash_doc)
        logger.info(
            "Goal moved to trash",
            extra={"goal_id": goal.id, "trash_item_id": item.id, "data_points": len(data_points)},
        )
        return item

    async def restore_from_trash(self, item_id: str, reactivate: bool = True) -> Goal:
        """
        Rebuild a goal and its data points from a trash item.

        Args:
            item_id: Trash item ID
            reactivate: Mark the restored goal active regardless of its old state

        Returns:
            The restored goal

        Raises:
            ValueError: If trash item not found
            GoalAlreadyExistsError: If a goal with the snapshot's ID exists
            PyMongoError: If a write fails; the partial restore is undone
        """
        item = await self._get_item(item_id)
        snapshot = item.snapshot()
        goal = snapshot.goal
        goal_object_id = to_object_id(goal.id)

        if await self.goals.find_one({"_id": goal_object_id}):
            raise GoalAlreadyExistsError(goal.id)

        goal.is_active = True if reactivate else goal.is_active
        goal.updated_at = datetime.now(timezone.utc)
        await self.goals.insert_one({
            "_id": goal_object_id,
            **goal.model_dump(mode="json", exclude={"id", "created_at", "updated_at"}),
            "created_at": goal.created_at,
            "updated_at": goal.updated_at,
        })

        point_ids = [to_object_id(point.id, kind="data point") for point in snapshot.data_points]
        try:
            if snapshot.data_points:
                await self.data_points.insert_many([
                    {
                        "_id": point_id,
                        **point.model_dump(mode="json", exclude={"id", "timestamp"}),
                        "timestamp": point.timestamp,
                    }
                    for point_id, point in zip(point_ids, snapshot.data_points)
                ])
            await self.trash.delete_one({"_id": to_object_id(item.id, kind="trash item")})
        except PyMongoError:
            # Leave the trash item as the only copy
            logger.exception("Restore failed, rolling back", extra={"goal_id": goal.id, "trash_item_id": item.id})
            await self.data_points.delete_many({"_id": {"$in": point_ids}})
            await self.goals.delete_one({"_id": goal_object_id})
            raise

        if goal.is_active and self.scheduler is not None:
            try:
                await self.scheduler.schedule_notifications(goal)
            except Exception:
                logger.exception("Failed to schedule reminders", extra={"goal_id": goal.id})

        logger.info("Goal restored from trash", extra={"goal_id": goal.id, "reactivated": reactivate})
        return goal

    async def permanently_delete(self, item_id: str) -> dict:
        """
        Delete a trash item for good.

        Returns:
            Dictionary with deleted_count

        Raises:
            ValueError: If trash item not found
        """
        item = await self._get_item(item_id)
        result = await self.trash.delete_one({"_id": to_object_id(item.id, kind="trash item")})
        logger.info("Trash item permanently deleted", extra={"trash_item_id": item.id, "goal_title": item.goal_title})
        return {"deleted_count": result.deleted_count}

    async def purge_old_trash_items(self, older_than_days: Optional[int] = None) -> int:
        """
        Remove trash items past the retention window.

        Safe to call repeatedly; a second call finds nothing left to remove.

        Returns:
            Number of items removed
        """
        days = self.retention_days if older_than_days is None else older_than_days
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        result = await self.trash.delete_many({"deleted_at": {"$lt": cutoff}})
        if result.deleted_count:
            logger.info("Purged old trash items", extra={"count": result.deleted_count, "older_than_days": days})
        return result.deleted_count

    async def list_trash(self) -> list[GoalTrashItem]:
        """List trash items, newest first."""
        cursor = self.trash.find({}).sort("deleted_at", -1)
        docs = await cursor.to_list(length=None)
        return [self._doc_to_trash_item(doc) for doc in docs]

    async def _get_item(self, item_id: str) -> GoalTrashItem:
        doc = await self.trash.find_one({"_id": to_object_id(item_id, kind="trash item")})
        if not doc:
            raise ValueError("Trash item not found")
        return self._doc_to_trash_item(doc)

    async def _cancel(self, goal_id: str) -> None:
        if self.scheduler is None:
            return
        try:
            await self.scheduler.cancel_notifications(goal_id)
        except Exception:
            logger.exception("Failed to cancel reminders", extra={"goal_id": goal_id})
