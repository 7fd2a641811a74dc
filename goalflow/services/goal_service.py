"""Goal service - business logic for committing and managing goals."""
import logging
from datetime import datetime, timezone
from typing import Optional

from goalflow.models.goal import Goal, GoalDraft, GoalUpdate, TrackingCategory
from goalflow.models.question import Question, QuestionDraft
from goalflow.models.schedule import Schedule
from goalflow.services.goal_drafts import GoalDraftError, validate_draft
from goalflow.services.notification_scheduler import NotificationScheduling
from goalflow.services.schedule_conflicts import ReminderConflictChecker
from goalflow.utils.ids import to_object_id
from goalflow.utils.text import dedupe_options, trimmed


logger = logging.getLogger(__name__)

ACTIVE_QUESTION_REQUIRED = "Keep at least one question active before saving."


class GoalService:
    """Service for handling goal operations."""

    def __init__(self, db, scheduler: Optional[NotificationScheduling] = None):
        """Initialize service with database connection and reminder scheduler."""
        self.db = db
        self.goals = db["goals"]
        self.scheduler = scheduler

    def _doc_to_goal(self, doc: dict) -> Goal:
        """Convert database document to Goal model."""
        return Goal(**{**doc, "_id": str(doc["_id"])})

    async def create_goal(self, draft: GoalDraft) -> Goal:
        """
        Commit a goal draft.

        The goal, its schedule and its questions are one document, so the
        single insert either stores all of it or nothing.

        Args:
            draft: Completed goal draft

        Returns:
            Created goal object

        Raises:
            GoalDraftError: If the draft is incomplete
            PyMongoError: If the insert fails
        """
        validate_draft(draft)

        now = datetime.now(timezone.utc)
        goal_doc = {
            **_draft_fields(draft),
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }

        result = await self.goals.insert_one(goal_doc)
        goal_doc["_id"] = result.inserted_id
        goal = self._doc_to_goal(goal_doc)

        logger.info(
            "Goal created",
            extra={"goal_id": goal.id, "category": goal.category.value, "questions": len(goal.questions)},
        )
        await self._schedule(goal)
        return goal

    async def list_goals(
        self,
        active: Optional[bool] = None,
        category: Optional[TrackingCategory] = None,
    ) -> list[Goal]:
        """
        List goals with optional filtering.

        Args:
            active: Optional active flag filter
            category: Optional category filter

        Returns:
            List of goals, oldest first
        """
        query = {}
        if active is not None:
            query["is_active"] = active
        if category is not None:
            query["category"] = category.value

        cursor = self.goals.find(query).sort("created_at", 1)
        goal_docs = await cursor.to_list(length=None)
        return [self._doc_to_goal(doc) for doc in goal_docs]

    async def get_goal(self, goal_id: str) -> Goal:
        """
        Get a single goal by ID.

        Raises:
            ValueError: If goal not found or invalid ID format
        """
        goal_doc = await self.goals.find_one({"_id": to_object_id(goal_id)})
        if not goal_doc:
            raise ValueError("Goal not found")
        return self._doc_to_goal(goal_doc)

    async def update_goal(self, goal_id: str, goal_update: GoalUpdate) -> Goal:
        """
        Update goal metadata.

        Args:
            goal_id: Goal ID
            goal_update: Update data

        Returns:
            Updated goal

        Raises:
            ValueError: If goal not found
        """
        update_doc = {"updated_at": datetime.now(timezone.utc)}
        for field, value in goal_update.model_dump(exclude_none=True).items():
            update_doc[field] = value.value if isinstance(value, TrackingCategory) else value
        if "title" in update_doc:
            update_doc["title"] = trimmed(update_doc["title"])
            if not update_doc["title"]:
                raise GoalDraftError("Add a goal title to continue")

        updated_doc = await self.goals.find_one_and_update(
            {"_id": to_object_id(goal_id)},
            {"$set": update_doc},
            return_document=True,
        )
        if not updated_doc:
            raise ValueError("Goal not found")

        goal = self._doc_to_goal(updated_doc)
        if goal_update.is_active is not None:
            await self._reschedule(goal)
        return goal

    async def update_goal_from_draft(self, goal_id: str, draft: GoalDraft) -> Goal:
        """
        Save an edit draft over an existing goal.

        Question identities carried by the draft are kept.

        Raises:
            GoalDraftError: If the draft is incomplete or has no active question
            ValueError: If goal not found
        """
        validate_draft(draft)
        if not any(q.is_active for q in draft.question_drafts if q.has_content):
            raise GoalDraftError(ACTIVE_QUESTION_REQUIRED)

        update_doc = {**_draft_fields(draft), "updated_at": datetime.now(timezone.utc)}
        updated_doc = await self.goals.find_one_and_update(
            {"_id": to_object_id(goal_id)},
            {"$set": update_doc},
            return_document=True,
        )
        if not updated_doc:
            raise ValueError("Goal not found")

        goal = self._doc_to_goal(updated_doc)
        logger.info("Goal updated from draft", extra={"goal_id": goal.id})
        await self._reschedule(goal)
        return goal

    async def touch(self, goal_id: str) -> None:
        """Bump a goal's updated_at."""
        await self.goals.update_one(
            {"_id": to_object_id(goal_id)},
            {"$set": {"updated_at": datetime.now(timezone.utc)}},
        )

    async def reminder_conflict_checker(self, exclude_goal_id: Optional[str] = None) -> ReminderConflictChecker:
        """Conflict checker over every other active goal."""
        goals = await self.list_goals(active=True)
        return ReminderConflictChecker(goals, exclude_goal_id=exclude_goal_id)

    async def _schedule(self, goal: Goal) -> None:
        if self.scheduler is None:
            return
        try:
            await self.scheduler.schedule_notifications(goal)
        except Exception:
            logger.exception("Failed to schedule reminders", extra={"goal_id": goal.id})

    async def _reschedule(self, goal: Goal) -> None:
        if self.scheduler is None:
            return
        if goal.is_active:
            await self._schedule(goal)
            return
        try:
            await self.scheduler.cancel_notifications(goal.id)
        except Exception:
            logger.exception("Failed to cancel reminders", extra={"goal_id": goal.id})


def _draft_fields(draft: GoalDraft) -> dict:
    """Document fields derived from a validated draft."""
    description = "\n\n".join(
        part for part in (trimmed(draft.motivation), trimmed(draft.celebration_message)) if part
    )
    custom_label = draft.normalized_custom_category_label if draft.has_custom_category else None
    schedule = Schedule(**draft.schedule.model_dump())
    schedule.times = schedule.sorted_times
    return {
        "title": trimmed(draft.title),
        "description": description,
        "category": draft.category.value,
        "custom_category_label": custom_label,
        "schedule": schedule.model_dump(mode="json"),
        "questions": [
            _question_from_draft(question).model_dump(mode="json")
            for question in draft.question_drafts
            if question.has_content
        ],
    }


def _question_from_draft(question: QuestionDraft) -> Question:
    return Question(
        id=str(question.id),
        text=question.trimmed_text,
        response_type=question.response_type,
        is_active=question.is_active,
        options=dedupe_options(question.options) if question.response_type.uses_options else None,
        validation_rules=question.validation_rules,
    )
