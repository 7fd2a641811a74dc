"""Goal router - API endpoints for committing, editing and checking in on goals."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from goalflow.dependencies import (
    get_data_entry_service,
    get_deletion_service,
    get_goal_service,
    get_history_service,
    get_notification_scheduler,
)
from goalflow.models.data_point import CheckInCreate, DataPoint
from goalflow.models.goal import Goal, GoalDraft, GoalUpdate, TrackingCategory
from goalflow.models.history import DaySection, GoalTrends, TrendInterval
from goalflow.models.notification import NotificationRequest
from goalflow.models.schedule import ScheduleDraft
from goalflow.models.trash import GoalTrashItem
from goalflow.services.data_entry_service import CheckInError, DataEntryService
from goalflow.services.goal_drafts import GoalDraftError, draft_from_goal
from goalflow.services.goal_service import GoalService
from goalflow.services.history_service import GoalHistoryService
from goalflow.services.notification_scheduler import NotificationScheduler
from goalflow.services.trash_service import GoalDeletionService


router = APIRouter(prefix="/goals", tags=["goals"])


class ConflictReport(BaseModel):
    """Reminder conflict check result."""

    conflict: Optional[str] = None


@router.post("", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def create_goal(
    draft: GoalDraft,
    service: GoalService = Depends(get_goal_service),
):
    """
    Commit a goal draft.

    - Returns 400 with the first unmet requirement if the draft is incomplete
    - Schedules reminders for the new goal
    """
    try:
        return await service.create_goal(draft)
    except GoalDraftError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=list[Goal])
async def list_goals(
    active: Optional[bool] = Query(None, description="Filter by active flag"),
    category: Optional[TrackingCategory] = Query(None, description="Filter by category"),
    service: GoalService = Depends(get_goal_service),
):
    """List goals, optionally filtered by active flag and category."""
    return await service.list_goals(active=active, category=category)


@router.post("/conflicts", response_model=ConflictReport)
async def check_conflicts(
    schedule: ScheduleDraft,
    exclude_goal_id: Optional[str] = Query(None, description="Goal being edited"),
    service: GoalService = Depends(get_goal_service),
):
    """Describe the first reminder that lands too close to another goal's."""
    checker = await service.reminder_conflict_checker(exclude_goal_id=exclude_goal_id)
    return ConflictReport(conflict=checker.describe(schedule))


@router.get("/{goal_id}", response_model=Goal)
async def get_goal(
    goal_id: str,
    service: GoalService = Depends(get_goal_service),
):
    """
    Get a single goal.

    - Returns 404 if goal not found
    """
    try:
        return await service.get_goal(goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{goal_id}/draft", response_model=GoalDraft)
async def get_goal_draft(
    goal_id: str,
    service: GoalService = Depends(get_goal_service),
):
    """Load a goal as an editable draft."""
    try:
        goal = await service.get_goal(goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return draft_from_goal(goal)


@router.put("/{goal_id}", response_model=Goal)
async def save_goal_draft(
    goal_id: str,
    draft: GoalDraft,
    service: GoalService = Depends(get_goal_service),
):
    """
    Save an edit draft over an existing goal.

    - Returns 400 if the draft is incomplete or has no active question
    - Returns 404 if goal not found
    """
    try:
        return await service.update_goal_from_draft(goal_id, draft)
    except GoalDraftError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{goal_id}", response_model=Goal)
async def update_goal(
    goal_id: str,
    goal_update: GoalUpdate,
    service: GoalService = Depends(get_goal_service),
):
    """
    Update goal metadata.

    - Deactivating a goal cancels its reminders
    - Returns 404 if goal not found
    """
    try:
        return await service.update_goal(goal_id, goal_update)
    except GoalDraftError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{goal_id}", response_model=GoalTrashItem)
async def delete_goal(
    goal_id: str,
    note: Optional[str] = Query(None, description="Note kept with the trash item"),
    service: GoalDeletionService = Depends(get_deletion_service),
):
    """
    Move a goal to the trash.

    - The goal and its data points can be restored for 30 days
    - Returns 404 if goal not found
    """
    try:
        return await service.move_to_trash(goal_id, user_note=note)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{goal_id}/entries", response_model=list[DataPoint], status_code=status.HTTP_201_CREATED)
async def record_check_in(
    goal_id: str,
    check_in: CheckInCreate,
    service: DataEntryService = Depends(get_data_entry_service),
):
    """
    Record a check-in.

    - A second answer on the same day replaces the first
    - Returns 400 if an answer does not fit its question
    """
    try:
        return await service.record_check_in(goal_id, check_in)
    except CheckInError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{goal_id}/entries", response_model=list[DataPoint])
async def list_entries(
    goal_id: str,
    question_id: Optional[str] = Query(None, description="Filter by question"),
    service: DataEntryService = Depends(get_data_entry_service),
):
    """List a goal's data points, oldest first."""
    return await service.list_data_points(goal_id, question_id=question_id)


@router.get("/{goal_id}/reminders", response_model=list[NotificationRequest])
async def list_reminders(
    goal_id: str,
    scheduler: NotificationScheduler = Depends(get_notification_scheduler),
):
    """List the reminders currently planned for a goal."""
    return await scheduler.list_notifications(goal_id)


@router.get("/{goal_id}/history", response_model=list[DaySection])
async def get_history(
    goal_id: str,
    service: GoalHistoryService = Depends(get_history_service),
):
    """
    List a goal's answers grouped by day, newest first.

    - Returns 404 if goal not found
    """
    try:
        return await service.history(goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{goal_id}/trends", response_model=GoalTrends)
async def get_trends(
    goal_id: str,
    interval: Optional[TrendInterval] = Query(None, description="Aggregation interval"),
    service: GoalHistoryService = Depends(get_history_service),
):
    """
    Daily averages, interval aggregates and streaks for a goal.

    - Without an interval, the widest one with enough data is used
    - Returns 404 if goal not found
    """
    try:
        return await service.trends(goal_id, interval=interval)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
