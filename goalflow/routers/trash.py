"""Trash router - API endpoints for restoring and purging deleted goals."""
from fastapi import APIRouter, Depends, HTTPException, Query

from goalflow.dependencies import get_deletion_service
from goalflow.models.goal import Goal
from goalflow.models.trash import GoalTrashItem
from goalflow.services.trash_service import GoalAlreadyExistsError, GoalDeletionService


router = APIRouter(prefix="/trash", tags=["trash"])


@router.get("", response_model=list[GoalTrashItem])
async def list_trash(service: GoalDeletionService = Depends(get_deletion_service)):
    """List trashed goals, newest first."""
    return await service.list_trash()


@router.post("/purge")
async def purge_trash(
    older_than_days: int = Query(30, ge=0, description="Retention window in days"),
    service: GoalDeletionService = Depends(get_deletion_service),
):
    """Remove trash items older than the retention window."""
    purged = await service.purge_old_trash_items(older_than_days=older_than_days)
    return {"purged_count": purged}


@router.post("/{item_id}/restore", response_model=Goal)
async def restore_goal(
    item_id: str,
    reactivate: bool = Query(True, description="Mark the restored goal active"),
    service: GoalDeletionService = Depends(get_deletion_service),
):
    """
    Restore a goal and its data points.

    - Returns 409 if a goal with the same ID already exists
    - Returns 404 if trash item not found
    """
    try:
        return await service.restore_from_trash(item_id, reactivate=reactivate)
    except GoalAlreadyExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{item_id}")
async def permanently_delete(
    item_id: str,
    service: GoalDeletionService = Depends(get_deletion_service),
):
    """Delete a trash item for good."""
    try:
        return await service.permanently_delete(item_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
