"""Backup router - API endpoints for exporting, importing and merging backups."""
from fastapi import APIRouter, Depends, HTTPException, Query

from goalflow.dependencies import get_backup_service
from goalflow.models.backup import BackupPayload, ImportSummary, MergeRequest, MergeResult
from goalflow.services.backup_service import BackupService, merge_backups


router = APIRouter(prefix="/backup", tags=["backup"])


@router.get("", response_model=BackupPayload)
async def export_backup(service: BackupService = Depends(get_backup_service)):
    """Export every goal with its data points."""
    return await service.export_backup()


@router.post("/import", response_model=ImportSummary)
async def import_backup(
    payload: BackupPayload,
    replace_existing: bool = Query(True, description="Delete current goals before importing"),
    service: BackupService = Depends(get_backup_service),
):
    """
    Import a backup.

    - Returns 400 if the backup is empty or from a newer version
    """
    try:
        return await service.import_backup(payload, replace_existing=replace_existing)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/merge", response_model=MergeResult)
async def merge(request: MergeRequest):
    """Merge two backups; conflicts are reported, not resolved."""
    return merge_backups(request.primary, request.secondary, strategy=request.strategy)
