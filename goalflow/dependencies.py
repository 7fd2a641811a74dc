"""FastAPI dependencies that build services per request."""
from fastapi import Depends

from goalflow.config import settings
from goalflow.database import get_database
from goalflow.services.backup_service import BackupService
from goalflow.services.data_entry_service import DataEntryService
from goalflow.services.goal_service import GoalService
from goalflow.services.history_service import GoalHistoryService
from goalflow.services.inference_service import GoalInferenceService
from goalflow.services.notification_scheduler import NotificationScheduler
from goalflow.services.suggestion_service import GoalSuggestionService
from goalflow.services.trash_service import GoalDeletionService


async def get_goal_service(db=Depends(get_database)) -> GoalService:
    return GoalService(db, scheduler=NotificationScheduler(db))


async def get_deletion_service(db=Depends(get_database)) -> GoalDeletionService:
    return GoalDeletionService(
        db,
        scheduler=NotificationScheduler(db),
        retention_days=settings.trash_retention_days,
    )


async def get_data_entry_service(db=Depends(get_database)) -> DataEntryService:
    return DataEntryService(db)


async def get_inference_service() -> GoalInferenceService:
    return GoalInferenceService()


async def get_suggestion_service() -> GoalSuggestionService:
    return GoalSuggestionService()


async def get_notification_scheduler(db=Depends(get_database)) -> NotificationScheduler:
    return NotificationScheduler(db)


async def get_history_service(db=Depends(get_database)) -> GoalHistoryService:
    return GoalHistoryService(db)


async def get_backup_service(db=Depends(get_database)) -> BackupService:
    return BackupService(db, scheduler=NotificationScheduler(db))
