"""FastAPI application entry point."""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from goalflow.config import settings
from goalflow.database import database
from goalflow.logging_config import setup_logging
from goalflow.routers import assist, backup, goals, trash
from goalflow.services.trash_service import GoalDeletionService


logger = logging.getLogger(__name__)


async def purge_trash_on_startup(db) -> None:
    """Purge expired trash items; failures are only logged."""
    try:
        await GoalDeletionService(db).purge_old_trash_items(settings.trash_retention_days)
    except Exception:
        logger.exception("Trash purge failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    # Startup
    setup_logging(settings.log_level)
    await database.connect()
    purge_task = asyncio.create_task(purge_trash_on_startup(database.db))
    yield
    # Shutdown
    if not purge_task.done():
        purge_task.cancel()
    await database.disconnect()


app = FastAPI(
    title="Goal Flow API",
    description="Backend API for goal creation, reminders and check-ins",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(goals.router)
app.include_router(trash.router)
app.include_router(assist.router)
app.include_router(backup.router)


@app.get("/")
async def root():
    """Root endpoint - health check."""
    return {"status": "ok", "message": "Goal Flow API"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
