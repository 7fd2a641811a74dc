"""Maintenance script: purge trash items past the retention window.

Usage:
    python scripts/purge_trash.py \\
        --mongodb-url mongodb://localhost:27017 \\
        --older-than-days 30
"""
import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from motor.motor_asyncio import AsyncIOMotorClient
from goalflow.config import settings
from goalflow.services.trash_service import GoalDeletionService


async def purge_trash(mongodb_url: str, db_name: str, older_than_days: int, dry_run: bool):
    """Purge (or just count) trash items older than the given age."""
    client = AsyncIOMotorClient(mongodb_url)
    db = client[db_name]

    try:
        if dry_run:
            cutoff = datetime.now(timezone.utc) - timedelta(days=older_than_days)
            count = await db["goal_trash"].count_documents({"deleted_at": {"$lt": cutoff}})
            print(f"Would purge {count} trash items older than {older_than_days} days")
            return

        purged = await GoalDeletionService(db).purge_old_trash_items(older_than_days)
        print(f"Purged {purged} trash items older than {older_than_days} days")
    finally:
        client.close()


def main():
    parser = argparse.ArgumentParser(description="Purge expired goal trash items")
    parser.add_argument("--mongodb-url", default=settings.mongodb_url, help="MongoDB connection URL")
    parser.add_argument("--db-name", default=settings.mongodb_db_name, help="Database name")
    parser.add_argument(
        "--older-than-days",
        type=int,
        default=settings.trash_retention_days,
        help="Retention window in days",
    )
    parser.add_argument("--dry-run", action="store_true", help="Only count matching items")
    args = parser.parse_args()

    if args.older_than_days < 0:
        parser.error("--older-than-days must not be negative")

    asyncio.run(purge_trash(args.mongodb_url, args.db_name, args.older_than_days, args.dry_run))


if __name__ == "__main__":
    main()
