"""Notification scheduling for goal reminders."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

from goalflow.models.goal import Goal
from goalflow.models.notification import NotificationRequest, NotificationTrigger, TriggerKind
from goalflow.models.schedule import MIN_INTERVAL_DAYS, Frequency, Schedule, Weekday


logger = logging.getLogger(__name__)

DEFAULT_BODY = "How is your progress going today?"
CUSTOM_OCCURRENCE_LIMIT = 12


class NotificationScheduling(Protocol):
    """What goal and trash services need from a scheduler."""

    async def schedule_notifications(self, goal: Goal) -> None:
        ...

    async def cancel_notifications(self, goal_id: str) -> None:
        ...


def build_notification_requests(goal: Goal, now: Optional[datetime] = None) -> list[NotificationRequest]:
    """
    Plan reminder requests for a goal.

    Args:
        goal: Goal whose schedule drives the plan
        now: Reference instant for one-off reminders (defaults to now)

    Returns:
        Requests with identifiers of the form ``goal-<id>-<kind>-...``
    """
    schedule = goal.schedule
    if not schedule.times:
        return []

    now = now or datetime.now(timezone.utc)
    prefix = f"goal-{goal.id}"
    tz = schedule.timezone
    times = schedule.sorted_times
    triggers: list[tuple[str, NotificationTrigger]] = []

    if schedule.frequency is Frequency.DAILY:
        for index, at in enumerate(times):
            triggers.append((
                f"{prefix}-daily-{index}",
                NotificationTrigger(kind=TriggerKind.CALENDAR, repeats=True, timezone=tz,
                                    hour=at.hour, minute=at.minute),
            ))
    elif schedule.frequency is Frequency.WEEKLY:
        weekdays = schedule.normalized_weekdays or list(Weekday)
        for weekday in weekdays:
            for index, at in enumerate(times):
                triggers.append((
                    f"{prefix}-weekly-{weekday.value}-{index}",
                    NotificationTrigger(kind=TriggerKind.CALENDAR, repeats=True, timezone=tz,
                                        hour=at.hour, minute=at.minute, weekday=weekday),
                ))
    elif schedule.frequency is Frequency.MONTHLY:
        for index, at in enumerate(times):
            triggers.append((
                f"{prefix}-monthly-{index}",
                NotificationTrigger(kind=TriggerKind.CALENDAR, repeats=True, timezone=tz,
                                    hour=at.hour, minute=at.minute, day=schedule.start_date.day),
            ))
    elif schedule.frequency is Frequency.ONCE:
        for index, fire_at in enumerate(_once_occurrences(schedule, now)):
            triggers.append((f"{prefix}-once-{index}", _date_trigger(fire_at, tz)))
    elif schedule.frequency is Frequency.CUSTOM:
        for index, fire_at in enumerate(_custom_occurrences(schedule, now)):
            triggers.append((f"{prefix}-custom-{index}", _date_trigger(fire_at, tz)))

    question = next(iter(goal.active_questions), None)
    return [
        NotificationRequest(
            id=identifier,
            goal_id=goal.id,
            question_id=question.id if question else None,
            title=goal.title,
            body=question.text if question else DEFAULT_BODY,
            trigger=trigger,
        )
        for identifier, trigger in triggers
    ]


def _date_trigger(fire_at: datetime, tz: str) -> NotificationTrigger:
    return NotificationTrigger(kind=TriggerKind.DATE, repeats=False, timezone=tz, fire_at=fire_at)


def _once_occurrences(schedule: Schedule, now: datetime) -> list[datetime]:
    zone = schedule.zone
    occurrences = [at.on(schedule.start_date, zone) for at in schedule.times]
    return sorted(when for when in occurrences if when >= now)


def _custom_occurrences(schedule: Schedule, now: datetime, limit: int = CUSTOM_OCCURRENCE_LIMIT) -> list[datetime]:
    interval = schedule.interval_day_count
    if interval is None or interval < MIN_INTERVAL_DAYS:
        return []

    zone = schedule.zone
    today = now.astimezone(zone).date()
    cursor = max(schedule.start_date, today)
    # Align to the schedule's own rhythm
    remainder = (cursor - schedule.start_date).days % interval
    if remainder:
        cursor += timedelta(days=interval - remainder)

    occurrences: list[datetime] = []
    while len(occurrences) < limit:
        for at in schedule.sorted_times:
            when = at.on(cursor, zone)
            if when >= now:
                occurrences.append(when)
        cursor += timedelta(days=interval)
    return sorted(occurrences)[:limit]


class NotificationScheduler:
    """Stores planned reminders in the ``notifications`` collection."""

    def __init__(self, db):
        """Initialize scheduler with database connection."""
        self.db = db
        self.notifications = db["notifications"]

    async def schedule_notifications(self, goal: Goal) -> None:
        """Replace the goal's pending reminders with a fresh plan."""
        await self.cancel_notifications(goal.id)
        if not goal.is_active:
            return

        requests = build_notification_requests(goal)
        if not requests:
            logger.info("No reminders to schedule", extra={"goal_id": goal.id})
            return

        await self.notifications.insert_many([
            {"_id": request.id, **request.model_dump(mode="json", exclude={"id"})}
            for request in requests
        ])
        logger.info(
            "Scheduled reminders",
            extra={"goal_id": goal.id, "count": len(requests)},
        )

    async def cancel_notifications(self, goal_id: str) -> None:
        await self.notifications.delete_many({"goal_id": goal_id})

    async def list_notifications(self, goal_id: str) -> list[NotificationRequest]:
        cursor = self.notifications.find({"goal_id": goal_id})
        docs = await cursor.to_list(length=None)
        return [NotificationRequest(**doc) for doc in docs]
