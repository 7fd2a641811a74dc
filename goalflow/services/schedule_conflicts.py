"""Cross-goal reminder conflict detection."""
from typing import Iterable, Optional, Protocol

from goalflow.config import settings
from goalflow.models.goal import Goal
from goalflow.models.schedule import Frequency, ScheduleBase, ScheduleTime


class ConflictChecker(Protocol):
    """Anything that can compare a schedule draft against other goals."""

    def describe(self, schedule: ScheduleBase) -> Optional[str]:
        ...

    def occupied_times(self, schedule: ScheduleBase) -> list[ScheduleTime]:
        ...


class ReminderConflictChecker:
    """Flags reminder times that land too close to another goal's reminders."""

    def __init__(
        self,
        goals: Iterable[Goal],
        spacing_minutes: int = settings.reminder_spacing_minutes,
        exclude_goal_id: Optional[str] = None,
    ):
        self.goals = [
            goal for goal in goals
            if goal.is_active and goal.id != exclude_goal_id
        ]
        self.spacing_minutes = spacing_minutes

    def describe(self, schedule: ScheduleBase) -> Optional[str]:
        """
        Describe the first conflict found, or None.

        Example message: "9:02 AM is within 5 minutes of 'Hydration' at 9:00 AM"
        """
        for goal in self.goals:
            if not _days_overlap(schedule, goal.schedule):
                continue
            for mine in schedule.sorted_times:
                for theirs in goal.schedule.sorted_times:
                    if mine.is_within(self.spacing_minutes, of=theirs):
                        return (
                            f"{mine.formatted()} is within {self.spacing_minutes} minutes "
                            f"of '{goal.title}' at {theirs.formatted()}"
                        )
        return None

    def occupied_times(self, schedule: ScheduleBase) -> list[ScheduleTime]:
        occupied: list[ScheduleTime] = []
        for goal in self.goals:
            if _days_overlap(schedule, goal.schedule):
                occupied.extend(goal.schedule.times)
        return occupied


def _days_overlap(first: ScheduleBase, second: ScheduleBase) -> bool:
    # Only two weekly schedules with explicit, disjoint weekdays can never meet.
    if first.frequency is Frequency.WEEKLY and second.frequency is Frequency.WEEKLY:
        if first.selected_weekdays and second.selected_weekdays:
            return bool(set(first.selected_weekdays) & set(second.selected_weekdays))
    return True
