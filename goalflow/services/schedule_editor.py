"""Reminder schedule editing for goal drafts."""
from datetime import date, datetime, time
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from goalflow.config import settings
from goalflow.models.schedule import (
    MAX_INTERVAL_DAYS,
    MIN_INTERVAL_DAYS,
    MINUTES_PER_DAY,
    Frequency,
    ScheduleBase,
    ScheduleDraft,
    ScheduleTime,
    Weekday,
)
from goalflow.models.suggestion import CadencePreset
from goalflow.services.catalog import RECOMMENDED_TIMES
from goalflow.services.schedule_conflicts import ConflictChecker


DEFAULT_INTERVAL_DAYS = 3


class ScheduleEditor:
    """
    Edits the reminder times and cadence of a schedule draft.

    The editor mutates the draft it is given, so a flow can hand it
    ``draft.schedule`` and keep reading the draft directly.
    """

    def __init__(
        self,
        schedule: Optional[ScheduleDraft] = None,
        reminder_limit: Optional[int] = None,
        spacing_minutes: int = settings.reminder_spacing_minutes,
        conflict_checker: Optional[ConflictChecker] = None,
    ):
        self.schedule = schedule if schedule is not None else ScheduleDraft()
        self.reminder_limit = reminder_limit
        self.spacing_minutes = spacing_minutes
        self.conflict_checker = conflict_checker
        self.schedule.times = self.schedule.sorted_times

    @property
    def times(self) -> list[ScheduleTime]:
        return list(self.schedule.times)

    @property
    def is_full(self) -> bool:
        return self.reminder_limit is not None and len(self.schedule.times) >= self.reminder_limit

    def add_schedule_time(self, candidate: ScheduleTime | time | datetime) -> bool:
        """
        Add a reminder time.

        Args:
            candidate: Time of day to add

        Returns:
            False (leaving the schedule untouched) when the cap is reached or
            the candidate is within the spacing window of an existing time;
            True once the time is inserted in chronological order
        """
        candidate = _as_schedule_time(candidate)
        if self.is_full:
            return False
        if self._collides(candidate, self.schedule.times):
            return False
        self.schedule.times = sorted(
            [*self.schedule.times, candidate],
            key=lambda t: t.total_minutes,
        )
        return True

    def remove_schedule_time(self, target: ScheduleTime | time | datetime) -> None:
        target = _as_schedule_time(target)
        self.schedule.times = [t for t in self.schedule.times if t != target]

    def toggle_schedule_time(self, target: ScheduleTime | time | datetime) -> bool:
        """Remove the time if present, otherwise try to add it."""
        target = _as_schedule_time(target)
        if target in self.schedule.times:
            self.remove_schedule_time(target)
            return True
        return self.add_schedule_time(target)

    def set_frequency(self, frequency: Frequency) -> None:
        self.schedule.frequency = frequency
        if frequency is not Frequency.WEEKLY:
            self.schedule.selected_weekdays = set()
        if frequency is Frequency.CUSTOM:
            if self.schedule.interval_day_count is None:
                self.schedule.interval_day_count = DEFAULT_INTERVAL_DAYS
        else:
            self.schedule.interval_day_count = None

    def update_selected_weekdays(self, weekdays: Iterable[Weekday]) -> None:
        self.schedule.selected_weekdays = set(weekdays)

    def update_interval_day_count(self, count: Optional[int]) -> None:
        if count is None:
            self.schedule.interval_day_count = None
            return
        self.schedule.interval_day_count = max(MIN_INTERVAL_DAYS, min(MAX_INTERVAL_DAYS, count))

    def apply_preset(self, preset: CadencePreset) -> None:
        self.set_frequency(preset.frequency)
        if preset.frequency is Frequency.WEEKLY:
            self.update_selected_weekdays(preset.selected_weekdays)
        if preset.interval_day_count is not None:
            self.update_interval_day_count(preset.interval_day_count)

    def set_timezone(self, timezone: str) -> None:
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {timezone}")
        self.schedule.timezone = timezone

    def set_start_date(self, start_date: date) -> None:
        self.schedule.start_date = start_date

    def cadence_error(self) -> Optional[str]:
        return cadence_error(self.schedule)

    @property
    def has_valid_cadence(self) -> bool:
        return self.cadence_error() is None

    def conflict_description(self) -> Optional[str]:
        if self.conflict_checker is None:
            return None
        return self.conflict_checker.describe(self.schedule)

    def suggested_reminder_time(self, starting_at: Optional[ScheduleTime | time | datetime] = None) -> ScheduleTime:
        """
        Find the first time at or after ``starting_at`` that is clear of this
        draft's reminders and of other goals' reminders.
        """
        start = _as_schedule_time(starting_at) if starting_at is not None else RECOMMENDED_TIMES[0]
        occupied = list(self.schedule.times)
        if self.conflict_checker is not None:
            occupied.extend(self.conflict_checker.occupied_times(self.schedule))

        step = max(1, self.spacing_minutes)
        for offset in range(0, MINUTES_PER_DAY, step):
            candidate = ScheduleTime.from_minutes(start.total_minutes + offset)
            if not self._collides(candidate, occupied):
                return candidate
        return start

    def _collides(self, candidate: ScheduleTime, others: Iterable[ScheduleTime]) -> bool:
        return any(candidate.is_within(self.spacing_minutes, of=other) for other in others)


def cadence_error(schedule: ScheduleBase) -> Optional[str]:
    """Describe what keeps the cadence from being valid, if anything."""
    if schedule.frequency is Frequency.WEEKLY and not schedule.selected_weekdays:
        return "Pick at least one weekday for a weekly rhythm"
    if schedule.frequency is Frequency.CUSTOM:
        interval = schedule.interval_day_count
        if interval is None or not MIN_INTERVAL_DAYS <= interval <= MAX_INTERVAL_DAYS:
            return f"Choose an interval between {MIN_INTERVAL_DAYS} and {MAX_INTERVAL_DAYS} days"
    return None


def spacing_error(
    schedule: ScheduleBase,
    spacing_minutes: int = settings.reminder_spacing_minutes,
    reminder_limit: Optional[int] = None,
) -> Optional[str]:
    """
    Describe reminder times that break the cap or the spacing rule.

    Every pair of times is compared on the 24h clock, so duplicates and
    times straddling midnight are caught too.
    """
    times = schedule.sorted_times
    if reminder_limit is not None and len(times) > reminder_limit:
        return f"Use at most {reminder_limit} reminder times"
    for index, current in enumerate(times):
        for other in times[index + 1:]:
            if current.is_within(spacing_minutes, of=other):
                return (
                    f"{current.formatted()} and {other.formatted()} are less than "
                    f"{spacing_minutes} minutes apart"
                )
    return None


def _as_schedule_time(value: ScheduleTime | time | datetime) -> ScheduleTime:
    if isinstance(value, ScheduleTime):
        return value
    return ScheduleTime.from_time(value)
