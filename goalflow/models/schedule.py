"""Schedule model definitions."""
from datetime import date, datetime, time
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


MINUTES_PER_DAY = 24 * 60
MIN_INTERVAL_DAYS = 2
MAX_INTERVAL_DAYS = 30


class Frequency(str, Enum):
    """Recurrence of reminders."""

    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class Weekday(int, Enum):
    """Weekdays numbered Sunday=1 through Saturday=7."""

    SUNDAY = 1
    MONDAY = 2
    TUESDAY = 3
    WEDNESDAY = 4
    THURSDAY = 5
    FRIDAY = 6
    SATURDAY = 7

    @property
    def display_name(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        # date.isoweekday(): Monday=1 ... Sunday=7
        return cls(value.isoweekday() % 7 + 1)


WORKWEEK = frozenset(
    {Weekday.MONDAY, Weekday.TUESDAY, Weekday.WEDNESDAY, Weekday.THURSDAY, Weekday.FRIDAY}
)


class ScheduleTime(BaseModel):
    """A time of day for a reminder (not a timestamp)."""

    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)

    model_config = {"frozen": True}

    @classmethod
    def from_time(cls, value: time | datetime) -> "ScheduleTime":
        return cls(hour=value.hour, minute=value.minute)

    @classmethod
    def from_minutes(cls, total: int) -> "ScheduleTime":
        total %= MINUTES_PER_DAY
        return cls(hour=total // 60, minute=total % 60)

    @property
    def total_minutes(self) -> int:
        return self.hour * 60 + self.minute

    def minutes_apart(self, other: "ScheduleTime") -> int:
        """Distance on the 24h clock, wrapping around midnight."""
        delta = abs(self.total_minutes - other.total_minutes)
        return min(delta, MINUTES_PER_DAY - delta)

    def is_within(self, window_minutes: int, of: "ScheduleTime") -> bool:
        return self.minutes_apart(of) < window_minutes

    def formatted(self) -> str:
        """
        Format as a 12-hour clock string.

        Examples:
            >>> ScheduleTime(hour=18, minute=30).formatted()
            '6:30 PM'
        """
        suffix = "AM" if self.hour < 12 else "PM"
        hour = self.hour % 12 or 12
        return f"{hour}:{self.minute:02d} {suffix}"

    def on(self, day: date, tz: ZoneInfo) -> datetime:
        return datetime(day.year, day.month, day.day, self.hour, self.minute, tzinfo=tz)


class ScheduleBase(BaseModel):
    """Base schedule fields shared by drafts and stored schedules."""

    frequency: Frequency = Frequency.DAILY
    selected_weekdays: set[Weekday] = Field(default_factory=set)
    interval_day_count: Optional[int] = None
    times: list[ScheduleTime] = Field(default_factory=list)
    timezone: str = "UTC"
    start_date: date = Field(default_factory=date.today)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def normalized_weekdays(self) -> list[Weekday]:
        return sorted(self.selected_weekdays)

    @property
    def sorted_times(self) -> list[ScheduleTime]:
        return sorted(self.times, key=lambda t: t.total_minutes)

    @property
    def cadence_label(self) -> str:
        """Human summary of the cadence, e.g. "Weekly on Monday"."""
        if self.frequency is Frequency.WEEKLY:
            if set(self.selected_weekdays) == WORKWEEK:
                return "Weekdays"
            if not self.selected_weekdays:
                return "Weekly"
            names = ", ".join(day.display_name for day in self.normalized_weekdays)
            return f"Weekly on {names}"
        if self.frequency is Frequency.CUSTOM:
            return f"Every {self.interval_day_count or MIN_INTERVAL_DAYS} days"
        return self.frequency.value.capitalize()


class ScheduleDraft(ScheduleBase):
    """Reminder configuration being edited in a goal draft."""

    pass


class Schedule(ScheduleBase):
    """Schedule stored on a goal."""

    end_date: Optional[date] = None
