"""History and trend model definitions."""
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class HistoryEntry(BaseModel):
    """One recorded answer, summarized for display."""

    id: str
    timestamp: datetime
    question_id: Optional[str] = None
    question_title: str
    response_summary: str
    time_summary: str
    additional_details: Optional[str] = None


class DaySection(BaseModel):
    """A day's entries, newest first."""

    day: date
    entries: list[HistoryEntry] = Field(default_factory=list)


class TrendInterval(str, Enum):
    """Bucket size for aggregated trend series."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    HALF = "half"
    YEAR = "year"

    @property
    def minimum_data_days(self) -> int:
        """Days of data needed before this interval is offered."""
        return _MINIMUM_DATA_DAYS[self]


_MINIMUM_DATA_DAYS = {
    TrendInterval.DAY: 1,
    TrendInterval.WEEK: 14,
    TrendInterval.MONTH: 28,
    TrendInterval.QUARTER: 90,
    TrendInterval.HALF: 180,
    TrendInterval.YEAR: 365,
}


class DailyAverage(BaseModel):
    day: date
    average_value: float
    sample_count: int


class AggregatedDataPoint(BaseModel):
    """Numeric answers rolled up over one interval bucket."""

    start_date: date
    end_date: date
    average_value: float
    min_value: float
    max_value: float
    sample_count: int
    interval: TrendInterval

    @computed_field
    @property
    def display_label(self) -> str:
        """
        Short label for the bucket.

        Examples:
            >>> from datetime import date
            >>> point = AggregatedDataPoint(
            ...     start_date=date(2026, 10, 1), end_date=date(2026, 12, 31),
            ...     average_value=5, min_value=1, max_value=9, sample_count=3,
            ...     interval=TrendInterval.QUARTER,
            ... )
            >>> point.display_label
            'Q4 2026'
        """
        start = self.start_date
        if self.interval is TrendInterval.DAY:
            return f"{start:%b} {start.day}"
        if self.interval is TrendInterval.WEEK:
            end = self.end_date
            return f"{start:%b} {start.day}-{end:%b} {end.day}"
        if self.interval is TrendInterval.MONTH:
            return f"{start:%b %Y}"
        if self.interval is TrendInterval.QUARTER:
            return f"Q{(start.month - 1) // 3 + 1} {start.year}"
        if self.interval is TrendInterval.HALF:
            return f"{'H1' if start.month <= 6 else 'H2'} {start.year}"
        return str(start.year)


class BooleanStreak(BaseModel):
    """Consecutive "yes" days for a yes/no question."""

    question_id: str
    question_title: str
    current_streak: int
    best_streak: int
    last_response_date: Optional[datetime] = None
    last_response_value: Optional[bool] = None


class GoalTrends(BaseModel):
    """Chart-ready analytics for one goal."""

    goal_id: str
    interval: TrendInterval
    available_intervals: list[TrendInterval]
    data_span_days: int
    daily_series: list[DailyAverage] = Field(default_factory=list)
    aggregated_series: list[AggregatedDataPoint] = Field(default_factory=list)
    current_streak_days: int = 0
    boolean_streaks: list[BooleanStreak] = Field(default_factory=list)
