"""Goal history and trends - day-grouped entries, averages and streaks."""
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional
from zoneinfo import ZoneInfo

from goalflow.models.data_point import DataPoint
from goalflow.models.goal import Goal
from goalflow.models.history import (
    AggregatedDataPoint,
    BooleanStreak,
    DailyAverage,
    DaySection,
    GoalTrends,
    HistoryEntry,
    TrendInterval,
)
from goalflow.models.question import Question, ResponseType
from goalflow.models.schedule import ScheduleTime
from goalflow.services.goal_service import GoalService


logger = logging.getLogger(__name__)

NO_RESPONSE = "No response recorded"


def local_day(timestamp: datetime, zone: ZoneInfo) -> date:
    """Calendar day of a timestamp in the goal's zone. Naive values are UTC."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(zone).date()


def format_number(value: float) -> str:
    """
    Format with at most two decimals and no trailing zeros.

    Examples:
        >>> format_number(6.0)
        '6'
        >>> format_number(2.456)
        '2.46'
    """
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def response_summary(point: DataPoint, question: Optional[Question]) -> str:
    """Readable answer for a data point, by its question's response type."""
    response_type = question.response_type if question else None
    if response_type is ResponseType.SCALE and point.numeric_value is not None:
        return str(round(point.numeric_value))
    if response_type in (ResponseType.NUMERIC, ResponseType.SLIDER) and point.numeric_value is not None:
        return format_number(point.numeric_value)
    if response_type is ResponseType.BOOLEAN and point.bool_value is not None:
        return "Yes" if point.bool_value else "No"
    if response_type is ResponseType.TEXT and point.text_value:
        return point.text_value
    if response_type is ResponseType.MULTIPLE_CHOICE and point.selected_options:
        return ", ".join(point.selected_options)
    if response_type is ResponseType.TIME and point.time_value is not None:
        return point.time_value.formatted()

    # Question missing or answer stored under another field
    if point.numeric_value is not None:
        return format_number(point.numeric_value)
    if point.text_value:
        return point.text_value
    if point.bool_value is not None:
        return "Yes" if point.bool_value else "No"
    if point.selected_options:
        return ", ".join(point.selected_options)
    if point.time_value is not None:
        return point.time_value.formatted()
    if point.mood is not None:
        return f"Mood: {point.mood}"
    return NO_RESPONSE


def build_day_sections(goal: Goal, points: Iterable[DataPoint]) -> list[DaySection]:
    """
    Group a goal's data points by local day.

    Returns:
        Sections newest day first, each with entries newest first
    """
    zone = goal.schedule.zone
    questions = {question.id: question for question in goal.questions}
    grouped: dict[date, list[DataPoint]] = defaultdict(list)
    for point in points:
        grouped[local_day(point.timestamp, zone)].append(point)

    sections = []
    for day in sorted(grouped, reverse=True):
        entries = []
        for point in sorted(grouped[day], key=lambda p: _aware(p.timestamp), reverse=True):
            question = questions.get(point.question_id)
            local_time = _aware(point.timestamp).astimezone(zone)
            entries.append(HistoryEntry(
                id=point.id,
                timestamp=point.timestamp,
                question_id=point.question_id,
                question_title=question.text if question else "Question",
                response_summary=response_summary(point, question),
                time_summary=ScheduleTime.from_time(local_time).formatted(),
                additional_details=f"Location: {point.location}" if point.location else None,
            ))
        sections.append(DaySection(day=day, entries=entries))
    return sections


def daily_averages(points: Iterable[DataPoint], zone: ZoneInfo) -> list[DailyAverage]:
    """Average numeric answers per local day, oldest first."""
    buckets: dict[date, list[float]] = defaultdict(list)
    for point in points:
        if point.numeric_value is not None:
            buckets[local_day(point.timestamp, zone)].append(point.numeric_value)
    return [
        DailyAverage(day=day, average_value=sum(values) / len(values), sample_count=len(values))
        for day, values in sorted(buckets.items())
    ]


def interval_bounds(day: date, interval: TrendInterval) -> tuple[date, date]:
    """
    First and last day of the bucket containing ``day``.

    Weeks start on Monday.

    Examples:
        >>> interval_bounds(date(2026, 10, 17), TrendInterval.WEEK)
        (datetime.date(2026, 10, 12), datetime.date(2026, 10, 18))
    """
    if interval is TrendInterval.DAY:
        return day, day
    if interval is TrendInterval.WEEK:
        start = day - timedelta(days=day.weekday())
        return start, start + timedelta(days=6)

    months = {
        TrendInterval.MONTH: 1,
        TrendInterval.QUARTER: 3,
        TrendInterval.HALF: 6,
        TrendInterval.YEAR: 12,
    }[interval]
    first_month = (day.month - 1) // months * months + 1
    start = date(day.year, first_month, 1)
    next_month = first_month + months
    if next_month > 12:
        following = date(day.year + 1, next_month - 12, 1)
    else:
        following = date(day.year, next_month, 1)
    return start, following - timedelta(days=1)


def aggregate(points: Iterable[DataPoint], zone: ZoneInfo, interval: TrendInterval) -> list[AggregatedDataPoint]:
    """Roll numeric answers up into interval buckets, oldest first."""
    buckets: dict[tuple[date, date], list[float]] = defaultdict(list)
    for point in points:
        if point.numeric_value is None:
            continue
        buckets[interval_bounds(local_day(point.timestamp, zone), interval)].append(point.numeric_value)
    return [
        AggregatedDataPoint(
            start_date=start,
            end_date=end,
            average_value=sum(values) / len(values),
            min_value=min(values),
            max_value=max(values),
            sample_count=len(values),
            interval=interval,
        )
        for (start, end), values in sorted(buckets.items())
    ]


def available_intervals(span_days: int) -> list[TrendInterval]:
    """Intervals with enough data; days are always available."""
    return [
        interval for interval in TrendInterval
        if interval is TrendInterval.DAY or span_days + 1 >= interval.minimum_data_days
    ]


def current_streak(days: set[date], today: date) -> int:
    """Consecutive days in ``days`` ending today."""
    streak = 0
    cursor = today
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def best_streak(days: set[date]) -> int:
    """Longest run of consecutive days."""
    best = current = 0
    previous: Optional[date] = None
    for day in sorted(days):
        current = current + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        best = max(best, current)
        previous = day
    return best


def boolean_streaks(goal: Goal, points: Iterable[DataPoint], today: date) -> list[BooleanStreak]:
    """
    Streaks of "yes" answers for each yes/no question.

    Sorted by current streak (longest first), then by question text.
    """
    zone = goal.schedule.zone
    by_question: dict[str, list[DataPoint]] = defaultdict(list)
    for point in points:
        if point.bool_value is not None and point.question_id is not None:
            by_question[point.question_id].append(point)

    streaks = []
    for question in goal.questions:
        if question.response_type is not ResponseType.BOOLEAN:
            continue
        answers = sorted(by_question.get(question.id, []), key=lambda p: _aware(p.timestamp))
        success_days = {local_day(p.timestamp, zone) for p in answers if p.bool_value}
        latest = answers[-1] if answers else None
        streaks.append(BooleanStreak(
            question_id=question.id,
            question_title=question.text,
            current_streak=current_streak(success_days, today),
            best_streak=best_streak(success_days),
            last_response_date=latest.timestamp if latest else None,
            last_response_value=latest.bool_value if latest else None,
        ))
    return sorted(streaks, key=lambda s: (-s.current_streak, s.question_title))


def build_trends(
    goal: Goal,
    points: list[DataPoint],
    interval: Optional[TrendInterval] = None,
    now: Optional[datetime] = None,
) -> GoalTrends:
    """
    Compute a goal's trend analytics.

    Args:
        goal: Goal the points belong to
        points: The goal's data points
        interval: Bucket size; defaults to the widest one with enough data
        now: Reference instant for streaks (defaults to now)

    Returns:
        Daily series, aggregated series and streaks
    """
    zone = goal.schedule.zone
    now = now or datetime.now(timezone.utc)
    today = local_day(now, zone)

    numeric = [p for p in points if p.numeric_value is not None]
    numeric_days = {local_day(p.timestamp, zone) for p in numeric}
    span_days = (max(numeric_days) - min(numeric_days)).days if numeric_days else 0
    intervals = available_intervals(span_days)
    chosen = interval or intervals[-1]

    return GoalTrends(
        goal_id=goal.id,
        interval=chosen,
        available_intervals=intervals,
        data_span_days=span_days,
        daily_series=daily_averages(numeric, zone),
        aggregated_series=aggregate(numeric, zone, chosen),
        current_streak_days=current_streak({d for d in numeric_days if d <= today}, today),
        boolean_streaks=boolean_streaks(goal, points, today),
    )


def _aware(timestamp: datetime) -> datetime:
    return timestamp if timestamp.tzinfo is not None else timestamp.replace(tzinfo=timezone.utc)


class GoalHistoryService:
    """Reads a goal's data points for history lists and trend charts."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.data_points = db["data_points"]
        self.goal_service = GoalService(db)

    async def _points(self, goal_id: str) -> list[DataPoint]:
        cursor = self.data_points.find({"goal_id": goal_id}).sort("timestamp", 1)
        docs = await cursor.to_list(length=None)
        return [DataPoint(**{**doc, "_id": str(doc["_id"])}) for doc in docs]

    async def history(self, goal_id: str) -> list[DaySection]:
        """
        Day-grouped history for a goal.

        Raises:
            ValueError: If goal not found
        """
        goal = await self.goal_service.get_goal(goal_id)
        return build_day_sections(goal, await self._points(goal.id))

    async def trends(
        self,
        goal_id: str,
        interval: Optional[TrendInterval] = None,
        now: Optional[datetime] = None,
    ) -> GoalTrends:
        """
        Trend analytics for a goal.

        Raises:
            ValueError: If goal not found
        """
        goal = await self.goal_service.get_goal(goal_id)
        points = await self._points(goal.id)
        trends = build_trends(goal, points, interval=interval, now=now)
        logger.debug(
            "Trends computed",
            extra={"goal_id": goal.id, "interval": trends.interval.value, "points": len(points)},
        )
        return trends
