"""Data entry service - daily check-ins against a goal's questions."""
import logging
from datetime import datetime, time, timedelta, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from goalflow.models.data_point import CheckInCreate, CheckInResponse, DataPoint
from goalflow.models.question import Question, ResponseShape, ResponseType
from goalflow.services.goal_service import GoalService
from goalflow.utils.text import trimmed


logger = logging.getLogger(__name__)

# Response field that carries the answer for each type
_ANSWER_FIELDS: dict[ResponseType, str] = {
    ResponseType.BOOLEAN: "bool_value",
    ResponseType.NUMERIC: "numeric_value",
    ResponseType.SCALE: "numeric_value",
    ResponseType.SLIDER: "numeric_value",
    ResponseType.MULTIPLE_CHOICE: "selected_options",
    ResponseType.TEXT: "text_value",
    ResponseType.TIME: "time_value",
}


class CheckInError(ValueError):
    """An answer does not fit its question."""


def answer_value(question: Question, response: CheckInResponse) -> Any:
    """
    Validate a response against its question.

    Returns:
        The normalized answer, or None for an allowed empty answer

    Raises:
        CheckInError: If the answer is missing, out of range or not an option
    """
    field = _ANSWER_FIELDS[question.response_type]
    value = getattr(response, field)
    if isinstance(value, str):
        value = trimmed(value)
    if isinstance(value, list):
        value = [trimmed(option) for option in value if trimmed(option)]

    rules = question.validation_rules
    if value is None or value == "" or value == []:
        if rules is None or rules.allows_empty:
            return None
        raise CheckInError(f"An answer is required for '{question.text}'")

    shape = question.response_type.shape
    if shape is ResponseShape.RANGE and rules is not None:
        if rules.minimum_value is not None and value < rules.minimum_value:
            raise CheckInError(f"{value:g} is below the minimum of {rules.minimum_value:g} for '{question.text}'")
        if rules.maximum_value is not None and value > rules.maximum_value:
            raise CheckInError(f"{value:g} is above the maximum of {rules.maximum_value:g} for '{question.text}'")
    elif shape is ResponseShape.CHOICE:
        allowed = {option.casefold(): option for option in question.options or []}
        for option in value:
            if option.casefold() not in allowed:
                raise CheckInError(f"'{option}' is not an option for '{question.text}'")
        value = [allowed[option.casefold()] for option in value]

    return value


class DataEntryService:
    """Service for recording and listing check-in data points."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.data_points = db["data_points"]
        self.goal_service = GoalService(db)

    def _doc_to_data_point(self, doc: dict) -> DataPoint:
        return DataPoint(**{**doc, "_id": str(doc["_id"])})

    async def record_check_in(self, goal_id: str, check_in: CheckInCreate) -> list[DataPoint]:
        """
        Record answers for a goal.

        A second answer to the same question on the same calendar day (in the
        goal's timezone) overwrites the first.

        Args:
            goal_id: Goal ID
            check_in: Answers plus optional timestamp, mood and location

        Returns:
            Stored data points, one per non-empty answer

        Raises:
            ValueError: If goal not found
            CheckInError: If any answer is invalid; nothing is stored
        """
        goal = await self.goal_service.get_goal(goal_id)
        questions = {question.id: question for question in goal.questions}

        answers = []
        for response in check_in.responses:
            question = questions.get(response.question_id)
            if question is None:
                raise CheckInError(f"Unknown question: {response.question_id}")
            value = answer_value(question, response)
            if value is not None:
                answers.append((question, value))

        timestamp = check_in.timestamp or datetime.now(timezone.utc)
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        day_start, day_end = _day_bounds(timestamp, goal.schedule.zone)

        stored = []
        for question, value in answers:
            field = _ANSWER_FIELDS[question.response_type]
            point_doc = {
                "goal_id": goal.id,
                "question_id": question.id,
                "timestamp": timestamp,
                field: value.model_dump() if hasattr(value, "model_dump") else value,
                "mood": check_in.mood,
                "location": check_in.location,
            }
            existing = await self.data_points.find_one({
                "goal_id": goal.id,
                "question_id": question.id,
                "timestamp": {"$gte": day_start, "$lt": day_end},
            })
            if existing:
                await self.data_points.update_one({"_id": existing["_id"]}, {"$set": point_doc})
                point_doc["_id"] = existing["_id"]
            else:
                result = await self.data_points.insert_one(point_doc)
                point_doc["_id"] = result.inserted_id
            stored.append(self._doc_to_data_point(point_doc))

        await self.goal_service.touch(goal.id)
        logger.info("Check-in recorded", extra={"goal_id": goal.id, "answers": len(stored)})
        return stored

    async def list_data_points(self, goal_id: str, question_id: Optional[str] = None) -> list[DataPoint]:
        """List a goal's data points, oldest first."""
        query = {"goal_id": goal_id}
        if question_id:
            query["question_id"] = question_id

        cursor = self.data_points.find(query).sort("timestamp", 1)
        docs = await cursor.to_list(length=None)
        return [self._doc_to_data_point(doc) for doc in docs]


def _day_bounds(timestamp: datetime, zone: ZoneInfo) -> tuple[datetime, datetime]:
    local_day = timestamp.astimezone(zone).date()
    start = datetime.combine(local_day, time.min, tzinfo=zone)
    return start.astimezone(timezone.utc), (start + timedelta(days=1)).astimezone(timezone.utc)
