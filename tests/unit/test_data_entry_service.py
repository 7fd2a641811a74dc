"""Tests for check-in recording."""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

QUESTION_ID = "6f1c4a4e-1b9c-4a53-9f0e-3d3c1d7b8a10"


def _question(**overrides):
    from goalflow.models.question import Question

    fields = dict(
        id=QUESTION_ID,
        text="How many glasses of water did you drink?",
        response_type="numeric",
        validation_rules={"minimum_value": 0, "maximum_value": 20, "allows_empty": False},
    )
    fields.update(overrides)
    return Question(**fields)


class TestAnswerValue:
    """Tests for validating single answers."""

    def test_numeric_in_range(self):
        """Test a numeric answer inside the bounds is kept."""
        from goalflow.models.data_point import CheckInResponse
        from goalflow.services.data_entry_service import answer_value

        assert answer_value(_question(), CheckInResponse(question_id=QUESTION_ID, numeric_value=8)) == 8

    def test_numeric_out_of_range(self):
        """Test values above the maximum are rejected."""
        from goalflow.models.data_point import CheckInResponse
        from goalflow.services.data_entry_service import CheckInError, answer_value

        with pytest.raises(CheckInError, match="25 is above the maximum of 20"):
            answer_value(_question(), CheckInResponse(question_id=QUESTION_ID, numeric_value=25))

    def test_required_answer_missing(self):
        """Test empty answers fail when the question disallows them."""
        from goalflow.models.data_point import CheckInResponse
        from goalflow.services.data_entry_service import CheckInError, answer_value

        with pytest.raises(CheckInError, match="An answer is required"):
            answer_value(_question(), CheckInResponse(question_id=QUESTION_ID))

    def test_optional_answer_missing(self):
        """Test empty answers are skipped when allowed."""
        from goalflow.models.data_point import CheckInResponse
        from goalflow.services.data_entry_service import answer_value

        question = _question(response_type="text", validation_rules=None)

        assert answer_value(question, CheckInResponse(question_id=QUESTION_ID, text_value="  ")) is None

    def test_choice_uses_canonical_casing(self):
        """Test options match case-insensitively and keep stored casing."""
        from goalflow.models.data_point import CheckInResponse
        from goalflow.services.data_entry_service import CheckInError, answer_value

        question = _question(response_type="multiple_choice", options=["Low", "High"], validation_rules=None)

        value = answer_value(question, CheckInResponse(question_id=QUESTION_ID, selected_options=["high"]))
        assert value == ["High"]
        with pytest.raises(CheckInError, match="'Medium' is not an option"):
            answer_value(question, CheckInResponse(question_id=QUESTION_ID, selected_options=["Medium"]))


@pytest.mark.asyncio
class TestRecordCheckIn:
    """Tests for DataEntryService.record_check_in."""

    def _db(self, goal_doc, existing=None):
        goals = AsyncMock()
        goals.find_one.return_value = goal_doc
        data_points = AsyncMock()
        data_points.find_one.return_value = existing
        data_points.insert_one.return_value = AsyncMock(inserted_id=ObjectId())
        mock_db = MagicMock()
        mock_db.__getitem__.side_effect = {"goals": goals, "data_points": data_points}.__getitem__
        return mock_db, goals, data_points

    async def test_first_answer_inserts(self, goal_doc):
        """Test a first answer of the day is inserted."""
        from goalflow.models.data_point import CheckInCreate, CheckInResponse
        from goalflow.services.data_entry_service import DataEntryService

        doc = goal_doc()
        mock_db, goals, data_points = self._db(doc)
        check_in = CheckInCreate(
            responses=[CheckInResponse(question_id=QUESTION_ID, numeric_value=6)],
            timestamp=datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc),
            mood=7,
        )

        points = await DataEntryService(mock_db).record_check_in(str(doc["_id"]), check_in)

        assert [p.numeric_value for p in points] == [6]
        assert points[0].mood == 7
        data_points.insert_one.assert_awaited_once()
        data_points.update_one.assert_not_called()
        goals.update_one.assert_awaited_once()

    async def test_same_day_answer_overwrites(self, goal_doc):
        """Test a second answer on the same day replaces the first."""
        from goalflow.models.data_point import CheckInCreate, CheckInResponse
        from goalflow.services.data_entry_service import DataEntryService

        doc = goal_doc()
        existing_id = ObjectId()
        mock_db, _, data_points = self._db(doc, existing={"_id": existing_id})
        check_in = CheckInCreate(responses=[CheckInResponse(question_id=QUESTION_ID, numeric_value=9)])

        points = await DataEntryService(mock_db).record_check_in(str(doc["_id"]), check_in)

        assert points[0].id == str(existing_id)
        data_points.update_one.assert_awaited_once()
        data_points.insert_one.assert_not_called()
        query = data_points.find_one.call_args[0][0]
        assert set(query["timestamp"]) == {"$gte", "$lt"}

    async def test_invalid_answer_stores_nothing(self, goal_doc):
        """Test one bad answer rejects the whole check-in."""
        from goalflow.models.data_point import CheckInCreate, CheckInResponse
        from goalflow.services.data_entry_service import CheckInError, DataEntryService

        doc = goal_doc()
        mock_db, _, data_points = self._db(doc)
        check_in = CheckInCreate(responses=[
            CheckInResponse(question_id=QUESTION_ID, numeric_value=5),
            CheckInResponse(question_id="unknown", numeric_value=1),
        ])

        with pytest.raises(CheckInError, match="Unknown question: unknown"):
            await DataEntryService(mock_db).record_check_in(str(doc["_id"]), check_in)
        data_points.insert_one.assert_not_called()
