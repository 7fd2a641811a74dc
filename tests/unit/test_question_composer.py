"""Tests for QuestionComposer."""
import pytest


class TestComposerValidation:
    """Tests for can_save rules."""

    def test_multiple_choice_without_options_cannot_save(self):
        """Test that multiple choice needs at least one option."""
        from goalflow.models.question import ResponseType
        from goalflow.services.question_composer import QuestionComposer

        composer = QuestionComposer()
        composer.text = "How was lunch?"
        composer.select_response_type(ResponseType.MULTIPLE_CHOICE)

        assert composer.can_save is False
        assert composer.validation_message() == "Add at least one option"

        composer.add_option("Great")
        assert composer.can_save is True

    @pytest.mark.parametrize("response_type", ["numeric", "scale", "slider"])
    def test_range_out_of_order_cannot_save(self, response_type):
        """Test that minimum above maximum blocks saving for range types."""
        from goalflow.models.question import ResponseType
        from goalflow.services.question_composer import QuestionComposer

        composer = QuestionComposer()
        composer.text = "How many?"
        composer.select_response_type(ResponseType(response_type))
        composer.minimum, composer.maximum = 10, 2

        assert composer.can_save is False

    def test_out_of_order_range_is_rejected_not_swapped(self):
        """Test that saving fails and nothing is stored."""
        from goalflow.models.question import ResponseType
        from goalflow.services.question_composer import QuestionComposer

        composer = QuestionComposer()
        composer.text = "Pages read"
        composer.select_response_type(ResponseType.NUMERIC)
        composer.minimum, composer.maximum = 50, 5
        questions = []

        assert composer.save(questions) is None
        assert questions == []
        assert composer.error == "Minimum should be less than maximum"
        assert (composer.minimum, composer.maximum) == (50, 5)

    def test_blank_text_cannot_save(self):
        """Test that whitespace-only text is rejected."""
        from goalflow.services.question_composer import QuestionComposer

        composer = QuestionComposer()
        composer.text = "   "

        assert composer.can_save is False


class TestComposerDefaults:
    """Tests for response type defaults."""

    def test_select_response_type_seeds_default_bounds(self):
        """Test that each range type gets its default bounds."""
        from goalflow.models.question import ResponseType
        from goalflow.services.question_composer import QuestionComposer

        composer = QuestionComposer()
        composer.select_response_type(ResponseType.SCALE)
        assert (composer.minimum, composer.maximum) == (1, 10)

        composer.select_response_type(ResponseType.NUMERIC)
        assert (composer.minimum, composer.maximum) == (0, 100)

        composer.select_response_type(ResponseType.TEXT)
        assert composer.minimum is None
        assert composer.maximum is None

    def test_begin_editing_keeps_question_values(self):
        """Test that editing loads stored bounds instead of defaults."""
        from goalflow.models.question import QuestionDraft, ResponseType, ValidationRules
        from goalflow.services.question_composer import QuestionComposer

        question = QuestionDraft(
            text="Active minutes",
            response_type=ResponseType.NUMERIC,
            validation_rules=ValidationRules(minimum_value=0, maximum_value=180, allows_empty=False),
        )
        composer = QuestionComposer()
        composer.begin_editing(question)

        assert composer.editing_id == question.id
        assert (composer.minimum, composer.maximum) == (0, 180)


class TestComposerOptions:
    """Tests for option entry."""

    def test_add_option_dedupes_case_insensitively(self):
        """Test duplicate options are refused."""
        from goalflow.services.question_composer import QuestionComposer

        composer = QuestionComposer()

        assert composer.add_option("Good") is True
        assert composer.add_option(" good ") is False
        assert composer.add_option("") is False
        assert composer.options == ["Good"]

    def test_set_options_text_parses_commas(self):
        """Test comma-separated option entry."""
        from goalflow.services.question_composer import QuestionComposer

        composer = QuestionComposer()
        composer.set_options_text("Low, Medium, high, LOW")

        assert composer.options == ["Low", "Medium", "high"]


class TestComposerSave:
    """Tests for saving into a question list."""

    def test_save_appends_new_question_and_resets(self):
        """Test a new question is appended."""
        from goalflow.models.question import ResponseType
        from goalflow.services.question_composer import QuestionComposer

        composer = QuestionComposer()
        composer.text = "  Did you stretch?  "
        composer.select_response_type(ResponseType.BOOLEAN)
        questions = []

        saved = composer.save(questions)

        assert saved is not None
        assert questions == [saved]
        assert saved.text == "Did you stretch?"
        assert composer.text == ""
        assert composer.editing_id is None

    def test_save_while_editing_replaces_in_place(self):
        """Test editing keeps position, identity and provenance."""
        from goalflow.models.question import QuestionDraft, ResponseType
        from goalflow.services.question_composer import QuestionComposer

        first = QuestionDraft(text="First", template_id="fitness-workout")
        second = QuestionDraft(text="Second")
        questions = [first, second]

        composer = QuestionComposer()
        composer.begin_editing(first)
        composer.text = "First, reworded"
        composer.select_response_type(ResponseType.TEXT)
        saved = composer.save(questions)

        assert len(questions) == 2
        assert questions[0] is saved
        assert saved.id == first.id
        assert saved.text == "First, reworded"
        assert saved.template_id == "fitness-workout"
        assert questions[1] is second

    def test_reset_is_idempotent(self):
        """Test resetting twice equals resetting once."""
        from goalflow.models.question import ResponseType
        from goalflow.services.question_composer import QuestionComposer

        composer = QuestionComposer()
        composer.text = "Anything"
        composer.select_response_type(ResponseType.MULTIPLE_CHOICE)
        composer.add_option("A")

        composer.reset()
        once = dict(vars(composer))
        composer.reset()

        assert vars(composer) == once
        assert composer.text == ""
        assert composer.options == []


class TestQuestionError:
    """Tests for checking a built question draft."""

    @pytest.mark.parametrize("fields,expected", [
        ({"text": "   "}, "Enter a question to continue"),
        ({"text": "Which meal?", "response_type": "multiple_choice", "options": [" ", ""]},
         "Add at least one option"),
        ({"text": "How many?", "response_type": "numeric",
          "validation_rules": {"minimum_value": 10, "maximum_value": 2}},
         "Minimum should be less than maximum"),
    ])
    def test_invalid_questions(self, fields, expected):
        from goalflow.models.question import QuestionDraft
        from goalflow.services.question_composer import question_error

        assert question_error(QuestionDraft(**fields)) == expected

    def test_valid_question(self):
        from goalflow.models.question import QuestionDraft
        from goalflow.services.question_composer import question_error

        draft = QuestionDraft(
            text="How many?",
            response_type="numeric",
            validation_rules={"minimum_value": 5, "maximum_value": 5},
        )

        assert question_error(draft) is None
