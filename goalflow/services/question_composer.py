"""Question composer - edits one tracking question at a time."""
from typing import Optional
from uuid import UUID

from goalflow.models.question import QuestionDraft, ResponseType, ValidationRules
from goalflow.utils.text import dedupe_options, parse_options, trimmed


RANGE_ORDER_MESSAGE = "Minimum should be less than maximum"
OPTIONS_REQUIRED_MESSAGE = "Add at least one option"


def question_error(question: QuestionDraft) -> Optional[str]:
    """Same checks as ``QuestionComposer.validation_message`` for a built draft."""
    if not question.has_content:
        return "Enter a question to continue"
    if question.response_type.uses_options and not dedupe_options(question.options):
        return OPTIONS_REQUIRED_MESSAGE
    rules = question.validation_rules
    if question.response_type.uses_range and rules is not None:
        if (
            rules.minimum_value is not None
            and rules.maximum_value is not None
            and rules.minimum_value > rules.maximum_value
        ):
            return RANGE_ORDER_MESSAGE
    return None


class QuestionComposer:
    """
    Holds the in-progress state of a single question.

    Out-of-order ranges are rejected at save time rather than swapped.
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Discard composer state. The question list is never touched."""
        self.text = ""
        self.response_type = ResponseType.BOOLEAN
        self.minimum: Optional[float] = None
        self.maximum: Optional[float] = None
        self.options: list[str] = []
        self.allows_empty = False
        self.editing_id: Optional[UUID] = None
        self.error: Optional[str] = None
        self._template_id: Optional[str] = None
        self._suggestion_id: Optional[UUID] = None
        self._is_active = True

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    def select_response_type(self, response_type: ResponseType) -> None:
        """Switch type and re-seed the type's default range and options."""
        self.response_type = response_type
        bounds = response_type.default_bounds()
        if bounds is None:
            self.minimum = self.maximum = None
        else:
            self.minimum, self.maximum = bounds
        self.options = []
        self.error = None

    def begin_editing(self, question: QuestionDraft) -> None:
        """Load an existing question without re-seeding defaults."""
        self.text = question.text
        self.response_type = question.response_type
        self.options = list(question.options)
        rules = question.validation_rules
        self.minimum = rules.minimum_value if rules else None
        self.maximum = rules.maximum_value if rules else None
        self.allows_empty = rules.allows_empty if rules else False
        self.editing_id = question.id
        self.error = None
        self._template_id = question.template_id
        self._suggestion_id = question.suggestion_id
        self._is_active = question.is_active

    def add_option(self, option: str) -> bool:
        """Append an option unless it is blank or a case-insensitive duplicate."""
        value = trimmed(option)
        if not value:
            return False
        if value.casefold() in {existing.casefold() for existing in self.options}:
            return False
        self.options.append(value)
        return True

    def remove_option(self, option: str) -> None:
        self.options = [existing for existing in self.options if existing != option]

    def set_options_text(self, text: str) -> None:
        """Replace options from comma-separated entry."""
        self.options = parse_options(text)

    def validation_message(self) -> Optional[str]:
        if not trimmed(self.text):
            return "Enter a question to continue"
        if self.response_type.uses_options and not dedupe_options(self.options):
            return OPTIONS_REQUIRED_MESSAGE
        if self.response_type.uses_range and not self._range_in_order():
            return RANGE_ORDER_MESSAGE
        return None

    @property
    def can_save(self) -> bool:
        return self.validation_message() is None

    def build(self) -> QuestionDraft:
        """Build a draft from the current state. Call only when ``can_save``."""
        rules = None
        options: list[str] = []
        if self.response_type.uses_range:
            rules = ValidationRules(
                minimum_value=self.minimum,
                maximum_value=self.maximum,
                allows_empty=self.allows_empty,
            )
        elif self.response_type.uses_options:
            options = dedupe_options(self.options)
            rules = ValidationRules(allows_empty=self.allows_empty)
        else:
            rules = ValidationRules(allows_empty=self.allows_empty)

        fields = dict(
            text=trimmed(self.text),
            response_type=self.response_type,
            options=options,
            validation_rules=rules,
            is_active=self._is_active,
            template_id=self._template_id,
            suggestion_id=self._suggestion_id,
        )
        if self.editing_id is not None:
            fields["id"] = self.editing_id
        return QuestionDraft(**fields)

    def save(self, questions: list[QuestionDraft]) -> Optional[QuestionDraft]:
        """
        Store the composed question into ``questions``.

        Args:
            questions: The draft's question list, mutated in place

        Returns:
            The stored draft, or None when the state is invalid (``error``
            is set and ``questions`` is left untouched)
        """
        message = self.validation_message()
        if message is not None:
            self.error = message
            return None

        draft = self.build()
        index = next(
            (i for i, question in enumerate(questions) if question.id == self.editing_id),
            None,
        )
        if index is None:
            questions.append(draft)
        else:
            questions[index] = draft
        self.reset()
        return draft

    def _range_in_order(self) -> bool:
        if self.minimum is None or self.maximum is None:
            return True
        return self.minimum <= self.maximum
