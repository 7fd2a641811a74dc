"""Question model definitions."""
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from goalflow.utils.text import trimmed


class ResponseShape(str, Enum):
    """What a response type carries besides its prompt."""

    RANGE = "range"  # minimum/maximum bounds
    CHOICE = "choice"  # ordered options
    PLAIN = "plain"  # nothing


class ResponseType(str, Enum):
    """Ways a tracking question can be answered."""

    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    SCALE = "scale"
    SLIDER = "slider"
    MULTIPLE_CHOICE = "multiple_choice"
    TEXT = "text"
    TIME = "time"

    @property
    def shape(self) -> ResponseShape:
        return _SHAPES[self]

    @property
    def uses_range(self) -> bool:
        return self.shape is ResponseShape.RANGE

    @property
    def uses_options(self) -> bool:
        return self.shape is ResponseShape.CHOICE

    def default_bounds(self) -> Optional[tuple[float, float]]:
        """Default (minimum, maximum) for range types, None otherwise."""
        return _DEFAULT_BOUNDS.get(self)

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_SHAPES: dict[ResponseType, ResponseShape] = {
    ResponseType.BOOLEAN: ResponseShape.PLAIN,
    ResponseType.NUMERIC: ResponseShape.RANGE,
    ResponseType.SCALE: ResponseShape.RANGE,
    ResponseType.SLIDER: ResponseShape.RANGE,
    ResponseType.MULTIPLE_CHOICE: ResponseShape.CHOICE,
    ResponseType.TEXT: ResponseShape.PLAIN,
    ResponseType.TIME: ResponseShape.PLAIN,
}

_DEFAULT_BOUNDS: dict[ResponseType, tuple[float, float]] = {
    ResponseType.NUMERIC: (0, 100),
    ResponseType.SCALE: (1, 10),
    ResponseType.SLIDER: (0, 100),
}

_DISPLAY_NAMES: dict[ResponseType, str] = {
    ResponseType.BOOLEAN: "Yes / No",
    ResponseType.NUMERIC: "Number",
    ResponseType.SCALE: "Scale (1-10)",
    ResponseType.SLIDER: "Slider",
    ResponseType.MULTIPLE_CHOICE: "Multiple choice",
    ResponseType.TEXT: "Text",
    ResponseType.TIME: "Time of day",
}


class QuestionSource(str, Enum):
    """Where a draft question came from, when not typed by hand."""

    TEMPLATE = "template"
    SUGGESTION = "suggestion"


class ValidationRules(BaseModel):
    """Bounds and emptiness rules for answers."""

    minimum_value: Optional[float] = None
    maximum_value: Optional[float] = None
    allows_empty: bool = True


class QuestionDraft(BaseModel):
    """An unsaved tracking question inside a goal draft."""

    id: UUID = Field(default_factory=uuid4)
    text: str = ""
    response_type: ResponseType = ResponseType.BOOLEAN
    options: list[str] = Field(default_factory=list)
    validation_rules: Optional[ValidationRules] = None
    is_active: bool = True
    template_id: Optional[str] = None
    suggestion_id: Optional[UUID] = None

    @property
    def trimmed_text(self) -> str:
        return trimmed(self.text)

    @property
    def has_content(self) -> bool:
        return bool(self.trimmed_text)

    @property
    def provenance(self) -> Optional[QuestionSource]:
        if self.template_id is not None:
            return QuestionSource.TEMPLATE
        if self.suggestion_id is not None:
            return QuestionSource.SUGGESTION
        return None


class Question(BaseModel):
    """A tracking question stored on a goal."""

    id: str
    text: str
    response_type: ResponseType
    is_active: bool = True
    options: Optional[list[str]] = None
    validation_rules: Optional[ValidationRules] = None
