"""Prompt template, cadence preset and suggestion model definitions."""
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from goalflow.models.goal import TrackingCategory
from goalflow.models.question import ResponseType, ValidationRules
from goalflow.models.schedule import Frequency, Weekday


class PromptBlueprint(BaseModel):
    """The question a template produces."""

    text: str
    response_type: ResponseType
    options: Optional[list[str]] = None
    validation_rules: Optional[ValidationRules] = None


class PromptTemplate(BaseModel):
    """A ready-made tracking question."""

    id: str
    title: str
    subtitle: str
    categories: frozenset[TrackingCategory] = frozenset()
    icon_name: str
    blueprint: PromptBlueprint

    model_config = {"frozen": True}

    @property
    def is_category_agnostic(self) -> bool:
        return not self.categories


class CadencePreset(BaseModel):
    """A ready-made reminder rhythm."""

    id: str
    title: str
    subtitle: str
    icon_name: str
    frequency: Frequency
    selected_weekdays: frozenset[Weekday] = frozenset()
    interval_day_count: Optional[int] = None

    model_config = {"frozen": True}


class GoalSuggestion(BaseModel):
    """A tracking question proposed by the language model."""

    id: UUID = Field(default_factory=uuid4)
    prompt: str
    response_type: ResponseType
    options: list[str] = Field(default_factory=list)
    rationale: Optional[str] = None
    validation_rules: Optional[ValidationRules] = None


class SuggestionRequest(BaseModel):
    """Suggestion request model."""

    title: str = ""
    description: str = ""
    limit: int = Field(default=3, ge=1, le=10)
