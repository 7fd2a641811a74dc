"""Goal model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from goalflow.models.question import Question, QuestionDraft
from goalflow.models.schedule import Schedule, ScheduleDraft
from goalflow.utils.text import non_empty


class TrackingCategory(str, Enum):
    """Focus areas a goal can belong to."""

    HEALTH = "health"
    FITNESS = "fitness"
    PRODUCTIVITY = "productivity"
    HABITS = "habits"
    MOOD = "mood"
    LEARNING = "learning"
    SOCIAL = "social"
    FINANCE = "finance"
    CUSTOM = "custom"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class GoalDraft(BaseModel):
    """In-memory goal being assembled by a creation or edit flow."""

    title: str = ""
    motivation: str = ""
    category: Optional[TrackingCategory] = None
    custom_category_label: str = ""
    question_drafts: list[QuestionDraft] = Field(default_factory=list)
    schedule: ScheduleDraft = Field(default_factory=ScheduleDraft)
    celebration_message: str = ""

    @property
    def has_custom_category(self) -> bool:
        return self.category is TrackingCategory.CUSTOM

    @property
    def normalized_custom_category_label(self) -> Optional[str]:
        return non_empty(self.custom_category_label)

    @property
    def has_resolved_category(self) -> bool:
        if self.category is None:
            return False
        if self.has_custom_category:
            return self.normalized_custom_category_label is not None
        return True


class GoalUpdate(BaseModel):
    """Goal update model - all fields optional."""

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[TrackingCategory] = None
    custom_category_label: Optional[str] = None
    is_active: Optional[bool] = None


class Goal(BaseModel):
    """Full goal model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    title: str
    description: str = ""
    category: TrackingCategory
    custom_category_label: Optional[str] = None
    is_active: bool = True
    schedule: Schedule
    questions: list[Question] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}

    @property
    def category_label(self) -> str:
        if self.category is TrackingCategory.CUSTOM and self.custom_category_label:
            return self.custom_category_label
        return self.category.display_name

    @property
    def active_questions(self) -> list[Question]:
        return [question for question in self.questions if question.is_active]
