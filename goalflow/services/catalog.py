"""Built-in prompt templates and cadence presets."""
from typing import Iterable, Optional

from goalflow.models.goal import TrackingCategory
from goalflow.models.question import ResponseType, ValidationRules
from goalflow.models.schedule import WORKWEEK, Frequency, ScheduleTime, Weekday
from goalflow.models.suggestion import CadencePreset, PromptBlueprint, PromptTemplate


C = TrackingCategory

PROMPT_TEMPLATES: tuple[PromptTemplate, ...] = (
    PromptTemplate(
        id="fitness-workout",
        title="Did you move today?",
        subtitle="Track whether you completed your planned workout.",
        categories=frozenset({C.FITNESS, C.HEALTH, C.HABITS}),
        icon_name="figure.run",
        blueprint=PromptBlueprint(
            text="Did you complete your planned workout?",
            response_type=ResponseType.BOOLEAN,
            validation_rules=ValidationRules(allows_empty=False),
        ),
    ),
    PromptTemplate(
        id="fitness-minutes",
        title="Active minutes",
        subtitle="Log how long you were active to see trends over time.",
        categories=frozenset({C.FITNESS, C.HEALTH}),
        icon_name="timer",
        blueprint=PromptBlueprint(
            text="How many active minutes did you get?",
            response_type=ResponseType.NUMERIC,
            validation_rules=ValidationRules(minimum_value=0, maximum_value=180, allows_empty=False),
        ),
    ),
    PromptTemplate(
        id="mood-check-in",
        title="Mood check-in",
        subtitle="Capture how you feel on a simple scale.",
        categories=frozenset({C.MOOD, C.HABITS, C.HEALTH}),
        icon_name="face.smiling",
        blueprint=PromptBlueprint(
            text="How did you feel overall today?",
            response_type=ResponseType.SCALE,
            validation_rules=ValidationRules(minimum_value=1, maximum_value=5, allows_empty=False),
        ),
    ),
    PromptTemplate(
        id="productivity-focus",
        title="Focus review",
        subtitle="Reflect on how focused you felt.",
        categories=frozenset({C.PRODUCTIVITY, C.LEARNING}),
        icon_name="brain.head.profile",
        blueprint=PromptBlueprint(
            text="How focused did you feel today?",
            response_type=ResponseType.SCALE,
            validation_rules=ValidationRules(minimum_value=1, maximum_value=5, allows_empty=False),
        ),
    ),
    PromptTemplate(
        id="productivity-progress",
        title="Progress log",
        subtitle="Capture a quick note on what moved forward.",
        categories=frozenset({C.PRODUCTIVITY, C.LEARNING}),
        icon_name="text.badge.checkmark",
        blueprint=PromptBlueprint(
            text="What did you make progress on today?",
            response_type=ResponseType.TEXT,
            validation_rules=ValidationRules(allows_empty=False),
        ),
    ),
    PromptTemplate(
        id="finance-spending",
        title="Spending check",
        subtitle="Track discretionary spending to stay mindful.",
        categories=frozenset({C.FINANCE}),
        icon_name="creditcard",
        blueprint=PromptBlueprint(
            text="How much did you spend on wants today?",
            response_type=ResponseType.NUMERIC,
            validation_rules=ValidationRules(minimum_value=0, maximum_value=500, allows_empty=False),
        ),
    ),
    PromptTemplate(
        id="social-connection",
        title="Reach out",
        subtitle="Remind yourself to connect with someone.",
        categories=frozenset({C.SOCIAL, C.HABITS}),
        icon_name="bubble.left.and.text.bubble.right",
        blueprint=PromptBlueprint(
            text="Did you connect with someone you care about today?",
            response_type=ResponseType.BOOLEAN,
            validation_rules=ValidationRules(allows_empty=False),
        ),
    ),
    PromptTemplate(
        id="custom-celebration",
        title="Celebrate a win",
        subtitle="Capture a highlight to reinforce progress.",
        icon_name="sparkles",
        blueprint=PromptBlueprint(
            text="What win are you celebrating today?",
            response_type=ResponseType.TEXT,
            validation_rules=ValidationRules(allows_empty=True),
        ),
    ),
)

CADENCE_PRESETS: tuple[CadencePreset, ...] = (
    CadencePreset(
        id="daily",
        title="Daily",
        subtitle="Check in once every day.",
        icon_name="sun.max",
        frequency=Frequency.DAILY,
    ),
    CadencePreset(
        id="weekdays",
        title="Weekdays",
        subtitle="Stay accountable Monday through Friday.",
        icon_name="calendar",
        frequency=Frequency.WEEKLY,
        selected_weekdays=WORKWEEK,
    ),
    CadencePreset(
        id="weekly",
        title="Weekly",
        subtitle="Pick a day for a deeper reflection.",
        icon_name="calendar.badge.clock",
        frequency=Frequency.WEEKLY,
        selected_weekdays=frozenset({Weekday.SUNDAY}),
    ),
    CadencePreset(
        id="custom",
        title="Custom rhythm",
        subtitle="Choose an every X days interval.",
        icon_name="dial.medium",
        frequency=Frequency.CUSTOM,
        interval_day_count=3,
    ),
)

# 8:30, 12:30, 20:00
RECOMMENDED_TIMES: tuple[ScheduleTime, ...] = (
    ScheduleTime(hour=8, minute=30),
    ScheduleTime(hour=12, minute=30),
    ScheduleTime(hour=20, minute=0),
)


def templates(category: Optional[TrackingCategory] = None) -> list[PromptTemplate]:
    """
    Templates relevant to a category.

    Category-agnostic templates are always included. Falls back to the full
    catalog when nothing matches.
    """
    if category is None:
        return list(PROMPT_TEMPLATES)
    filtered = [
        template
        for template in PROMPT_TEMPLATES
        if template.is_category_agnostic or category in template.categories
    ]
    return filtered or list(PROMPT_TEMPLATES)


def top_templates(category: Optional[TrackingCategory] = None, limit: int = 3) -> list[PromptTemplate]:
    return templates(category)[:limit]


def additional_templates(
    category: Optional[TrackingCategory],
    excluding: Iterable[str],
) -> list[PromptTemplate]:
    excluded = set(excluding)
    return [template for template in templates(category) if template.id not in excluded]


def get_template(template_id: str) -> Optional[PromptTemplate]:
    return next((template for template in PROMPT_TEMPLATES if template.id == template_id), None)


def get_cadence_preset(preset_id: str) -> Optional[CadencePreset]:
    return next((preset for preset in CADENCE_PRESETS if preset.id == preset_id), None)


def recommended_times() -> list[ScheduleTime]:
    return list(RECOMMENDED_TIMES)
