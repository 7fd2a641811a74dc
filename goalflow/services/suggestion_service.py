"""Goal suggestion service - tracking question ideas from a language model."""
import logging
from typing import Any, Optional

from goalflow.models.question import ResponseType, ValidationRules
from goalflow.models.suggestion import GoalSuggestion
from goalflow.utils.llm import ChatCompletionsClient, LLMRequestError, LLMUnavailableError
from goalflow.utils.text import trimmed


logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "You help people craft concise, actionable goal-tracking questions. "
    "Reply only with valid JSON."
)

_RESPONSE_TYPE_ALIASES: dict[str, ResponseType] = {
    **dict.fromkeys(["boolean", "bool", "yes_no", "yes-no", "yes/no"], ResponseType.BOOLEAN),
    **dict.fromkeys(["numeric", "number", "count", "integer", "float"], ResponseType.NUMERIC),
    **dict.fromkeys(["scale", "rating", "likert"], ResponseType.SCALE),
    **dict.fromkeys(
        ["multiple_choice", "multiple-choice", "multiplechoice", "multi_select", "multi-select", "multi"],
        ResponseType.MULTIPLE_CHOICE,
    ),
    **dict.fromkeys(["text", "note", "freeform", "open_ended", "open-ended"], ResponseType.TEXT),
    **dict.fromkeys(["time", "timestamp"], ResponseType.TIME),
    "slider": ResponseType.SLIDER,
}


class GoalSuggestionError(ValueError):
    """Suggestions could not be produced."""

    MISSING_INPUT = "Add a goal title or description before generating suggestions."
    EMPTY_PAYLOAD = "The model did not return any suggestions."
    DECODING_FAILED = "We couldn't understand the model response."


def map_response_type(raw: str) -> Optional[ResponseType]:
    """
    Map a model-provided response type name to a ResponseType.

    Examples:
        >>> map_response_type(" Yes/No ")
        <ResponseType.BOOLEAN: 'boolean'>
        >>> map_response_type("dropdown") is None
        True
    """
    return _RESPONSE_TYPE_ALIASES.get(trimmed(raw).lower())


def build_prompt(title: str, description: str, limit: int) -> str:
    prompt = f"Goal title: {title}\n"
    if description:
        prompt += f"Goal description: {description}\n"
    prompt += (
        f"\nReturn {limit} tracking question suggestions as a JSON object with a `suggestions` array. "
        "Each entry needs: `prompt` (string), `response_type` (boolean, numeric, scale, "
        "multiple_choice, text, slider, or time), optional `options` (array of strings), "
        "optional `rationale` (string), optional `minimum_value`, `maximum_value`, and "
        "`allows_empty`. Do not include any other text."
    )
    return prompt


def parse_suggestions(payload: dict[str, Any]) -> list[GoalSuggestion]:
    """
    Turn the model's ``suggestions`` array into GoalSuggestion objects.

    Entries with a blank prompt are dropped.

    Raises:
        GoalSuggestionError: If the payload is malformed or names an
            unsupported response type
    """
    entries = payload.get("suggestions")
    if not isinstance(entries, list):
        raise GoalSuggestionError(GoalSuggestionError.DECODING_FAILED)

    suggestions = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise GoalSuggestionError(GoalSuggestionError.DECODING_FAILED)
        prompt = trimmed(entry.get("prompt"))
        if not prompt:
            continue

        raw_type = str(entry.get("response_type", ""))
        response_type = map_response_type(raw_type)
        if response_type is None:
            raise GoalSuggestionError(f"The model suggested an unsupported response type: {raw_type}.")

        rules = None
        if any(key in entry for key in ("minimum_value", "maximum_value", "allows_empty")):
            rules = ValidationRules(
                minimum_value=entry.get("minimum_value"),
                maximum_value=entry.get("maximum_value"),
                allows_empty=entry.get("allows_empty", True),
            )

        suggestions.append(GoalSuggestion(
            prompt=prompt,
            response_type=response_type,
            options=[trimmed(option) for option in entry.get("options") or [] if trimmed(option)],
            rationale=trimmed(entry.get("rationale")) or None,
            validation_rules=rules,
        ))
    return suggestions


class GoalSuggestionService:
    """Asks the language model for tracking question ideas."""

    def __init__(self, client: Optional[ChatCompletionsClient] = None):
        self.client = client or ChatCompletionsClient.from_settings()

    async def suggestions(self, title: str, description: str = "", limit: int = 3) -> list[GoalSuggestion]:
        """
        Generate tracking question suggestions.

        Args:
            title: Goal title
            description: Motivation and other context
            limit: How many suggestions to ask for

        Returns:
            Parsed suggestions (never empty)

        Raises:
            GoalSuggestionError: On missing input, unavailable service or bad reply
        """
        title = trimmed(title)
        description = trimmed(description)
        if not title and not description:
            raise GoalSuggestionError(GoalSuggestionError.MISSING_INPUT)

        try:
            payload = await self.client.complete_json(
                INSTRUCTIONS,
                build_prompt(title, description, max(1, limit)),
            )
        except LLMUnavailableError:
            raise GoalSuggestionError("Suggestions are not available right now.")
        except LLMRequestError as e:
            logger.warning("Suggestion request failed", extra={"error": str(e)})
            raise GoalSuggestionError(GoalSuggestionError.DECODING_FAILED)

        suggestions = parse_suggestions(payload)
        if not suggestions:
            raise GoalSuggestionError(GoalSuggestionError.EMPTY_PAYLOAD)
        return suggestions
