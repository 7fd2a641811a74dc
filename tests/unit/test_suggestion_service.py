"""Tests for GoalSuggestionService."""
import json

import httpx
import pytest


def _service(content):
    from goalflow.services.suggestion_service import GoalSuggestionService
    from goalflow.utils.llm import ChatCompletionsClient

    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": json.dumps(content)}}]})

    client = ChatCompletionsClient(
        url="http://llm.test/v1/chat/completions",
        transport=httpx.MockTransport(handler),
    )
    return GoalSuggestionService(client)


class TestMapResponseType:
    """Tests for response type aliases."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("yes_no", "boolean"),
            ("Rating", "scale"),
            ("multi-select", "multiple_choice"),
            ("open_ended", "text"),
            ("count", "numeric"),
            ("slider", "slider"),
        ],
    )
    def test_aliases(self, raw, expected):
        """Test known aliases map to their response type."""
        from goalflow.services.suggestion_service import map_response_type

        assert map_response_type(raw).value == expected

    def test_unknown_alias(self):
        """Test an unknown name maps to nothing."""
        from goalflow.services.suggestion_service import map_response_type

        assert map_response_type("dropdown") is None


class TestParseSuggestions:
    """Tests for decoding the suggestions array."""

    def test_blank_prompts_are_dropped(self):
        """Test entries without a prompt are skipped."""
        from goalflow.services.suggestion_service import parse_suggestions

        suggestions = parse_suggestions({"suggestions": [
            {"prompt": "  ", "response_type": "boolean"},
            {"prompt": "How energized do you feel?", "response_type": "rating",
             "minimum_value": 1, "maximum_value": 5, "rationale": "Energy tracks sleep"},
        ]})

        assert len(suggestions) == 1
        assert suggestions[0].prompt == "How energized do you feel?"
        assert suggestions[0].validation_rules.maximum_value == 5
        assert suggestions[0].rationale == "Energy tracks sleep"

    def test_unsupported_type(self):
        """Test an unknown response type fails the whole reply."""
        from goalflow.services.suggestion_service import GoalSuggestionError, parse_suggestions

        with pytest.raises(GoalSuggestionError, match="unsupported response type: dropdown"):
            parse_suggestions({"suggestions": [{"prompt": "Pick one", "response_type": "dropdown"}]})

    def test_missing_array(self):
        """Test a reply without a suggestions array cannot be decoded."""
        from goalflow.services.suggestion_service import GoalSuggestionError, parse_suggestions

        with pytest.raises(GoalSuggestionError) as exc_info:
            parse_suggestions({"ideas": []})
        assert str(exc_info.value) == GoalSuggestionError.DECODING_FAILED


@pytest.mark.asyncio
class TestGoalSuggestionService:
    """Tests for the suggestion request."""

    async def test_suggestions_success(self):
        """Test options are kept in order."""
        from goalflow.models.question import ResponseType

        service = _service({"suggestions": [
            {"prompt": "How was lunch?", "response_type": "multiple_choice",
             "options": ["Healthy", " Fast food ", ""]},
        ]})

        suggestions = await service.suggestions("Eat better", "Cook more at home")

        assert suggestions[0].response_type is ResponseType.MULTIPLE_CHOICE
        assert suggestions[0].options == ["Healthy", "Fast food"]

    async def test_missing_input(self):
        """Test empty title and description are refused."""
        from goalflow.services.suggestion_service import GoalSuggestionError

        service = _service({"suggestions": []})

        with pytest.raises(GoalSuggestionError) as exc_info:
            await service.suggestions("  ", "")
        assert str(exc_info.value) == GoalSuggestionError.MISSING_INPUT

    async def test_empty_payload(self):
        """Test a reply with no usable entries is an error."""
        from goalflow.services.suggestion_service import GoalSuggestionError

        service = _service({"suggestions": [{"prompt": "", "response_type": "text"}]})

        with pytest.raises(GoalSuggestionError) as exc_info:
            await service.suggestions("Read more")
        assert str(exc_info.value) == GoalSuggestionError.EMPTY_PAYLOAD

    async def test_unavailable(self):
        """Test an unconfigured endpoint reports unavailability."""
        from goalflow.services.suggestion_service import GoalSuggestionError, GoalSuggestionService
        from goalflow.utils.llm import ChatCompletionsClient

        service = GoalSuggestionService(ChatCompletionsClient(url=None))

        with pytest.raises(GoalSuggestionError, match="not available"):
            await service.suggestions("Read more")
