"""Tests for goal inference and the keyword fallback."""
import json

import httpx
import pytest


def _reply(content):
    """Mock transport returning one chat completion."""

    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": json.dumps(content)}}]})

    return httpx.MockTransport(handler)


def _client(transport):
    from goalflow.utils.llm import ChatCompletionsClient

    return ChatCompletionsClient(url="http://llm.test/v1/chat/completions", transport=transport)


CONFIGURATION = {
    "title": "Drink more water",
    "category": "health",
    "tracking_method": "count",
    "frequency": "daily",
    "tracking_question": "How many glasses did you drink?",
    "suggested_reminder_slot": "midday",
    "motivational_message": "Hydration keeps you sharp all day long.",
    "confidence_score": 0.92,
}


@pytest.mark.asyncio
class TestGoalInferenceService:
    """Tests for model-backed inference."""

    async def test_infer_success(self):
        """Test a confident reply becomes a configuration."""
        from goalflow.models.inference import InferredCategory, InferredTimeSlot
        from goalflow.services.inference_service import GoalInferenceService

        service = GoalInferenceService(_client(_reply(CONFIGURATION)))

        config = await service.infer_goal_configuration("drink more water")

        assert config.category is InferredCategory.HEALTH
        assert config.suggested_reminder_slot is InferredTimeSlot.MIDDAY
        assert config.confidence_score == 0.92

    async def test_request_carries_prompt_and_key(self):
        """Test the request body names the model and the user's text."""
        from goalflow.services.inference_service import GoalInferenceService
        from goalflow.utils.llm import ChatCompletionsClient

        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"choices": [{"message": {"content": json.dumps(CONFIGURATION)}}]})

        client = ChatCompletionsClient(
            url="http://llm.test/v1/chat/completions",
            api_key="secret",
            model="test-model",
            transport=httpx.MockTransport(handler),
        )
        await GoalInferenceService(client).infer_goal_configuration("  drink more water ")

        assert seen["auth"] == "Bearer secret"
        assert seen["body"]["model"] == "test-model"
        assert seen["body"]["response_format"] == {"type": "json_object"}
        assert '"drink more water"' in seen["body"]["messages"][1]["content"]

    async def test_low_confidence(self):
        """Test confidence below the threshold is rejected."""
        from goalflow.services.inference_service import GoalInferenceService, LowConfidenceError

        service = GoalInferenceService(_client(_reply({**CONFIGURATION, "confidence_score": 0.1})))

        with pytest.raises(LowConfidenceError):
            await service.infer_goal_configuration("something")

    async def test_timeout_is_generation_failure(self):
        """Test a timed out request fails generation."""
        from goalflow.services.inference_service import GenerationFailedError, GoalInferenceService

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        service = GoalInferenceService(_client(httpx.MockTransport(handler)))

        with pytest.raises(GenerationFailedError, match="Failed to analyze goal"):
            await service.infer_goal_configuration("drink water")

    async def test_server_error_is_generation_failure(self):
        """Test HTTP errors fail generation."""
        from goalflow.services.inference_service import GenerationFailedError, GoalInferenceService

        service = GoalInferenceService(_client(httpx.MockTransport(lambda request: httpx.Response(503))))

        with pytest.raises(GenerationFailedError):
            await service.infer_goal_configuration("drink water")

    async def test_malformed_configuration(self):
        """Test a reply missing fields fails generation."""
        from goalflow.services.inference_service import GenerationFailedError, GoalInferenceService

        service = GoalInferenceService(_client(_reply({"title": "Water"})))

        with pytest.raises(GenerationFailedError):
            await service.infer_goal_configuration("drink water")

    async def test_unconfigured_endpoint(self):
        """Test inference without an endpoint is unavailable."""
        from goalflow.services.inference_service import GoalInferenceService, InferenceUnavailableError
        from goalflow.utils.llm import ChatCompletionsClient

        service = GoalInferenceService(ChatCompletionsClient(url=None))

        assert service.is_available is False
        with pytest.raises(InferenceUnavailableError):
            await service.infer_goal_configuration("drink water")


class TestFallbackGoalInference:
    """Tests for keyword inference."""

    def test_water_goal(self):
        """Test a water goal maps to health, count and midday."""
        from goalflow.models.inference import (
            InferredCategory,
            InferredFrequency,
            InferredTimeSlot,
            InferredTrackingMethod,
        )
        from goalflow.services.inference_service import FallbackGoalInference

        config = FallbackGoalInference.infer("Drink more water")

        assert config.title == "Drink more water"
        assert config.category is InferredCategory.HEALTH
        assert config.tracking_method is InferredTrackingMethod.COUNT
        assert config.frequency is InferredFrequency.DAILY
        assert config.suggested_reminder_slot is InferredTimeSlot.MIDDAY
        assert config.tracking_question == "How many glasses of water did you drink?"
        assert config.confidence_score == 0.7

    def test_fallback_is_deterministic(self):
        """Test the same input always yields the same configuration."""
        from goalflow.services.inference_service import FallbackGoalInference

        assert FallbackGoalInference.infer("Meditate") == FallbackGoalInference.infer("Meditate")

    @pytest.mark.parametrize(
        "text,category,method,slot",
        [
            ("Exercise in the morning", "fitness", "yes_no", "morning"),
            ("Track my mood", "mood", "scale", "morning"),
            ("Gratitude journal", "mood", "journal", "night"),
            ("Budget check", "finance", "yes_no", "evening"),
            ("Floss", "habits", "yes_no", "evening"),
        ],
    )
    def test_keyword_rules(self, text, category, method, slot):
        """Test category, method and slot keyword rules."""
        from goalflow.services.inference_service import FallbackGoalInference

        config = FallbackGoalInference.infer(text)

        assert config.category.value == category
        assert config.tracking_method.value == method
        assert config.suggested_reminder_slot.value == slot

    def test_weekly_mention(self):
        """Test mentioning a week switches the frequency."""
        from goalflow.models.inference import InferredFrequency
        from goalflow.services.inference_service import FallbackGoalInference

        assert FallbackGoalInference.infer("Call mom every week").frequency is InferredFrequency.WEEKLY


@pytest.mark.asyncio
class TestInferWithFallback:
    """Tests for the one-attempt fallback policy."""

    async def test_uses_model_when_confident(self):
        """Test a good reply is used as is."""
        from goalflow.services.inference_service import GoalInferenceService, infer_with_fallback

        result = await infer_with_fallback(GoalInferenceService(_client(_reply(CONFIGURATION))), "water")

        assert result.used_fallback is False
        assert result.configuration.tracking_question == "How many glasses did you drink?"

    async def test_falls_back_after_single_attempt(self):
        """Test one failed request settles on the fallback."""
        from goalflow.services.inference_service import GoalInferenceService, infer_with_fallback

        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500)

        service = GoalInferenceService(_client(httpx.MockTransport(handler)))
        result = await infer_with_fallback(service, "Drink more water")

        assert len(calls) == 1
        assert result.used_fallback is True
        assert result.configuration.category.value == "health"

    async def test_no_service(self):
        """Test a missing service goes straight to the fallback."""
        from goalflow.services.inference_service import infer_with_fallback

        result = await infer_with_fallback(None, "Read 20 pages")

        assert result.used_fallback is True
        assert result.configuration.category.value == "learning"
