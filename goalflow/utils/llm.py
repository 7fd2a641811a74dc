"""Minimal client for an OpenAI-compatible chat completions endpoint."""
import json
import logging
from typing import Any, Optional

import httpx

from goalflow.config import settings


logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """No language model endpoint is configured."""


class LLMRequestError(RuntimeError):
    """The request failed, timed out, or the reply was not a JSON object."""


class ChatCompletionsClient:
    """Sends one system + user prompt and decodes a JSON object reply."""

    def __init__(
        self,
        url: Optional[str],
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, transport: Optional[httpx.AsyncBaseTransport] = None) -> "ChatCompletionsClient":
        return cls(
            url=settings.inference_url,
            api_key=settings.inference_api_key,
            model=settings.inference_model,
            timeout=settings.inference_timeout_seconds,
            transport=transport,
        )

    @property
    def is_available(self) -> bool:
        return bool(self.url)

    async def complete_json(self, system: str, prompt: str) -> dict[str, Any]:
        """
        Ask the model for a JSON object.

        Args:
            system: System instructions
            prompt: User prompt

        Returns:
            The decoded JSON object from the first choice

        Raises:
            LLMUnavailableError: If no endpoint is configured
            LLMRequestError: On HTTP errors, timeouts or undecodable replies
        """
        if not self.is_available:
            raise LLMUnavailableError("No language model endpoint is configured.")

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "response_format": {"type": "json_object"},
            "temperature": 0.2,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.post(self.url, json=payload, headers=headers)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPError as e:
            logger.warning("Language model request failed", extra={"error": str(e)})
            raise LLMRequestError(str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise LLMRequestError("The model reply was not valid JSON.") from e

        try:
            content = data["choices"][0]["message"]["content"]
            decoded = json.loads(content)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise LLMRequestError("The model reply was not valid JSON.") from e
        if not isinstance(decoded, dict):
            raise LLMRequestError("The model reply was not a JSON object.")
        return decoded
