"""Anthropic provider implementation over the Messages API"""

import json
import logging
import os
from typing import AsyncIterator

import httpx

from .base import Provider, StreamChunk
from ctxwindow.errors import ProviderError

logger = logging.getLogger(__name__)


class AnthropicProvider(Provider):
    """Provider for Anthropic Claude models"""

    API_URL = "https://api.anthropic.com"
    API_VERSION = "2023-06-01"

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
        max_tokens: int = 4096,
    ):
        super().__init__(model)
        self.api_key = api_key
        self.base_url = (base_url or self.API_URL).rstrip("/")
        self.timeout = timeout
        self.max_tokens = max_tokens

    def _get_headers(self) -> dict:
        """Get headers for API request"""
        api_key = self.api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ProviderError("No Anthropic credentials found. Set ANTHROPIC_API_KEY.")
        return {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": self.API_VERSION,
        }

    def _convert_messages(self, messages: list[dict]) -> list[dict]:
        """Convert internal message format to Anthropic format.

        System turns go in the request's ``system`` field, so they are skipped here.
        """
        return [
            {"role": msg["role"], "content": msg.get("content", "")}
            for msg in messages
            if msg.get("role") in ("user", "assistant")
        ]

    @staticmethod
    def _error_message(status_code: int, body: bytes) -> str:
        try:
            error_json = json.loads(body)
            error_msg = error_json.get("error", {}).get("message", str(error_json))
        except (json.JSONDecodeError, AttributeError):
            error_msg = body.decode(errors="replace")[:500]
        return f"API error ({status_code}): {error_msg}"

    async def estimate_tokens(self, content: str) -> int:
        """Count tokens with the count_tokens endpoint"""
        if not content:
            return 0

        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": content}],
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                f"{self.base_url}/v1/messages/count_tokens",
                headers=self._get_headers(),
                json=body,
            )

        if response.status_code != 200:
            raise ProviderError(self._error_message(response.status_code, response.content))

        return int(response.json()["input_tokens"])

    async def stream(
        self,
        system: str | None,
        messages: list[dict],
    ) -> AsyncIterator[StreamChunk]:
        """Stream a response from Claude using raw HTTP"""
        body = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": self._convert_messages(messages),
            "stream": True,
        }
        if system:
            body["system"] = system

        logger.debug(f"Anthropic request to {self.model} with {len(body['messages'])} messages")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            async with client.stream(
                "POST",
                f"{self.base_url}/v1/messages",
                headers=self._get_headers(),
                json=body,
            ) as response:
                if response.status_code != 200:
                    error_text = await response.aread()
                    raise ProviderError(self._error_message(response.status_code, error_text))

                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue

                    data = line[6:]
                    if data == "[DONE]":
                        break

                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError:
                        continue

                    event_type = event.get("type")

                    if event_type == "content_block_delta":
                        delta = event.get("delta", {})
                        if delta.get("type") == "text_delta":
                            yield StreamChunk(type="text", content=delta.get("text", ""))

                    elif event_type == "error":
                        error = event.get("error", {})
                        raise ProviderError(f"Stream error: {error.get('message', str(error))}")
