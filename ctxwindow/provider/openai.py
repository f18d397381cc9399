"""OpenAI provider implementation"""

import logging
from typing import AsyncIterator

import openai
import tiktoken

from .base import Provider, StreamChunk

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "o200k_base"


class OpenAIProvider(Provider):
    """Provider for OpenAI GPT models. Token estimates are computed locally with tiktoken."""

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
    ):
        super().__init__(model)
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._client: openai.AsyncOpenAI | None = None
        self._encoder = None

    @property
    def client(self) -> openai.AsyncOpenAI:
        # Created on first completion
        if self._client is None:
            self._client = openai.AsyncOpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)
        return self._client

    def _get_encoder(self):
        if self._encoder is None:
            try:
                self._encoder = tiktoken.encoding_for_model(self.model)
            except KeyError:
                logger.debug(f"No tiktoken encoding registered for {self.model}, using {DEFAULT_ENCODING}")
                self._encoder = tiktoken.get_encoding(DEFAULT_ENCODING)
        return self._encoder

    async def estimate_tokens(self, content: str) -> int:
        return len(self._get_encoder().encode(content or ""))

    async def stream(
        self,
        system: str | None,
        messages: list[dict],
    ) -> AsyncIterator[StreamChunk]:
        """Stream a response from OpenAI"""
        full_messages = []
        if system:
            full_messages.append({"role": "system", "content": system})

        for msg in messages:
            full_messages.append({
                "role": msg.get("role", "user"),
                "content": msg.get("content", ""),
            })

        stream = await self.client.chat.completions.create(
            model=self.model,
            messages=full_messages,
            stream=True,
        )

        async for chunk in stream:
            delta = chunk.choices[0].delta if chunk.choices else None
            if delta and delta.content:
                yield StreamChunk(type="text", content=delta.content)
