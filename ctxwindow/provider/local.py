"""Offline provider backed by a character heuristic"""

from typing import AsyncIterator

from .base import Provider, StreamChunk
from ctxwindow.errors import ProviderError
from ctxwindow.session.tokens import estimate_token_count


class LocalProvider(Provider):
    """Estimates tokens locally at roughly four characters per token.

    It has no model behind it, so completions always fail. Summaries made
    through it degrade to the summarizer's fallback message.
    """

    async def estimate_tokens(self, content: str) -> int:
        return estimate_token_count(content)

    async def stream(
        self,
        system: str | None,
        messages: list[dict],
    ) -> AsyncIterator[StreamChunk]:
        raise ProviderError(f"Local model {self.model} cannot generate completions")
        yield  # pragma: no cover
