"""Provider abstraction for the token estimation and completion oracles"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Literal


@dataclass
class StreamChunk:
    """A chunk of streamed response from an LLM"""
    type: Literal["text"]
    content: str = ""


@dataclass
class CompletionResponse:
    """Accumulated text of a completion"""
    content: str
    model: str = ""


class Provider(ABC):
    """Base class for LLM providers.

    Each provider is bound to one model and answers two questions: how many
    tokens a piece of text costs, and what the model says to a prompt.
    """

    def __init__(self, model: str):
        self.model = model

    @abstractmethod
    async def stream(
        self,
        system: str | None,
        messages: list[dict],
    ) -> AsyncIterator[StreamChunk]:
        """Stream a response from the model"""
        pass

    @abstractmethod
    async def estimate_tokens(self, content: str) -> int:
        """Return the number of tokens ``content`` costs for this model"""
        pass

    async def completion(
        self,
        model: str | None = None,
        messages: list[dict] | None = None,
        system: str | None = None,
    ) -> CompletionResponse:
        """Run a non-streaming completion by accumulating text chunks"""
        result = ""
        async for chunk in self.stream(system=system, messages=messages or []):
            if chunk.type == "text":
                result += chunk.content
        return CompletionResponse(content=result, model=model or self.model)
