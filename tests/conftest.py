"""Pytest configuration and shared fixtures"""

from typing import AsyncIterator

import pytest

from ctxwindow.errors import ProviderError
from ctxwindow.provider.base import Provider, StreamChunk
from ctxwindow.provider.models import ModelProfile, ModelRegistry
from ctxwindow.session.message import Message

MODEL_ID = "m1"
SUMMARY_MODEL_ID = "summarizer"


class FakeProvider(Provider):
    """Scripted token estimator and completion oracle that records every call"""

    def __init__(
        self,
        model: str,
        counts: dict[str, int] | None = None,
        default_count: int = 100,
        completion_text: str = "A summarized conversation.",
        fail_estimate: bool = False,
        fail_completion: bool = False,
    ):
        super().__init__(model)
        self.counts = counts or {}
        self.default_count = default_count
        self.completion_text = completion_text
        self.fail_estimate = fail_estimate
        self.fail_completion = fail_completion
        self.estimate_calls: list[str] = []
        self.completion_calls: list[dict] = []

    async def estimate_tokens(self, content: str) -> int:
        self.estimate_calls.append(content)
        if self.fail_estimate:
            raise ProviderError("Token estimation service unavailable")
        return self.counts.get(content, self.default_count)

    async def stream(
        self,
        system: str | None,
        messages: list[dict],
    ) -> AsyncIterator[StreamChunk]:
        self.completion_calls.append({"system": system, "messages": messages})
        if self.fail_completion:
            raise ProviderError("Server error: service unavailable")
        yield StreamChunk(type="text", content=self.completion_text)


class FakeRouter:
    """In-memory registry and client factory"""

    def __init__(self, clients: dict[str, Provider], context_window: int = 8000):
        self.registry = ModelRegistry(
            models=[
                ModelProfile(MODEL_ID, "fake", context_window),
                ModelProfile(SUMMARY_MODEL_ID, "fake", 100000),
            ],
            aliases={},
        )
        self.clients = clients
        self.client_requests: list[str] = []

    def get_model_by_id(self, model_id: str):
        return self.registry.get_model_by_id(model_id)

    def get_client_for_model(self, model_id: str) -> Provider:
        self.client_requests.append(model_id)
        if model_id not in self.clients:
            raise ProviderError(f"No client available for model {model_id}")
        return self.clients[model_id]


def msg(role: str, content: str) -> Message:
    return Message(role=role, content=content)


@pytest.fixture
def provider():
    """Token oracle for the conversation model"""
    return FakeProvider(MODEL_ID)


@pytest.fixture
def summarizer():
    """Completion oracle for summaries"""
    return FakeProvider(SUMMARY_MODEL_ID)


@pytest.fixture
def router(provider, summarizer):
    return FakeRouter({MODEL_ID: provider, SUMMARY_MODEL_ID: summarizer})


@pytest.fixture
def manager(router):
    from ctxwindow.config.schema import ContextWindowOptions
    from ctxwindow.session.context import ContextWindowManager

    return ContextWindowManager(
        router=router,
        options=ContextWindowOptions(summarization_model=SUMMARY_MODEL_ID),
    )


@pytest.fixture
def events(manager):
    """Every error event the manager emits"""
    received = []
    manager.on_error(received.append)
    return received
