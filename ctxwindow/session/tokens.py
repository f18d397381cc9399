"""Token accounting with a content-addressed cache"""

import logging
import math
from collections import OrderedDict
from typing import Protocol

from .message import Message
from ctxwindow.errors import TokenCalculationError

logger = logging.getLogger(__name__)

CacheKey = tuple[str, str, str]


def estimate_token_count(text: str) -> int:
    """Rough token count: about four characters per token for English text"""
    if not text:
        return 0
    return math.ceil(len(text) / 4)


class ClientFactory(Protocol):
    def get_client_for_model(self, model_id: str): ...


class TokenCache:
    """Maps (model id, role, content) to a token count.

    Unbounded by default. With ``max_entries`` set, the least recently used
    entry is evicted once the cache is full.
    """

    def __init__(self, max_entries: int | None = None):
        self.max_entries = max_entries
        self._entries: OrderedDict[CacheKey, int] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def key_for(model_id: str, message: Message) -> CacheKey:
        return (model_id, message.role, message.content)

    def get(self, key: CacheKey) -> int | None:
        if key not in self._entries:
            self.misses += 1
            return None
        self.hits += 1
        self._entries.move_to_end(key)
        return self._entries[key]

    def set(self, key: CacheKey, tokens: int):
        self._entries[key] = tokens
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self):
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class TokenAccountant:
    """Counts message tokens for a model, calling the estimation oracle only on cache misses"""

    def __init__(self, clients: ClientFactory, cache: TokenCache | None = None):
        self.clients = clients
        self.cache = cache if cache is not None else TokenCache()

    async def tokens_for(self, message: Message, model_id: str) -> int:
        """Token count for one message. Oracle errors propagate unchanged."""
        if message.token_count is not None:
            return message.token_count

        key = TokenCache.key_for(model_id, message)
        cached = self.cache.get(key)
        if cached is not None:
            message.token_count = cached
            return cached

        client = self.clients.get_client_for_model(model_id)
        tokens = await client.estimate_tokens(message.content)

        if isinstance(tokens, bool) or not isinstance(tokens, int) or tokens < 0:
            raise TokenCalculationError(
                f"Token estimator for {model_id} returned an invalid count: {tokens!r}",
                model_id=model_id,
            )

        # Write only after the oracle call completed
        self.cache.set(key, tokens)
        message.token_count = tokens
        return tokens

    async def total_tokens(self, messages: list[Message], model_id: str) -> int:
        """Sum of token counts. Any failure aborts the whole sum.

        Messages are counted one after another so that repeated content within
        a single call is served from the cache.
        """
        total = 0
        for message in messages:
            total += await self.tokens_for(message, model_id)
        return total
