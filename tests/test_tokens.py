"""Tests for token accounting and the token cache"""

import pytest

from conftest import MODEL_ID, FakeProvider, FakeRouter, msg


class TestEstimateTokenCount:
    def test_empty_text(self):
        from ctxwindow.session.tokens import estimate_token_count

        assert estimate_token_count("") == 0

    def test_rounds_up(self):
        from ctxwindow.session.tokens import estimate_token_count

        assert estimate_token_count("abcd") == 1
        assert estimate_token_count("abcde") == 2
        assert estimate_token_count("x" * 400) == 100


class TestTokenCache:
    def test_get_and_set(self):
        from ctxwindow.session.tokens import TokenCache

        cache = TokenCache()
        key = (MODEL_ID, "user", "hello")

        assert cache.get(key) is None
        cache.set(key, 3)

        assert cache.get(key) == 3
        assert key in cache
        assert len(cache) == 1
        assert cache.hits == 1
        assert cache.misses == 1

    def test_key_is_content_addressed(self):
        from ctxwindow.session.tokens import TokenCache

        a = msg("user", "same text")
        b = msg("user", "same text")

        assert TokenCache.key_for(MODEL_ID, a) == TokenCache.key_for(MODEL_ID, b)
        assert TokenCache.key_for(MODEL_ID, a) != TokenCache.key_for("other", a)
        assert TokenCache.key_for(MODEL_ID, a) != TokenCache.key_for(MODEL_ID, msg("assistant", "same text"))

    def test_bounded_cache_evicts_least_recently_used(self):
        from ctxwindow.session.tokens import TokenCache

        cache = TokenCache(max_entries=2)
        cache.set(("m", "user", "a"), 1)
        cache.set(("m", "user", "b"), 2)
        cache.get(("m", "user", "a"))
        cache.set(("m", "user", "c"), 3)

        assert ("m", "user", "a") in cache
        assert ("m", "user", "b") not in cache
        assert ("m", "user", "c") in cache

    def test_clear(self):
        from ctxwindow.session.tokens import TokenCache

        cache = TokenCache()
        cache.set(("m", "user", "a"), 1)
        cache.clear()

        assert len(cache) == 0
        assert cache.hits == 0


class TestTokenAccountant:
    @pytest.mark.asyncio
    async def test_uses_message_annotation_first(self, router, provider):
        from ctxwindow.session.tokens import TokenAccountant

        accountant = TokenAccountant(router)
        message = msg("user", "hello")
        message.token_count = 42

        assert await accountant.tokens_for(message, MODEL_ID) == 42
        assert provider.estimate_calls == []

    @pytest.mark.asyncio
    async def test_cache_hit_annotates_message(self, router, provider):
        from ctxwindow.session.tokens import TokenAccountant

        provider.counts = {"hello": 7}
        accountant = TokenAccountant(router)

        first = msg("user", "hello")
        second = msg("user", "hello")
        await accountant.tokens_for(first, MODEL_ID)
        tokens = await accountant.tokens_for(second, MODEL_ID)

        assert tokens == 7
        assert second.token_count == 7
        assert provider.estimate_calls == ["hello"]

    @pytest.mark.asyncio
    async def test_oracle_errors_propagate_unchanged(self, router, provider):
        from ctxwindow.errors import ProviderError
        from ctxwindow.session.tokens import TokenAccountant

        provider.fail_estimate = True
        accountant = TokenAccountant(router)
        message = msg("user", "hello")

        with pytest.raises(ProviderError):
            await accountant.tokens_for(message, MODEL_ID)

        assert message.token_count is None
        assert len(accountant.cache) == 0

    @pytest.mark.asyncio
    async def test_missing_client_propagates(self, router):
        from ctxwindow.errors import ProviderError
        from ctxwindow.session.tokens import TokenAccountant

        accountant = TokenAccountant(router)

        with pytest.raises(ProviderError):
            await accountant.tokens_for(msg("user", "hello"), "no-such-model")

    @pytest.mark.asyncio
    async def test_rejects_negative_counts(self, router, provider):
        from ctxwindow.errors import TokenCalculationError
        from ctxwindow.session.tokens import TokenAccountant

        provider.counts = {"hello": -5}
        accountant = TokenAccountant(router)

        with pytest.raises(TokenCalculationError):
            await accountant.tokens_for(msg("user", "hello"), MODEL_ID)

    @pytest.mark.asyncio
    async def test_total_tokens_sums_messages(self, router, provider):
        from ctxwindow.session.tokens import TokenAccountant

        provider.counts = {"a": 10, "b": 20, "c": 30}
        accountant = TokenAccountant(router)

        total = await accountant.total_tokens([msg("user", "a"), msg("assistant", "b"), msg("user", "c")], MODEL_ID)

        assert total == 60

    @pytest.mark.asyncio
    async def test_total_tokens_fails_whole_batch(self):
        from ctxwindow.errors import ProviderError
        from ctxwindow.session.tokens import TokenAccountant

        class FailsOnSecond(FakeProvider):
            async def estimate_tokens(self, content):
                if content == "boom":
                    raise ProviderError("rate limit exceeded")
                return await super().estimate_tokens(content)

        accountant = TokenAccountant(FakeRouter({MODEL_ID: FailsOnSecond(MODEL_ID)}))

        with pytest.raises(ProviderError):
            await accountant.total_tokens([msg("user", "ok"), msg("user", "boom")], MODEL_ID)

    @pytest.mark.asyncio
    async def test_isolated_caches_per_accountant(self, router, provider):
        from ctxwindow.session.tokens import TokenAccountant

        await TokenAccountant(router).tokens_for(msg("user", "hello"), MODEL_ID)
        await TokenAccountant(router).tokens_for(msg("user", "hello"), MODEL_ID)

        assert provider.estimate_calls == ["hello", "hello"]
