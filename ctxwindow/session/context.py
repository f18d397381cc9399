"""Context window management for long conversations.

The manager keeps a conversation inside a model's token budget. It returns
the messages unchanged when they fit. When they don't, it truncates the
oldest turns, or summarizes them when the conversation is past the
summarization threshold. When anything but model lookup fails, it falls back
to the first system message plus the last message and reports
``total_tokens == -1``.
"""

import logging
import math
from typing import Callable

from .events import ErrorCategory, ErrorEvent, ErrorEventEmitter, ErrorListener
from .message import Message, PreparedMessages
from .summarize import summarize_messages
from .tokens import TokenAccountant, TokenCache
from .truncate import minimal_message_set, split_system_messages, truncate_messages
from ctxwindow.config.schema import ContextWindowOptions
from ctxwindow.errors import ModelNotFoundError, TokenCalculationError

logger = logging.getLogger(__name__)


class ContextWindowManager:
    """Prepares message lists so they fit a model's context window.

    Args:
        router: Object providing ``get_model_by_id(model_id)`` and
            ``get_client_for_model(model_id)``. Defaults to a ``ModelRouter``
            over the built-in model catalogue.
        options: Default tuning options. ``prepare_messages`` can override
            them per call.
        cache: Token cache owned by this manager. A fresh one is created if
            omitted.
        events: Emitter that receives error events.
    """

    def __init__(
        self,
        router=None,
        options: ContextWindowOptions | None = None,
        cache: TokenCache | None = None,
        events: ErrorEventEmitter | None = None,
    ):
        if router is None:
            from ctxwindow.provider.router import ModelRouter
            router = ModelRouter()

        self.router = router
        self.options = options.model_copy() if options is not None else ContextWindowOptions()
        self.events = events or ErrorEventEmitter()
        self.accountant = TokenAccountant(router, cache)

    @property
    def token_cache(self) -> TokenCache:
        return self.accountant.cache

    def configure(self, **changes) -> ContextWindowOptions:
        """Update default options. Nothing changes unless every value validates."""
        for name in changes:
            if name not in ContextWindowOptions.model_fields:
                raise ValueError(f"Unknown context window option: {name}")
        self.options = ContextWindowOptions.model_validate({**self.options.model_dump(), **changes})
        return self.options

    def _resolve_options(self, options: ContextWindowOptions | None) -> ContextWindowOptions:
        """Overlay the fields explicitly set on ``options`` onto the manager defaults"""
        if options is None:
            return self.options
        overrides = {name: getattr(options, name) for name in options.model_fields_set}
        return self.options.model_copy(update=overrides)

    def on_error(self, listener: ErrorListener) -> Callable[[], None]:
        """Subscribe to error events. Returns an unsubscribe callable."""
        return self.events.on(listener)

    def _log_debug(self, options: ContextWindowOptions, message: str):
        if options.debug:
            logger.debug(f"[ContextWindowManager] {message}")

    async def calculate_total_tokens(self, messages: list[Message], model_id: str) -> int:
        """Total tokens for ``messages``.

        Raises:
            TokenCalculationError: the estimator failed for any message. A
                ``TOKEN_CALCULATION_ERROR`` event is emitted first.
        """
        try:
            return await self.accountant.total_tokens(messages, model_id)
        except Exception as e:
            self.events.emit(ErrorEvent.from_exception(
                ErrorCategory.TOKEN_CALCULATION_ERROR, e,
                source="calculate_total_tokens", model_id=model_id,
            ))
            if isinstance(e, TokenCalculationError):
                raise
            raise TokenCalculationError(
                f"Failed to calculate tokens for {model_id}: {e}", model_id=model_id,
            ) from e

    async def summarize_conversation(
        self,
        messages: list[Message],
        options: ContextWindowOptions | None = None,
    ) -> Message:
        """Summarize ``messages`` into one ``is_summary`` message. Never raises for oracle errors."""
        options = self._resolve_options(options)
        return await summarize_messages(
            messages,
            self.router,
            options.summarization_model,
            events=self.events,
            source="summarize_conversation",
        )

    async def prepare_messages(
        self,
        messages: list[Message],
        model_id: str,
        options: ContextWindowOptions | None = None,
    ) -> PreparedMessages:
        """Fit ``messages`` into the context window of ``model_id``.

        Raises:
            ModelNotFoundError: ``model_id`` is not in the model registry.
                Every other failure produces the minimal fallback result.

        Only the fields explicitly set on ``options`` override the manager's
        defaults for this call.
        """
        options = self._resolve_options(options)

        model = self.router.get_model_by_id(model_id)
        if not model:
            raise ModelNotFoundError(model_id)

        try:
            return await self._prepare(messages, model_id, model.context_window_tokens, options)
        except Exception as e:
            self.events.emit(ErrorEvent.from_exception(
                ErrorCategory.CONTEXT_WINDOW_ERROR, e,
                source="prepare_messages", model_id=model_id,
            ))
            fallback = minimal_message_set(messages)
            self._log_debug(options, f"Falling back to {len(fallback)} messages after error: {e}")
            return PreparedMessages(messages=fallback, was_summarized=False, total_tokens=-1)

    async def _prepare(
        self,
        messages: list[Message],
        model_id: str,
        context_window: int,
        options: ContextWindowOptions,
    ) -> PreparedMessages:
        available = context_window - options.reserved_tokens
        total = await self.calculate_total_tokens(messages, model_id)

        self._log_debug(
            options,
            f"{total} tokens for {model_id}, {available} usable "
            f"({context_window} - {options.reserved_tokens} reserved)",
        )

        if total <= available:
            return PreparedMessages(messages=messages, was_summarized=False, total_tokens=total)

        if total <= options.max_tokens_before_summarization:
            self._log_debug(options, "Over budget but under summarization threshold, truncating")
            truncated = await truncate_messages(messages, model_id, available, self.accountant)
            # Reports the pre-truncation total
            return PreparedMessages(messages=truncated, was_summarized=False, total_tokens=total)

        system_messages, non_system_messages = split_system_messages(messages)
        split_index = max(1, math.floor(len(non_system_messages) * options.summarization_ratio))
        to_summarize = non_system_messages[:split_index]
        to_keep = non_system_messages[split_index:]

        self._log_debug(
            options,
            f"Over summarization threshold ({total} > {options.max_tokens_before_summarization}), "
            f"summarizing {len(to_summarize)} of {len(non_system_messages)} messages",
        )

        summary = await self.summarize_conversation(to_summarize, options)
        assembled = [*system_messages, summary, *to_keep]
        new_total = await self.calculate_total_tokens(assembled, model_id)

        self._log_debug(options, f"After summarization: {new_total} tokens (limit {available})")

        if new_total <= available:
            return PreparedMessages(messages=assembled, was_summarized=True, total_tokens=new_total)

        self._log_debug(options, "Still over budget after summarization, truncating")
        truncated = await truncate_messages(assembled, model_id, available, self.accountant)
        return PreparedMessages(messages=truncated, was_summarized=True, total_tokens=new_total)
