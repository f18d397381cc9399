"""Error events emitted by the context window manager"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    TOKEN_CALCULATION_ERROR = "TOKEN_CALCULATION_ERROR"
    LLM_SUMMARIZATION_ERROR = "LLM_SUMMARIZATION_ERROR"
    CONTEXT_WINDOW_ERROR = "CONTEXT_WINDOW_ERROR"


def classify_error(error: BaseException) -> str:
    """Bucket an exception into a coarse kind by inspecting its message.

    Returns one of ``rate_limit_exceeded``, ``context_window_exceeded``,
    ``llm_unavailable``, ``invalid_response_format`` or ``unknown``.
    """
    message = str(error).lower()

    if "rate limit" in message or "ratelimit" in message or "429" in message:
        return "rate_limit_exceeded"

    if any(s in message for s in ("context length", "maximum context", "token limit", "too long")):
        return "context_window_exceeded"

    if any(s in message for s in ("service unavailable", "server error", "timeout", "timed out", "connection")):
        return "llm_unavailable"

    if any(s in message for s in ("invalid", "format", "parse")):
        return "invalid_response_format"

    return "unknown"


@dataclass
class ErrorEvent:
    """A structured error report delivered to listeners"""
    category: ErrorCategory
    message: str
    source: str
    model_id: str | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    kind: str = "unknown"
    error_type: str | None = None

    @classmethod
    def from_exception(
        cls,
        category: ErrorCategory,
        error: BaseException,
        source: str,
        model_id: str | None = None,
    ) -> "ErrorEvent":
        return cls(
            category=category,
            message=str(error) or type(error).__name__,
            source=source,
            model_id=model_id,
            kind=classify_error(error),
            error_type=type(error).__name__,
        )

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "message": self.message,
            "source": self.source,
            "model_id": self.model_id,
            "timestamp": self.timestamp,
            "kind": self.kind,
            "error_type": self.error_type,
        }


ErrorListener = Callable[[ErrorEvent], None]


class ErrorEventEmitter:
    """Synchronous observer list for error events.

    A listener that raises is logged and skipped; it never affects the
    emitter's caller or the listeners registered after it.
    """

    def __init__(self):
        self._listeners: list[ErrorListener] = []

    def on(self, listener: ErrorListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unregisters it."""
        self._listeners.append(listener)
        return lambda: self.off(listener)

    def off(self, listener: ErrorListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, event: ErrorEvent):
        logger.error(f"[{event.category.value}] {event.source} ({event.model_id}): {event.message}")

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Error listener {listener!r} failed: {e}")
