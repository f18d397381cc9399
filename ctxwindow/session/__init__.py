from .message import Message, PreparedMessages
from .events import ErrorCategory, ErrorEvent, ErrorEventEmitter, classify_error
from .tokens import TokenAccountant, TokenCache, estimate_token_count
from .truncate import (
    TruncationLevel,
    estimate_message_tokens,
    minimal_message_set,
    progressive_truncation,
    truncate_messages,
    truncate_with_strategy,
)
from .summarize import summarize_messages, create_summary_message
from .context import ContextWindowManager

__all__ = [
    "Message",
    "PreparedMessages",
    "ErrorCategory",
    "ErrorEvent",
    "ErrorEventEmitter",
    "classify_error",
    "TokenAccountant",
    "TokenCache",
    "estimate_token_count",
    "TruncationLevel",
    "estimate_message_tokens",
    "minimal_message_set",
    "progressive_truncation",
    "truncate_with_strategy",
    "truncate_messages",
    "summarize_messages",
    "create_summary_message",
    "ContextWindowManager",
]
