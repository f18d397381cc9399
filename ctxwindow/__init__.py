"""Keeps chat conversations inside a model's context window"""

from ctxwindow.config.schema import ContextWindowOptions
from ctxwindow.errors import (
    ContextWindowError,
    ModelNotFoundError,
    ProviderError,
    SummarizationError,
    TokenCalculationError,
)
from ctxwindow.session import (
    ContextWindowManager,
    ErrorCategory,
    ErrorEvent,
    Message,
    PreparedMessages,
)

__version__ = "0.1.0"

__all__ = [
    "ContextWindowError",
    "ContextWindowManager",
    "ContextWindowOptions",
    "ErrorCategory",
    "ErrorEvent",
    "Message",
    "ModelNotFoundError",
    "PreparedMessages",
    "ProviderError",
    "SummarizationError",
    "TokenCalculationError",
]
