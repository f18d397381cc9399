"""Exception types for context window management"""


class ContextWindowError(Exception):
    """Base class for context window errors"""


class ModelNotFoundError(ContextWindowError, LookupError):
    """Raised when a model id cannot be resolved in the model registry"""

    def __init__(self, model_id: str):
        self.model_id = model_id
        super().__init__(f"Model information not found for {model_id}")


class TokenCalculationError(ContextWindowError):
    """Raised when token counts cannot be computed for a message list"""

    def __init__(self, message: str, model_id: str | None = None):
        self.model_id = model_id
        super().__init__(message)


class SummarizationError(ContextWindowError):
    """Raised inside the summarizer when the completion oracle gives nothing usable"""


class ProviderError(ContextWindowError):
    """Raised when no usable client exists for a model, or a provider call fails"""
