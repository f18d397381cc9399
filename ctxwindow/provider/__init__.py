from .base import CompletionResponse, Provider, StreamChunk
from .models import ModelProfile, ModelRegistry
from .router import ModelRouter

__all__ = [
    "CompletionResponse",
    "ModelProfile",
    "ModelRegistry",
    "ModelRouter",
    "Provider",
    "StreamChunk",
]
