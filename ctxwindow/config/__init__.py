from .config import Config
from .schema import ContextWindowOptions, ModelConfig, ProviderConfig

__all__ = [
    "Config",
    "ContextWindowOptions",
    "ModelConfig",
    "ProviderConfig",
]
