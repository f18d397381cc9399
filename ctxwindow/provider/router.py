"""Model routing and provider selection"""

from typing import Dict, Type

from .base import Provider
from .anthropic import AnthropicProvider
from .local import LocalProvider
from .models import ModelProfile, ModelRegistry
from .openai import OpenAIProvider
from ctxwindow.config.config import Config
from ctxwindow.errors import ProviderError


class ModelRouter:
    """Model-keyed client factory and facade over the model registry"""

    # Map of provider names to provider classes
    PROVIDERS: Dict[str, Type[Provider]] = {
        "anthropic": AnthropicProvider,
        "openai": OpenAIProvider,
        "local": LocalProvider,
    }

    def __init__(self, registry: ModelRegistry | None = None, config: Config | None = None):
        self.registry = registry or ModelRegistry()
        self.config = config or Config()
        self._clients: dict[str, Provider] = {}

    @classmethod
    def from_config(cls, config: Config) -> "ModelRouter":
        """Build a router whose registry includes the configured models and aliases"""
        registry = ModelRegistry()
        registry.aliases.update(config.aliases)
        for model_id, model in config.models.items():
            registry.register(ModelProfile(
                id=model_id,
                provider=model.provider,
                context_window_tokens=model.context_window_tokens,
                api_name=model.api_name,
                display_name=model.display_name,
                max_output_tokens=model.max_output_tokens,
            ))
        return cls(registry=registry, config=config)

    def get_model_by_id(self, model_id: str) -> ModelProfile | None:
        return self.registry.get_model_by_id(model_id)

    def resolve_model(self, model_id: str) -> tuple[str, str]:
        """Resolve a model id to (provider, model name sent to the API)"""
        profile = self.registry.get_model_by_id(model_id)
        if profile:
            return profile.provider, profile.request_name

        # Parse provider/model format for models outside the catalogue
        if "/" in model_id:
            provider, name = model_id.split("/", 1)
            return provider, name

        raise ProviderError(f"No client available for model {model_id}")

    def get_client_for_model(self, model_id: str) -> Provider:
        """Get the provider instance for a model, creating it on first use"""
        if model_id in self._clients:
            return self._clients[model_id]

        provider_name, name = self.resolve_model(model_id)

        if provider_name not in self.PROVIDERS:
            raise ProviderError(
                f"Unknown provider: {provider_name}. "
                f"Available: {', '.join(self.PROVIDERS.keys())}"
            )

        provider_class = self.PROVIDERS[provider_name]
        if provider_name == "local":
            client = provider_class(name)
        else:
            settings = self.config.providers.get(provider_name)
            if settings:
                client = provider_class(
                    name,
                    api_key=settings.api_key,
                    base_url=settings.base_url,
                    timeout=settings.timeout,
                )
            else:
                client = provider_class(name)

        self._clients[model_id] = client
        return client
