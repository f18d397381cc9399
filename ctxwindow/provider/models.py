"""Model metadata registry"""

from dataclasses import dataclass


@dataclass
class ModelProfile:
    """Static facts about a model"""
    id: str
    provider: str
    context_window_tokens: int
    api_name: str | None = None
    display_name: str | None = None
    max_output_tokens: int | None = None

    @property
    def request_name(self) -> str:
        """Name sent to the provider's API"""
        return self.api_name or self.id


DEFAULT_MODELS = [
    ModelProfile("claude-3-7-sonnet", "anthropic", 200000, api_name="claude-3-7-sonnet-latest",
                 display_name="Claude 3.7 Sonnet", max_output_tokens=8192),
    ModelProfile("claude-3-5-haiku", "anthropic", 200000, api_name="claude-3-5-haiku-latest",
                 display_name="Claude 3.5 Haiku", max_output_tokens=8192),
    ModelProfile("claude-sonnet-4", "anthropic", 200000, api_name="claude-sonnet-4-20250514",
                 display_name="Claude Sonnet 4", max_output_tokens=8192),
    ModelProfile("gpt-4o", "openai", 128000, display_name="GPT-4o", max_output_tokens=16384),
    ModelProfile("gpt-4o-mini", "openai", 128000, display_name="GPT-4o mini", max_output_tokens=16384),
    ModelProfile("gpt-4-turbo", "openai", 128000, display_name="GPT-4 Turbo", max_output_tokens=4096),
    ModelProfile("local-8k", "local", 8000, display_name="Local heuristic (8k)"),
    ModelProfile("local-32k", "local", 32000, display_name="Local heuristic (32k)"),
]

DEFAULT_ALIASES = {
    "claude": "claude-3-7-sonnet",
    "claude-sonnet": "claude-3-7-sonnet",
    "claude-haiku": "claude-3-5-haiku",
    "gpt-4": "gpt-4-turbo",
}


class ModelRegistry:
    """Looks up model profiles by id or alias"""

    def __init__(self, models: list[ModelProfile] | None = None, aliases: dict[str, str] | None = None):
        self._models: dict[str, ModelProfile] = {}
        self.aliases = dict(DEFAULT_ALIASES if aliases is None else aliases)
        for profile in DEFAULT_MODELS if models is None else models:
            self.register(profile)

    def register(self, profile: ModelProfile):
        self._models[profile.id] = profile

    def resolve_alias(self, model_id: str) -> str:
        return self.aliases.get(model_id, model_id)

    def get_model_by_id(self, model_id: str) -> ModelProfile | None:
        """Return the profile for ``model_id``, or None if it is unknown"""
        return self._models.get(self.resolve_alias(model_id))

    def list_models(self) -> list[ModelProfile]:
        return sorted(self._models.values(), key=lambda p: (p.provider, p.id))
