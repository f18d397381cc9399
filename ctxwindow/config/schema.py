"""Configuration schemas using Pydantic"""

from pydantic import BaseModel, Field


class ContextWindowOptions(BaseModel):
    """Tuning knobs for the context window manager"""
    summarization_model: str = "claude-3-7-sonnet"
    reserved_tokens: int = Field(default=1000, ge=0)
    max_tokens_before_summarization: int = Field(default=6000, ge=0)
    summarization_ratio: float = Field(default=0.5, gt=0, le=1)
    debug: bool = False

    model_config = {"validate_assignment": True}


class ProviderConfig(BaseModel):
    """LLM provider configuration"""
    api_key: str | None = None
    base_url: str | None = None
    timeout: int = 120


class ModelConfig(BaseModel):
    """An extra entry for the model catalogue"""
    provider: str
    context_window_tokens: int = Field(gt=0)
    api_name: str | None = None
    display_name: str | None = None
    max_output_tokens: int | None = None
