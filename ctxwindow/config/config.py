"""Configuration management"""

import json
from pathlib import Path

from pydantic import BaseModel, Field

from .schema import ContextWindowOptions, ModelConfig, ProviderConfig

CONFIG_FILENAME = "ctxwindow.json"


class Config(BaseModel):
    context: ContextWindowOptions = Field(default_factory=ContextWindowOptions)
    providers: dict[str, ProviderConfig] = {}
    models: dict[str, ModelConfig] = {}
    aliases: dict[str, str] = {}

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from file"""
        if path is None:
            # Look for ctxwindow.json in current dir or home
            candidates = [
                Path.cwd() / CONFIG_FILENAME,
                Path.home() / ".config" / "ctxwindow" / "config.json",
            ]
            for p in candidates:
                if p.exists():
                    path = p
                    break

        if path and path.exists():
            data = json.loads(path.read_text())
            return cls(**data)

        return cls()

    def save(self, path: Path):
        """Save config to file"""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2))
