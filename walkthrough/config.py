"""Configuration loading for the handshake walkthrough."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class LLMConfig(BaseModel):
    model: str = "gemini-2.5-flash"
    # First non-empty variable wins
    api_key_env: list[str] = Field(default_factory=lambda: [
        "GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY",
    ])
    request_timeout: float = 30.0


class PlaybackConfig(BaseModel):
    interval_seconds: float = 6.0  # long enough for the 5s packet animation


class MessagesConfig(BaseModel):
    ready: str = "Ready to analyze handshake."
    pending: str = "Analyzing..."
    deep_dive_missing_key: str = "API Key required for AI insights."
    deep_dive_failed: str = "AI Service temporarily unavailable."
    deep_dive_empty: str = "No details available."
    chat_missing_key: str = (
        "API Key is missing. Please configure your environment to use the AI assistant."
    )
    chat_failed: str = "Failed to retrieve explanation. Please try again later."
    chat_empty: str = "No explanation generated."


class Config(BaseModel):
    llm: LLMConfig = Field(default_factory=LLMConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)

    def resolve_api_key(self) -> str | None:
        """Return the service credential from the environment, if any."""
        for name in self.llm.api_key_env:
            value = os.environ.get(name)
            if value:
                return value
        return None


def _project_root() -> Path:
    """Return the walkthrough project root directory."""
    return Path(__file__).parent.parent


def load_config(config_path: Path | None = None) -> Config:
    """Load config from YAML file. Falls back to defaults if file missing."""
    if config_path is None:
        config_path = _project_root() / "config.yaml"

    if config_path.exists():
        raw: dict[str, Any] = yaml.safe_load(config_path.read_text()) or {}
        return Config(**raw)

    return Config()
