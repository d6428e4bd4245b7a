"""LLM configuration settings."""

from __future__ import annotations

import enum

from .base import BaseSettings


class ProviderType(enum.Enum):
    OpenAI = "openai"
    Anthropic = "anthropic"


class ModelSettings(BaseSettings):
    """Settings for a specific model."""

    provider: ProviderType = ProviderType.OpenAI
    model: str = "gpt-4o-mini"
    max_tokens: int = 2048
    temperature: float = 0.3
    max_retries: int = 2
    timeout_seconds: float = 60.0
    # submissions longer than this are truncated before prompting
    max_input_chars: int = 120_000


class LLMSettings(BaseSettings):
    """Root LLM configuration."""

    feedback: ModelSettings = ModelSettings()
