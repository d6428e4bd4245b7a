from __future__ import annotations

import pydantic as p
import pydantic_settings as ps
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from marginalia.model import DeploymentEnvironment

from .base import BaseSecrets
from .source import YAMLSecretsSource


class PostgresqlSecrets(BaseSecrets):
    username: p.Secret[str] | None = None
    password: p.Secret[str] | None = None


class OpenAISecrets(BaseSecrets):
    """OpenAI API secrets."""

    secret_key: p.Secret[str]


class AnthropicSecrets(BaseSecrets):
    """Anthropic API secrets."""

    api_key: p.Secret[str]


class LLMSecrets(BaseSecrets):
    """LLM vendor API secrets."""

    openai: OpenAISecrets | None = None
    anthropic: AnthropicSecrets | None = None


class GitHubSecrets(BaseSecrets):
    # anonymous access works, at 60 requests an hour
    token: p.Secret[str] | None = None


class Secrets(BaseSecrets):
    model_config = ps.SettingsConfigDict(env_prefix="MARGINALIA_", env_nested_delimiter="__", extra="ignore")

    root: p.AnyUrl
    env: DeploymentEnvironment

    llm: LLMSecrets = LLMSecrets()
    github: GitHubSecrets = GitHubSecrets()
    postgresql: PostgresqlSecrets = PostgresqlSecrets()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, YAMLSecretsSource(settings_cls)
