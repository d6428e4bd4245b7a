"""Chat model and feedback generator providers."""

from __future__ import annotations

import typing as t

import jinja2
import pydantic as p
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Dict, Object, Provider, Singleton
from langchain_core.language_models import BaseChatModel

from marginalia.llm import FeedbackGenerator, LLMFeedbackGenerator

from ..config.llm import ModelSettings, ProviderType


def _openai(config: ModelSettings, key: p.SecretStr) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=config.model,
        temperature=config.temperature,
        max_completion_tokens=config.max_tokens,
        timeout=config.timeout_seconds,
        max_retries=config.max_retries,
        api_key=key,
    )


def _anthropic(config: ModelSettings, key: p.SecretStr) -> BaseChatModel:
    from langchain_anthropic import ChatAnthropic

    return ChatAnthropic(
        model_name=config.model,
        temperature=config.temperature,
        max_tokens_to_sample=config.max_tokens,
        timeout=config.timeout_seconds,
        max_retries=config.max_retries,
        api_key=key,
        stop=None,
    )


_Builders: dict[ProviderType, t.Callable[[ModelSettings, p.SecretStr], BaseChatModel]] = {
    ProviderType.OpenAI: _openai,
    ProviderType.Anthropic: _anthropic,
}


def provide_chat_model(config: ModelSettings, keys: dict[ProviderType, p.Secret[str] | None]) -> BaseChatModel:
    """Build the chat model `config` names, using that provider's key from the secrets."""
    key = keys.get(config.provider)
    if key is None:
        raise ValueError(f"no API key configured for the {config.provider.value} provider")
    return _Builders[config.provider](config, p.SecretStr(key.get_secret_value()))


def provide_feedback_generator(
    model: BaseChatModel, env: jinja2.Environment, settings: ModelSettings
) -> FeedbackGenerator:
    return LLMFeedbackGenerator(model, env, model_name=settings.model, max_input_chars=settings.max_input_chars)


class LLMContainer(DeclarativeContainer):
    config: Configuration = Configuration()
    openai_secrets: Configuration = Configuration()
    anthropic_secrets: Configuration = Configuration()
    template: Provider[jinja2.Environment] = Object()

    feedback_model: Provider[BaseChatModel] = Singleton(
        provide_chat_model,
        config=config.feedback.as_(ModelSettings),
        keys=Dict(
            {
                ProviderType.OpenAI: openai_secrets.secret_key,
                ProviderType.Anthropic: anthropic_secrets.api_key,
            }
        ),
    )
    feedback: Provider[FeedbackGenerator] = Singleton(
        provide_feedback_generator,
        model=feedback_model,
        env=template,
        settings=config.feedback.as_(ModelSettings),
    )
