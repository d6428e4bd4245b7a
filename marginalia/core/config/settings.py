import pydantic as p
from pydantic_settings import BaseSettings as PydanticBaseSettings
from pydantic_settings import PydanticBaseSettingsSource

from marginalia.model import DeploymentEnvironment

from .base import BaseSettings
from .cache import CacheSettings
from .content import ContentSettings
from .llm import LLMSettings
from .logging import LoggingSettings
from .pipeline import PipelineSettings
from .source import OverrideSettingsSource, YAMLCascadingSettingsSource
from .storage import StorageSettings
from .template import TemplateSettings
from .throttle import ThrottleSettings
from .web import WebSettings

SettingsField = p.Field(default=..., validate_default=True)


class Settings(BaseSettings):
    """All configuration, read from the YAML files under `root`.

    Each `<section>.yaml` fills its section; `env.d/<env>/<section>.yaml`
    is merged over it, then each `-o path=value` override is applied.
    """

    root: p.FileUrl
    env: DeploymentEnvironment
    override: tuple[str, ...]

    logging: LoggingSettings = SettingsField
    storage: StorageSettings = SettingsField
    web: WebSettings = SettingsField

    template: TemplateSettings = p.Field(default_factory=TemplateSettings)
    llm: LLMSettings = p.Field(default_factory=LLMSettings)
    content: ContentSettings = p.Field(default_factory=ContentSettings)
    pipeline: PipelineSettings = p.Field(default_factory=PipelineSettings)
    cache: CacheSettings = p.Field(default_factory=CacheSettings)
    throttle: ThrottleSettings = p.Field(default_factory=ThrottleSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[PydanticBaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:  # noqa: E501
        return init_settings, YAMLCascadingSettingsSource(settings_cls), OverrideSettingsSource(settings_cls)
