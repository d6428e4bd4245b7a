import typing as t

import pydantic_settings as ps

from marginalia.model import BaseModel


# NOTE: mixing in our BaseModel carries its serialize_by_alias config into
#       every settings section
class BaseSettings(ps.BaseSettings, BaseModel):  # pyright: ignore [reportIncompatibleVariableOverride]
    model_config = ps.SettingsConfigDict(extra="forbid")

    def __init__(self, cf: dict[str, t.Any] | None = None, **kwargs: t.Any):
        # specifically allow initialization with a dict
        if cf is not None:
            kwargs = {**cf, **kwargs}
        super().__init__(**kwargs)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[ps.BaseSettings],
        init_settings: ps.PydanticBaseSettingsSource,
        env_settings: ps.PydanticBaseSettingsSource,
        dotenv_settings: ps.PydanticBaseSettingsSource,
        file_secret_settings: ps.PydanticBaseSettingsSource,
    ) -> tuple[ps.PydanticBaseSettingsSource, ...]:
        # sections are filled in from YAML by the top-level Settings; a bare
        # `PORT` in the environment must not leak into every section with a
        # `port` field
        return (init_settings,)


class BaseSecrets(BaseSettings):
    model_config = ps.SettingsConfigDict(extra="ignore")
