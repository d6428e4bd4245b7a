from __future__ import annotations

import datetime
import os
import sys
import types
from pathlib import Path

import pydantic as p
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Object, Provider, Resource, Singleton

import marginalia
from marginalia.model import BaseModel, DeploymentEnvironment

from ..config import Secrets, Settings
from ..di import NotReady
from ..provider import LoggingProvider, TimestampProvider
from .content import ContentContainer
from .llm import LLMContainer
from .pipeline import PipelineContainer
from .storage import StorageContainer
from .template import TemplateContainer
from .throttle import ThrottleContainer


class BootConfiguration(BaseModel):
    debug: bool
    env: DeploymentEnvironment
    config_root: p.AnyUrl
    secrets_path: p.AnyUrl | None = None
    override: tuple[str, ...]


class MarginaliaContainer(DeclarativeContainer):
    config: Configuration = Configuration()
    secrets: Configuration = Configuration()

    debug: Provider[bool] = Singleton(bool)
    env: Provider[DeploymentEnvironment] = Singleton(DeploymentEnvironment)
    root: Object[NotReady | Path] = Object(NotReady())

    logging: Provider[LoggingProvider] = Resource(LoggingProvider, config=config.logging, debug=debug)
    storage: Provider[StorageContainer] = Container(
        StorageContainer,
        config=config.storage,
        secrets=secrets,
        cache_ttl=config.cache.ttl,
        logging=logging,
        root=root,
    )
    throttle: Provider[ThrottleContainer] = Container(
        ThrottleContainer,
        config=config.throttle,
        redis_client=storage.cache.redis_client,
        namespace=config.storage.cache.namespace,
    )
    template: Provider[TemplateContainer] = Container(TemplateContainer, config=config.template, root=root)
    llm: Provider[LLMContainer] = Container(
        LLMContainer,
        config=config.llm,
        openai_secrets=secrets.llm.openai,
        anthropic_secrets=secrets.llm.anthropic,
        template=template.llm,
    )
    content: Provider[ContentContainer] = Container(ContentContainer, config=config.content, secrets=secrets.github)

    utcnow: Provider[TimestampProvider] = Object(lambda: datetime.datetime.now(datetime.UTC))

    pipeline: Provider[PipelineContainer] = Container(
        PipelineContainer,
        config=config.pipeline,
        sessionmaker=storage.persistent.sessionmaker,
        cache=storage.cache.policy,
        fetcher=content.fetcher,
        generator=llm.feedback,
        quota=throttle.quota,
        utcnow=utcnow,
    )

    _boot_config: Provider[BootConfiguration | NotReady] = Object(NotReady())

    @staticmethod
    def boot(
        ct: MarginaliaContainer,
        /,
        debug: bool,
        env: DeploymentEnvironment,
        config_root: p.FileUrl,
        secrets_path: p.AnyUrl | None = None,
        override: tuple[str, ...] | None = None,
        wiring: tuple[str | types.ModuleType, ...] | None = None,
    ):
        """Load settings and secrets into `ct`, configure logging and wire the modules that inject.

        Every process boots exactly once: the CLI before running a command,
        each uvicorn worker from the configuration the CLI serialized, and
        the test session from the test environment.
        """
        boot_cf = BootConfiguration(
            debug=debug, env=env, config_root=config_root, secrets_path=secrets_path, override=override or ()
        )
        if boot_cf.config_root.scheme != "file":
            raise ValueError(f"configuration must be read from a local directory, not {boot_cf.config_root}")

        settings = Settings(env=env, root=config_root, override=boot_cf.override)
        ct.config.from_pydantic(settings)
        ct.secrets.from_pydantic(Secrets(env=env, root=secrets_path or config_root))
        ct.debug.override(debug)
        ct.env.override(env)
        ct.root.override(Path(os.path.dirname(marginalia.__file__)).parent)

        ct.wire(packages=["marginalia"])
        loaded = [mod for name, mod in sys.modules.items() if name.startswith("marginalia.")]
        ct.wire(modules=[*loaded, *(wiring or ())])

        # first use of the logging resource applies the logging section
        logger = ct.logging().get_logger()
        logger.info(
            "booted",
            extra={
                "env": env.value,
                "config": str(config_root),
                "overrides": dict(ov.split("=", 1) for ov in boot_cf.override),
            },
        )
        ct._boot_config.override(boot_cf)
