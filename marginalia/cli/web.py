import os

import uvicorn

import marginalia.lib.cli as click
from marginalia.core import BootConfiguration, di
from marginalia.core.config import LoggingSettings, WebSettings


@click.group()
def web(): ...


@web.command(name="serve")
@click.option("-h", "--host", default=None, help="defaults to web.yaml")
@click.option("-p", "--port", type=click.IntRange(1, 65535), default=None, help="defaults to web.yaml")
@click.option("-w", "--workers", type=click.IntRange(min=1), default=1)
@click.option("--reload", is_flag=True, default=False, help="restart when source files change")
@di.inject
def serve(
    host: str | None,
    port: int | None,
    workers: int,
    reload: bool,
    boot_cf: BootConfiguration = di.Provide["_boot_config"],
    logging_cf: LoggingSettings = di.Provide["config.logging", di.as_(LoggingSettings)],  # noqa: B008
    web_cf: WebSettings = di.Provide["config.web", di.as_(WebSettings)],  # noqa: B008
):
    """Serve the HTTP API with uvicorn.

    Each worker process boots its own container from the same configuration.
    Without a redis section in storage.yaml the cache, rate limits and AI
    quota live in each process, so run one worker unless redis is configured.
    """
    from marginalia.web.main import BootEnvVar

    backend = web_cf.marginalia.backend
    os.environ[BootEnvVar] = boot_cf.model_dump_json()
    uvicorn.run(
        "marginalia.web.main:create_app",
        factory=True,
        host=host or str(backend.host),
        port=port or backend.port,
        workers=workers,
        reload=reload,
        log_config=logging_cf.model_dump(),
    )
