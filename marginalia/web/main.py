"""Main entry point for the Marginalia web application."""

import contextlib
import os
import typing as t

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import marginalia
from marginalia.core import BootConfiguration, di, MarginaliaContainer
from marginalia.core.config.web import MarginaliaWebSettings
from marginalia.errors import MarginaliaError
from marginalia.model import DeploymentEnvironment
from marginalia.pipeline import FeedbackWorker

from .errors import handle_marginalia_error
from .route import router

# the booted configuration, serialized by `marginalia web serve` for each worker process
BootEnvVar = "MARGINALIA_BOOT_CONFIG"


@di.inject
def _create_app(
    config: MarginaliaWebSettings = di.Provide["config.web.marginalia", di.as_(MarginaliaWebSettings)],
    env: DeploymentEnvironment = di.Provide["env"],
    worker: FeedbackWorker = di.Provide["pipeline.worker"],
) -> FastAPI:
    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> t.AsyncGenerator[None]:
        yield
        # let feedback already underway finish before the process goes away
        await worker.drain()

    app = FastAPI(
        title="Marginalia",
        description="Coursework submission intake with AI-generated feedback",
        version=marginalia.__version__,
        lifespan=lifespan,
        docs_url="/docs" if config.docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if config.docs else None,
    )

    if origins := config.allowed_origins(local=env is DeploymentEnvironment.Local):
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
        )

    app.add_exception_handler(MarginaliaError, handle_marginalia_error)
    app.include_router(router)
    return app


def create_app() -> FastAPI:
    """Factory function for uvicorn."""
    boot_vars = os.getenv(BootEnvVar)
    if boot_vars:
        boot_cf = BootConfiguration.model_validate_json(boot_vars)
        ct = MarginaliaContainer()
        MarginaliaContainer.boot(ct, **dict(boot_cf))
        ct.wire(modules=["marginalia.web.main", "marginalia.web.dependencies"])
        return _create_app(
            config=MarginaliaWebSettings(**ct.config.web.marginalia()),
            env=boot_cf.env,
            worker=ct.pipeline.worker(),
        )
    return _create_app()
