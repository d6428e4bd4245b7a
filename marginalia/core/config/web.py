from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseSettings


class ServeSettings(BaseSettings):
    host: p.IPvAnyAddress
    port: t.Annotated[int, ant.Gt(0), ant.Le(65535)]


class MarginaliaWebSettings(BaseSettings):
    """The HTTP API."""

    backend: ServeSettings
    # a dev server for a browser client; allowed by CORS in the local environment
    frontend: ServeSettings | None = None
    # further origins allowed by CORS in every environment
    cors_origins: list[p.AnyHttpUrl] = []
    # serve /docs and /openapi.json
    docs: bool = True

    def allowed_origins(self, local: bool) -> list[str]:
        origins = [str(o).rstrip("/") for o in self.cors_origins]
        if local and self.frontend is not None:
            origins += [
                f"http://{self.frontend.host}:{self.frontend.port}",
                f"http://localhost:{self.frontend.port}",
            ]
        return origins


class WebSettings(BaseSettings):
    marginalia: MarginaliaWebSettings
