from __future__ import annotations

import httpx
import pydantic as p
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Provider, Singleton

from marginalia.content import ContentFetcher, GitHubRepositoryWalker

from ..config.content import GitHubSettings, WebPageSettings


def provide_http_client(settings: WebPageSettings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=settings.timeout_seconds,
        max_redirects=settings.max_redirects,
        headers={"User-Agent": settings.user_agent},
    )


def provide_walker(
    client: httpx.AsyncClient, settings: GitHubSettings, token: p.Secret[str] | None
) -> GitHubRepositoryWalker:
    return GitHubRepositoryWalker(client, settings, token=token)


class ContentContainer(DeclarativeContainer):
    config = Configuration()
    secrets = Configuration()

    http_client: Provider[httpx.AsyncClient] = Singleton(provide_http_client, settings=config.web.as_(WebPageSettings))
    github: Provider[GitHubRepositoryWalker] = Singleton(
        provide_walker, client=http_client, settings=config.github.as_(GitHubSettings), token=secrets.token
    )
    fetcher: Provider[ContentFetcher] = Singleton(
        ContentFetcher, client=http_client, github=github, settings=config.web.as_(WebPageSettings)
    )
