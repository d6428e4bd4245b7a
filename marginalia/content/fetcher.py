from __future__ import annotations

import logging
import typing as t

import httpx

from marginalia.core.config.content import WebPageSettings
from marginalia.errors import ContentFetchFailed, ContentTooLarge
from marginalia.model import ContentMetadata, FetchedContent, FetchOptions, SubmissionKind

from . import web
from .github import GitHubRepositoryWalker, parse_repository_url

logger = logging.getLogger(__name__)


def raw_url(url: str) -> str:
    """Point GitHub `blob` links at the raw file rather than its HTML page.

    >>> raw_url("https://github.com/o/r/blob/main/src/app.py")
    'https://raw.githubusercontent.com/o/r/main/src/app.py'
    """
    u = httpx.URL(url)
    parts = [part for part in u.path.split("/") if part]
    if u.host in ("github.com", "www.github.com") and len(parts) >= 5 and parts[2] == "blob":
        return "https://raw.githubusercontent.com/" + "/".join(parts[:2] + parts[3:])
    return url


class ContentFetcher(object):
    """Turns what a submitter handed in into the text feedback is written about.

    Nothing is stored or cached here.
    """

    def __init__(self, client: httpx.AsyncClient, github: GitHubRepositoryWalker, settings: WebPageSettings) -> None:
        self.client = client
        self.github = github
        self.settings = settings

    async def fetch(
        self,
        kind: SubmissionKind,
        reference: str | None = None,
        content: str | None = None,
        title: str | None = None,
        options: FetchOptions | None = None,
    ) -> FetchedContent:
        """
        Raises:
            ContentFetchFailed: (or a subclass) if there is nothing usable to
                show for the submission
        """
        match kind:
            case SubmissionKind.GitHub:
                fetched = await self.fetch_repository(reference, options)
            case SubmissionKind.Blog:
                fetched = await self.fetch_page(reference, content)
            case SubmissionKind.Code:
                fetched = await self.fetch_code(reference, content)

        if not fetched.content.strip():
            raise ContentFetchFailed("the submission has no readable content", kind=kind.value, reference=reference)
        if title:
            fetched = fetched.model_copy(update={"title": title})
        return fetched

    async def fetch_repository(self, reference: str | None, options: FetchOptions | None = None) -> FetchedContent:
        if not reference:
            raise ContentFetchFailed("a GitHub repository URL is required")
        repository = parse_repository_url(reference)
        if options is not None:
            overrides = {k: v for k, v in (("ref", options.branch), ("path", options.path)) if v}
            repository = repository.model_copy(update=overrides)
        return await self.github.walk(repository)

    async def fetch_page(self, reference: str | None, content: str | None) -> FetchedContent:
        if content:
            text = web.sanitize(content.strip())
            return FetchedContent(content=text, metadata=ContentMetadata(total_files=1, total_size=len(text)))
        html = await self._download(reference)
        text = web.extract_text(html)
        return FetchedContent(
            content=text,
            title=web.extract_title(html),
            metadata=ContentMetadata(total_files=1, total_size=len(text)),
        )

    async def fetch_code(self, reference: str | None, content: str | None) -> FetchedContent:
        if not content:
            content = await self._download(raw_url(reference) if reference else None)
        text = web.sanitize(content)
        return FetchedContent(content=text, metadata=ContentMetadata(total_files=1, total_size=len(text)))

    async def _download(self, url: str | None) -> str:
        if not url:
            raise ContentFetchFailed("provide either the content itself or a URL to fetch it from")
        try:
            response = await self.client.get(
                url,
                headers={"User-Agent": self.settings.user_agent, "Accept": "text/html,text/plain;q=0.9,*/*;q=0.8"},
                timeout=self.settings.timeout_seconds,
                follow_redirects=True,
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise ContentFetchFailed(f"{url!r} is not a valid URL", url=url) from e
        except httpx.TooManyRedirects as e:
            raise ContentFetchFailed("the page redirects too many times", url=url) from e
        except httpx.TransportError as e:
            raise ContentFetchFailed(f"could not reach {url}: {e}", transient=True, url=url) from e

        if response.status_code >= 400:
            raise ContentFetchFailed(
                f"fetching {url} failed with status {response.status_code}",
                transient=response.status_code >= 500 or response.status_code == 429,
                url=url,
                status=response.status_code,
            )
        if len(response.content) > self.settings.max_content_length:
            raise ContentTooLarge(
                f"the page at {url} is larger than {self.settings.max_content_length} bytes",
                url=url,
                size=len(response.content),
            )
        logger.debug("downloaded submission content", extra={"url": url, "size": len(response.content)})
        return response.text
