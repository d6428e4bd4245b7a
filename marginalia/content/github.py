"""Read a GitHub repository (or one directory of it) through the REST API."""

from __future__ import annotations

import asyncio
import base64
import logging
import time
import typing as t

import httpx
import pydantic as p

from marginalia.core.config.content import GitHubSettings
from marginalia.errors import ContentFetchFailed, InvalidRepositoryUrl
from marginalia.model import CommitInfo, ContentMetadata, FetchedContent, FetchedFile, FrozenModel, OmittedFile

from . import language
from .tree import render_tree

logger = logging.getLogger(__name__)

GitHubHosts: t.Final[frozenset[str]] = frozenset({"github.com", "www.github.com"})
SSHPrefix: t.Final[str] = "git@github.com:"


class GitHubRepository(FrozenModel):
    owner: str
    repo: str
    # None means the repository's default branch
    ref: str | None = None
    path: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def parse_repository_url(url: str) -> GitHubRepository:
    """
    Accepts `https://github.com/o/r`, with or without `.git`, the SSH form
    `git@github.com:o/r.git`, and `.../tree/<ref>[/<path>]` links to a branch
    or a directory on it.

    Raises:
        InvalidRepositoryUrl
    """
    s = url.strip()
    if s.startswith(SSHPrefix):
        s = "https://github.com/" + s[len(SSHPrefix) :]
    try:
        u = httpx.URL(s)
    except httpx.InvalidURL:
        raise InvalidRepositoryUrl(url) from None
    if u.scheme not in ("http", "https") or u.host not in GitHubHosts:
        raise InvalidRepositoryUrl(url)

    parts = [part for part in u.path.split("/") if part]
    if len(parts) < 2:
        raise InvalidRepositoryUrl(url, "missing the owner or the repository name")

    owner, repo = parts[0], parts[1].removesuffix(".git")
    ref = path = None
    if len(parts) >= 4 and parts[2] == "tree":
        ref = parts[3]
        path = "/".join(parts[4:]) or None
    return GitHubRepository(owner=owner, repo=repo, ref=ref, path=path)


class TreeEntry(p.BaseModel):
    path: str
    type: str
    size: int = 0
    sha: str | None = None


class Selection(t.NamedTuple):
    selected: list[TreeEntry]
    omitted: list[OmittedFile]


def select_files(entries: t.Iterable[TreeEntry], settings: GitHubSettings, prefix: str | None = None) -> Selection:
    """Pick the blobs to read, recording why each passed-over one was left out.

    Files larger than `max_file_size` are dropped. If the rest exceed
    `max_total_size`, the smallest are kept until the next would not fit.
    At most `max_files` survive.
    """
    omitted: list[OmittedFile] = []
    excluded_dirs: set[str] = set()
    candidates: list[TreeEntry] = []

    if prefix:
        prefix = prefix.strip("/") + "/"
    for entry in sorted(entries, key=lambda e: e.path):
        if entry.type != "blob" or (prefix and not entry.path.startswith(prefix)):
            continue
        if not language.is_code_file(entry.path):
            continue
        if language.is_excluded(entry.path):
            # one entry per dependency directory rather than per file in it
            if (directory := language.dependency_directory(entry.path)) is not None:
                if directory not in excluded_dirs:
                    excluded_dirs.add(directory)
                    omitted.append(OmittedFile(path=directory, reason="excluded"))
            else:
                omitted.append(OmittedFile(path=entry.path, size=entry.size, reason="excluded"))
            continue
        if entry.size > settings.max_file_size:
            omitted.append(OmittedFile(path=entry.path, size=entry.size, reason="file_too_large"))
            continue
        candidates.append(entry)

    if sum(e.size for e in candidates) > settings.max_total_size:
        candidates.sort(key=lambda e: (e.size, e.path))
        total = 0
        for i, entry in enumerate(candidates):
            if total + entry.size > settings.max_total_size:
                omitted.extend(
                    OmittedFile(path=e.path, size=e.size, reason="total_size_exceeded") for e in candidates[i:]
                )
                candidates = candidates[:i]
                break
            total += entry.size

    if len(candidates) > settings.max_files:
        omitted.extend(
            OmittedFile(path=e.path, size=e.size, reason="file_limit_exceeded")
            for e in candidates[settings.max_files :]
        )
        candidates = candidates[: settings.max_files]

    return Selection(sorted(candidates, key=lambda e: e.path), omitted)


def combine(files: t.Sequence[FetchedFile]) -> str:
    return "\n\n".join(f"## {f.path}\n\n```{f.type}\n{f.content.rstrip()}\n```" for f in files)


class GitHubRepositoryWalker(object):
    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: GitHubSettings,
        token: p.Secret[str] | None = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self._token = token

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self.settings.user_agent,
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token is not None:
            headers["Authorization"] = f"Bearer {self._token.get_secret_value()}"
        return headers

    async def _get(self, path: str, params: dict[str, str] | None = None) -> dict[str, t.Any]:
        url = self.settings.api_url.rstrip("/") + path
        try:
            response = await self.client.get(
                url, params=params, headers=self.headers, timeout=self.settings.timeout_seconds
            )
        except httpx.TransportError as e:
            raise ContentFetchFailed(f"could not reach GitHub: {e}", transient=True, path=path) from e

        remaining = response.headers.get("x-ratelimit-remaining")
        if remaining is not None and remaining.isdigit() and int(remaining) < self.settings.rate_limit_warning:
            logger.warning(
                "GitHub API rate limit nearly exhausted",
                extra={"remaining": int(remaining), "reset": response.headers.get("x-ratelimit-reset")},
            )

        match response.status_code:
            case 200:
                try:
                    data = response.json()
                except ValueError as e:
                    raise ContentFetchFailed("GitHub returned a malformed response", transient=True, path=path) from e
                if not isinstance(data, dict):
                    raise ContentFetchFailed("GitHub returned an unexpected response", transient=True, path=path)
                return data
            case 404:
                raise ContentFetchFailed("repository not found or not accessible", path=path)
            case 401:
                raise ContentFetchFailed("authentication with GitHub failed", path=path)
            case 403 | 429:
                raise ContentFetchFailed(
                    "GitHub refused the request; the API rate limit may be exhausted", transient=True, path=path
                )
            case status:
                raise ContentFetchFailed(
                    f"GitHub API responded with status {status}", transient=status >= 500, path=path, status=status
                )

    async def _fetch_file(self, repository: GitHubRepository, ref: str, entry: TreeEntry) -> FetchedFile:
        data = await self._get(f"/repos/{repository.full_name}/contents/{entry.path}", params={"ref": ref})
        raw = data.get("content") or ""
        if data.get("encoding") == "base64":
            text = base64.b64decode(raw).decode("utf-8", errors="replace")
        else:
            text = raw
        return FetchedFile(
            path=entry.path,
            content=text,
            size=entry.size,
            type=language.file_type(entry.path),
            language=language.detect_language(entry.path),
        )

    async def walk(self, repository: GitHubRepository) -> FetchedContent:
        """Fetch the repository's readable files at one commit.

        Raises:
            ContentFetchFailed: if the repository cannot be read, or no file in
                it survives selection and fetching
        """
        start = time.monotonic()
        info = await self._get(f"/repos/{repository.full_name}")
        ref = repository.ref or info.get("default_branch") or "main"

        commit = await self._get(f"/repos/{repository.full_name}/commits/{ref}")
        sha = commit.get("sha")
        if not isinstance(sha, str) or not sha:
            raise ContentFetchFailed(
                "GitHub returned a commit without a sha", transient=True, repository=repository.full_name, ref=ref
            )
        tree = await self._get(f"/repos/{repository.full_name}/git/trees/{sha}", params={"recursive": "1"})
        truncated = bool(tree.get("truncated"))
        if truncated:
            logger.warning("GitHub truncated the repository tree", extra={"repository": repository.full_name})

        try:
            entries = [TreeEntry.model_validate(e) for e in tree.get("tree") or []]
        except p.ValidationError as e:
            raise ContentFetchFailed(
                "GitHub returned a malformed repository tree", transient=True, repository=repository.full_name
            ) from e
        selected, omitted = select_files(entries, self.settings, repository.path)

        semaphore = asyncio.Semaphore(self.settings.max_concurrency)

        async def fetch(entry: TreeEntry) -> FetchedFile | None:
            async with semaphore:
                try:
                    return await self._fetch_file(repository, sha, entry)
                except (ContentFetchFailed, ValueError, KeyError) as e:
                    logger.warning("could not fetch file", extra={"path": entry.path, "error": str(e)})
                    omitted.append(OmittedFile(path=entry.path, size=entry.size, reason="fetch_failed"))
                    return None

        fetched = await asyncio.gather(*(fetch(e) for e in selected))
        files = [f for f in fetched if f is not None]
        if not files:
            where = f" under {repository.path}" if repository.path else ""
            raise ContentFetchFailed(
                f"no readable source files found in {repository.full_name}{where}",
                repository=repository.full_name,
                omitted=len(omitted),
            )

        languages: dict[str, int] = {}
        for f in files:
            if f.language:
                languages[f.language] = languages.get(f.language, 0) + 1

        author = commit.get("commit", {}).get("author") or {}
        metadata = ContentMetadata(
            total_files=len(files),
            total_size=sum(f.size for f in files),
            languages=languages,
            last_commit=CommitInfo(
                sha=sha,
                message=commit.get("commit", {}).get("message", ""),
                author=author.get("name", ""),
                date=author.get("date", ""),
            ),
            omitted=sorted(omitted, key=lambda o: o.path),
            tree_truncated=truncated,
        )
        logger.info(
            "fetched repository",
            extra={
                "repository": repository.full_name,
                "ref": ref,
                "files": metadata.total_files,
                "size": metadata.total_size,
                "omitted": len(omitted),
                "tree_truncated": truncated,
                "elapsed_ms": round((time.monotonic() - start) * 1000),
            },
        )
        return FetchedContent(
            content=combine(files),
            title=repository.full_name,
            structure=render_tree(f.path for f in files),
            files=files,
            metadata=metadata,
        )
