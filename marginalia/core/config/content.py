from __future__ import annotations

import typing as t

import annotated_types as ant

from .base import BaseSettings

MiB: t.Final[int] = 1024 * 1024


class GitHubSettings(BaseSettings):
    api_url: str = "https://api.github.com"
    timeout_seconds: float = 30.0
    max_file_size: t.Annotated[int, ant.Gt(0)] = 1 * MiB
    max_total_size: t.Annotated[int, ant.Gt(0)] = 10 * MiB
    max_files: t.Annotated[int, ant.Gt(0)] = 50
    max_concurrency: t.Annotated[int, ant.Gt(0)] = 8
    # warn when GitHub reports fewer remaining API calls than this
    rate_limit_warning: int = 10
    user_agent: str = "marginalia"


class WebPageSettings(BaseSettings):
    timeout_seconds: float = 10.0
    max_redirects: int = 5
    max_content_length: t.Annotated[int, ant.Gt(0)] = 2 * MiB
    user_agent: str = "Mozilla/5.0 (compatible; marginalia)"


class ContentSettings(BaseSettings):
    github: GitHubSettings = GitHubSettings()
    web: WebPageSettings = WebPageSettings()
