__all__ = [
    "ContentFetcher",
    "GitHubRepository",
    "GitHubRepositoryWalker",
    "parse_repository_url",
]

from .fetcher import ContentFetcher
from .github import GitHubRepository, GitHubRepositoryWalker, parse_repository_url
