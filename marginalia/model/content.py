import typing as t

import pydantic as p

from .base import BaseModel

OmissionReason = t.Literal["excluded", "file_too_large", "total_size_exceeded", "file_limit_exceeded", "fetch_failed"]


class CommitInfo(BaseModel):
    sha: str
    message: str
    author: str
    date: str


class OmittedFile(BaseModel):
    path: str
    size: int | None = None
    reason: OmissionReason


class ContentMetadata(BaseModel):
    total_files: int = 0
    total_size: int = 0
    languages: dict[str, int] = {}
    last_commit: CommitInfo | None = None
    omitted: list[OmittedFile] = []
    # GitHub listed only part of the repository; files past the cut were never seen
    tree_truncated: bool = False


class FetchedFile(BaseModel):
    path: str
    content: str
    size: int
    type: str
    language: str | None = None


class FetchedContent(BaseModel):
    content: str
    title: str | None = None
    structure: str | None = None
    files: list[FetchedFile] = []
    metadata: ContentMetadata = p.Field(default_factory=ContentMetadata)


class FetchOptions(BaseModel):
    branch: str | None = None
    path: str | None = None
