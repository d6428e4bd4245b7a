"""View models for submissions."""

from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from marginalia.model import FetchOptions, SubmissionKind


class SubmissionCreateRequest(p.BaseModel):
    """Request to submit work to an assignment.

    `reference` is the repository or page URL for github and blog
    submissions; code submissions carry their source in `content`.
    """

    assignment_code: str
    submitter_id: t.Annotated[str, ant.MinLen(1), ant.MaxLen(128)]
    kind: SubmissionKind
    reference: str | None = None
    content: str | None = None
    title: str | None = None
    options: FetchOptions | None = None

    @p.model_validator(mode="after")
    def require_source(self) -> t.Self:
        if self.kind is SubmissionKind.Code:
            if not self.content:
                raise ValueError("code submissions require content")
        elif not self.reference:
            raise ValueError(f"{self.kind.value} submissions require a reference URL")
        return self
