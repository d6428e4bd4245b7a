"""Exceptions raised by submission intake and feedback generation.

Every error carries a stable `kind` string, a message fit to show a person,
a `transient` flag telling clients whether retrying later can help, and a
`details` dict of structured context.
"""

from __future__ import annotations

import typing as t


class MarginaliaError(Exception):
    """Base class for all expected, user-facing failures."""

    kind: t.ClassVar[str] = "error"
    transient: bool = False

    def __init__(self, message: str, *, transient: bool | None = None, **details: t.Any) -> None:
        super().__init__(message)
        self.message = message
        if transient is not None:
            self.transient = transient
        self.details = details

    def to_dict(self) -> dict[str, t.Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "transient": self.transient,
            "details": self.details,
        }


class InvalidAssignmentCode(MarginaliaError):
    kind = "invalid_assignment_code"

    def __init__(self, message: str, *, suggestions: t.Sequence[str] = ()) -> None:
        super().__init__(message, suggestions=list(suggestions))

    @property
    def suggestions(self) -> list[str]:
        return self.details["suggestions"]


class AssignmentNotFound(MarginaliaError):
    kind = "assignment_not_found"

    def __init__(self, code: str, *, suggestions: t.Sequence[str] = ()) -> None:
        message = f"no assignment with code {code}"
        if suggestions:
            message += f"; did you mean {', '.join(suggestions)}?"
        super().__init__(message, code=code, suggestions=list(suggestions))

    @property
    def suggestions(self) -> list[str]:
        return self.details["suggestions"]


class AssignmentInactive(MarginaliaError):
    kind = "assignment_inactive"

    def __init__(self, code: str) -> None:
        super().__init__(f"assignment {code} is not accepting submissions", code=code)


class DeadlinePassed(MarginaliaError):
    kind = "deadline_passed"

    def __init__(self, code: str, deadline: str) -> None:
        super().__init__(f"the deadline for assignment {code} passed at {deadline}", code=code, deadline=deadline)


class DuplicateSubmission(MarginaliaError):
    kind = "duplicate_submission"

    def __init__(self, code: str, submission_id: str) -> None:
        super().__init__(
            f"you have already submitted to assignment {code}; this assignment does not allow resubmission",
            code=code,
            submission_id=submission_id,
        )


class ContentFetchFailed(MarginaliaError):
    """The submission's content could not be materialized."""

    kind = "content_fetch_failed"


class InvalidRepositoryUrl(ContentFetchFailed):
    kind = "invalid_repository_url"

    def __init__(self, url: str, reason: str = "not a GitHub repository URL") -> None:
        super().__init__(f"{url!r} is {reason}", url=url)


class ContentTooLarge(ContentFetchFailed):
    kind = "content_too_large"


class RateLimitExceeded(MarginaliaError):
    kind = "rate_limit_exceeded"
    transient = True

    def __init__(self, scope: str, limit: int, retry_after: int) -> None:
        super().__init__(
            f"too many {scope} requests; try again in {retry_after} seconds",
            scope=scope,
            limit=limit,
            retry_after=retry_after,
        )

    @property
    def retry_after(self) -> int:
        return self.details["retry_after"]


class QuotaExceeded(MarginaliaError):
    kind = "quota_exceeded"
    transient = True

    def __init__(self, limit: int, reset_in: int) -> None:
        super().__init__(
            f"the hourly feedback generation quota of {limit} is used up; it resets in {reset_in} seconds",
            limit=limit,
            reset_in=reset_in,
        )


class FeedbackGenerationFailed(MarginaliaError):
    kind = "feedback_generation_failed"
    transient = True


class CodeGenerationExhausted(MarginaliaError):
    kind = "code_generation_exhausted"
    transient = True

    def __init__(self, attempts: int) -> None:
        super().__init__(f"could not find an unused assignment code after {attempts} attempts", attempts=attempts)


class SubmissionNotFound(MarginaliaError):
    kind = "submission_not_found"

    def __init__(self, submission_id: str) -> None:
        super().__init__(f"no submission {submission_id}", submission_id=submission_id)


class InvalidSubmissionState(MarginaliaError):
    kind = "invalid_submission_state"

    def __init__(self, submission_id: str, state: str) -> None:
        super().__init__(
            f"feedback for submission {submission_id} can only be regenerated once it is ready or has failed"
            f" (currently {state})",
            submission_id=submission_id,
            state=state,
        )
