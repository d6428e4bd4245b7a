"""Mapping of MarginaliaError to HTTP responses."""

from __future__ import annotations

import logging

from fastapi import Request, status

from marginalia.errors import AssignmentInactive, AssignmentNotFound, CodeGenerationExhausted, ContentFetchFailed, \
    DeadlinePassed, DuplicateSubmission, FeedbackGenerationFailed, InvalidAssignmentCode, InvalidSubmissionState, \
    MarginaliaError, QuotaExceeded, RateLimitExceeded, SubmissionNotFound
from marginalia.lib.json import FastAPIJSONResponse

from .view import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

StatusCodes: dict[type[MarginaliaError], int] = {
    InvalidAssignmentCode: status.HTTP_400_BAD_REQUEST,
    AssignmentNotFound: status.HTTP_404_NOT_FOUND,
    SubmissionNotFound: status.HTTP_404_NOT_FOUND,
    AssignmentInactive: status.HTTP_409_CONFLICT,
    DeadlinePassed: status.HTTP_409_CONFLICT,
    DuplicateSubmission: status.HTTP_409_CONFLICT,
    InvalidSubmissionState: status.HTTP_409_CONFLICT,
    ContentFetchFailed: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RateLimitExceeded: status.HTTP_429_TOO_MANY_REQUESTS,
    QuotaExceeded: status.HTTP_429_TOO_MANY_REQUESTS,
    FeedbackGenerationFailed: status.HTTP_502_BAD_GATEWAY,
    CodeGenerationExhausted: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code(error: MarginaliaError) -> int:
    if isinstance(error, ContentFetchFailed) and error.transient:
        # the remote end failed us, not the submitter
        return status.HTTP_502_BAD_GATEWAY
    for cls in type(error).__mro__:
        if cls in StatusCodes:
            return StatusCodes[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_marginalia_error(request: Request, exc: Exception) -> FastAPIJSONResponse:
    assert isinstance(exc, MarginaliaError)
    code = status_code(exc)
    headers: dict[str, str] = {}
    match exc:
        case RateLimitExceeded():
            headers["Retry-After"] = str(exc.retry_after)
        case QuotaExceeded():
            headers["Retry-After"] = str(exc.details["reset_in"])
        case _:
            pass

    logger.info(
        "request failed",
        extra={"path": request.url.path, "status": code, "kind": exc.kind, "transient": exc.transient},
    )
    body = ErrorResponse(error=ErrorDetail(**exc.to_dict()))
    return FastAPIJSONResponse(body, status_code=code, headers=headers)
