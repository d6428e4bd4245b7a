"""View models for the Marginalia web application."""

__all__ = [
    "AssignmentListResponse",
    "ErrorDetail",
    "ErrorResponse",
    "LeaderboardResponse",
    "SubmissionCreateRequest",
]

from .assignment import AssignmentListResponse, LeaderboardResponse
from .error import ErrorDetail, ErrorResponse
from .submission import SubmissionCreateRequest
