__all__ = [
    # Base
    "BaseModel",
    "FrozenModel",
    "WithCtime",
    "WithTimestamps",
    # Enums
    "AssignmentCategory",
    "DeploymentEnvironment",
    "Difficulty",
    "SubmissionKind",
    "SubmissionState",
    # ID Types
    "ShortUUIDKey",
    "SubmissionID",
    "FeedbackID",
    # Assignments
    "Assignment",
    "AssignmentSummary",
    # Content
    "CommitInfo",
    "ContentMetadata",
    "FetchedContent",
    "FetchedFile",
    "FetchOptions",
    "OmittedFile",
    # Submissions
    "Submission",
    "SubmissionReceipt",
    "SubmissionStatus",
    # Feedback
    "Feedback",
    "Subscores",
    # Stats
    "LeaderboardEntry",
    "RecentSubmission",
    "UserStatus",
    "UserSubmissionView",
]

from .assignment import Assignment, AssignmentSummary
from .base import BaseModel, FrozenModel, WithCtime, WithTimestamps
from .content import CommitInfo, ContentMetadata, FetchedContent, FetchedFile, FetchOptions, OmittedFile
from .enum import AssignmentCategory, DeploymentEnvironment, Difficulty, SubmissionKind, SubmissionState
from .feedback import Feedback, Subscores
from .id import FeedbackID, ShortUUIDKey, SubmissionID
from .stats import LeaderboardEntry, RecentSubmission, UserStatus, UserSubmissionView
from .submission import Submission, SubmissionReceipt, SubmissionStatus
