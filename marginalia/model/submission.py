import datetime

from .base import BaseModel
from .content import ContentMetadata
from .enum import SubmissionKind, SubmissionState
from .feedback import Feedback
from .id import SubmissionID


class Submission(BaseModel):
    submission_id: SubmissionID
    assignment_code: str
    submitter_id: str
    kind: SubmissionKind
    reference: str | None = None
    title: str | None = None
    content: str
    structure: str | None = None
    metadata: ContentMetadata = ContentMetadata()
    state: SubmissionState = SubmissionState.Created
    failure_reason: str | None = None
    failure_detail: str | None = None
    submitted_at: datetime.datetime
    update_time: datetime.datetime


class SubmissionReceipt(BaseModel):
    submission_id: SubmissionID
    assignment_code: str
    state: SubmissionState


class SubmissionStatus(BaseModel):
    submission_id: SubmissionID
    assignment_code: str
    submitter_id: str
    kind: SubmissionKind
    state: SubmissionState
    failure_reason: str | None = None
    failure_detail: str | None = None
    submitted_at: datetime.datetime
    feedback: Feedback | None = None
