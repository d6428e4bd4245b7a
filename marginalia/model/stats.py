import datetime

from .assignment import Assignment
from .base import BaseModel
from .feedback import Feedback
from .submission import Submission


class RecentSubmission(BaseModel):
    submission_id: str
    assignment_code: str
    assignment_title: str
    state: str
    score: int | None = None
    submitted_at: datetime.datetime


class UserStatus(BaseModel):
    submitter_id: str
    total_submissions: int
    feedback_ready: int
    completion_rate: float
    average_score: float | None = None
    on_time: int
    late: int
    recent: list[RecentSubmission] = []
    outstanding: list[Assignment] = []


class UserSubmissionView(BaseModel):
    assignment: Assignment
    submission: Submission | None = None
    feedback: Feedback | None = None


class LeaderboardEntry(BaseModel):
    rank: int
    submitter_id: str
    average_score: float
    submissions: int
