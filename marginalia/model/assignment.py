import datetime

import pydantic as p

from .base import BaseModel, WithTimestamps
from .enum import AssignmentCategory, Difficulty


class Assignment(WithTimestamps):
    code: str
    title: str
    description: str = ""
    requirements: list[str] = []
    recommendations: list[str] = []
    category: AssignmentCategory = AssignmentCategory.Programming
    difficulty: Difficulty = Difficulty.Intermediate
    deadline: datetime.datetime
    active: bool = True
    allow_resubmission: bool = False

    def is_open(self, now: datetime.datetime) -> bool:
        return self.active and now <= self.deadline


class AssignmentSummary(BaseModel):
    """Assignment as seen by one submitter, with cohort-level aggregates."""

    assignment: Assignment
    submission_count: int = 0
    submission_rate: float | None = p.Field(default=None, ge=0)
    own_submission_id: str | None = None
    own_state: str | None = None
