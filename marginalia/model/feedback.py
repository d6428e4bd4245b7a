import typing as t

import annotated_types as ant

from .base import BaseModel, WithCtime
from .id import FeedbackID, SubmissionID

Score = t.Annotated[int, ant.Ge(0), ant.Le(100)]


class Subscores(BaseModel):
    requirements_met: Score
    quality: Score
    best_practices: Score
    creativity: Score


class Feedback(WithCtime):
    feedback_id: FeedbackID
    submission_id: SubmissionID
    score: Score
    subscores: Subscores
    content: str
    model: str
    tokens_used: int | None = None
    latency_ms: int
