__all__ = [
    "AssignmentService",
    "FeedbackPipeline",
    "FeedbackWorker",
    "SubmissionQueries",
]

from .assignments import AssignmentService
from .pipeline import FeedbackPipeline
from .queries import SubmissionQueries
from .worker import FeedbackWorker
