__all__ = [
    "FeedbackGenerator",
    "FeedbackRequest",
    "FeedbackResponse",
    "LLMFeedbackGenerator",
    "ModelInfo",
]

from .feedback import FeedbackGenerator, FeedbackRequest, FeedbackResponse, LLMFeedbackGenerator, ModelInfo
