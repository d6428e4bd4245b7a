import enum


class DeploymentEnvironment(enum.Enum):
    Production = "production"
    Development = "development"
    Staging = "staging"
    Sandbox = "sandbox"
    Test = "test"
    Local = "local"


class SubmissionKind(enum.Enum):
    Blog = "blog"
    Code = "code"
    GitHub = "github"


class SubmissionState(enum.Enum):
    Created = "created"
    FeedbackPending = "feedback_pending"
    FeedbackReady = "feedback_ready"
    FeedbackFailed = "feedback_failed"

    @property
    def regenerable(self) -> bool:
        return self in (SubmissionState.FeedbackReady, SubmissionState.FeedbackFailed)


class AssignmentCategory(enum.Enum):
    Programming = "programming"
    Blog = "blog"
    Algorithm = "algorithm"
    Design = "design"
    Analysis = "analysis"


class Difficulty(enum.Enum):
    Beginner = "beginner"
    Intermediate = "intermediate"
    Advanced = "advanced"
