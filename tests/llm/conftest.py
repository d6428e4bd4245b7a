from __future__ import annotations

import jinja2
import pytest

from marginalia.core import MarginaliaContainer
from marginalia.llm import FeedbackRequest
from marginalia.model import SubmissionKind


@pytest.fixture(scope="session")
def llm_env(container: MarginaliaContainer) -> jinja2.Environment:
    """The prompt templates, as the container loads them."""
    return container.template().llm()


@pytest.fixture
def feedback_request() -> FeedbackRequest:
    """A GitHub submission for the portfolio assignment, already fetched."""
    return FeedbackRequest(
        assignment_code="ABC123",
        assignment_title="Personal Portfolio",
        requirements=["Responsive layout", "At least three projects"],
        recommendations=["Use semantic HTML"],
        kind=SubmissionKind.GitHub,
        content="## index.html\n\n<main>hi</main>",
        reference="https://github.com/ada/portfolio",
        title="ada/portfolio",
    )
