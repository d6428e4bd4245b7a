"""Tests for marginalia.model package."""

from __future__ import annotations

import datetime

import pydantic as p
import pytest

from marginalia.model import Assignment, AssignmentCategory, Difficulty, Feedback, FeedbackID, SubmissionID, \
    Subscores, WithCtime, WithTimestamps

Now = datetime.datetime(2026, 3, 1, 12, 0, tzinfo=datetime.UTC)


class TestAssignment(object):
    """Tests for Assignment."""

    def test_timestamps_and_defaults(self) -> None:
        assignment = Assignment(
            code="ABC123",
            title="Personal Portfolio",
            deadline=Now + datetime.timedelta(days=7),
            create_time=Now,
            update_time=Now,
        )

        assert isinstance(assignment, WithTimestamps)
        assert assignment.category == AssignmentCategory.Programming
        assert assignment.difficulty == Difficulty.Intermediate
        assert assignment.model_dump(mode="json")["category"] == "programming"

    def test_is_open(self) -> None:
        deadline = Now + datetime.timedelta(days=1)
        assignment = Assignment(code="ABC123", title="x", deadline=deadline, create_time=Now, update_time=Now)

        assert assignment.is_open(Now)
        assert assignment.is_open(deadline)
        assert not assignment.is_open(deadline + datetime.timedelta(seconds=1))
        assert not assignment.model_copy(update={"active": False}).is_open(Now)


class TestFeedback(object):
    """Tests for Feedback."""

    def test_construct(self) -> None:
        feedback = Feedback(
            feedback_id=FeedbackID(),
            submission_id=SubmissionID(),
            score=82,
            subscores=Subscores(requirements_met=90, quality=80, best_practices=75, creativity=70),
            content="## Strengths",
            model="gpt-test",
            latency_ms=1200,
            create_time=Now,
        )

        assert isinstance(feedback, WithCtime)
        assert feedback.tokens_used is None

    def test_score_range(self) -> None:
        with pytest.raises(p.ValidationError):
            Subscores(requirements_met=101, quality=80, best_practices=75, creativity=70)
