"""Tests for marginalia.storage.stats module."""

from __future__ import annotations

import datetime
import typing as t

import marginalia.storage as storage
from marginalia.model import Assignment, Submission, SubmissionState, Subscores

if t.TYPE_CHECKING:
    from tests.conftest import Clock, SessionMaker


def score(sessionmaker: SessionMaker, submission: Submission, value: int, clock: Clock) -> None:
    with sessionmaker() as session, session.begin():
        storage.feedback.upsert(
            submission.submission_id,
            score=value,
            subscores=Subscores(requirements_met=value, quality=value, best_practices=value, creativity=value),
            content="feedback",
            model="m",
            latency_ms=1,
            session=session,
        )
        storage.submission.set_state(
            submission.submission_id, SubmissionState.FeedbackReady, update_time=clock(), session=session
        )


class TestUserStatus(object):
    """Tests for storage.stats.user_status()."""

    def test_no_submissions(
        self, sessionmaker: SessionMaker, assignment_factory: t.Callable[..., Assignment]
    ) -> None:
        """Every active assignment is outstanding and there is no average."""
        a = assignment_factory()
        assignment_factory(active=False)

        with sessionmaker() as session, session.begin():
            status = storage.stats.user_status("nobody", session=session)

        assert status.total_submissions == 0
        assert status.completion_rate == 0.0
        assert status.average_score is None
        assert [o.code for o in status.outstanding] == [a.code]

    def test_aggregates(
        self,
        sessionmaker: SessionMaker,
        assignment_factory: t.Callable[..., Assignment],
        submission_factory: t.Callable[..., Submission],
        clock: Clock,
    ) -> None:
        """Counts, completion against active assignments, on-time split and average score."""
        first = assignment_factory(deadline=clock() + datetime.timedelta(days=1))
        second = assignment_factory(deadline=clock() - datetime.timedelta(days=1))
        third = assignment_factory(deadline=clock() + datetime.timedelta(days=3))
        assignment_factory(active=False)

        on_time = submission_factory(first.code, submitter_id="ada")
        late = submission_factory(second.code, submitter_id="ada")
        submission_factory(first.code, submitter_id="grace")
        score(sessionmaker, on_time, 80, clock)
        score(sessionmaker, late, 65, clock)

        with sessionmaker() as session, session.begin():
            status = storage.stats.user_status("ada", session=session)

        assert status.total_submissions == 2
        assert status.feedback_ready == 2
        assert status.completion_rate == round(2 / 3 * 100, 1)
        assert status.average_score == 72.5
        assert (status.on_time, status.late) == (1, 1)
        assert [o.code for o in status.outstanding] == [third.code]
        assert {r.assignment_code for r in status.recent} == {first.code, second.code}
        assert {r.score for r in status.recent} == {80, 65}


class TestLeaderboard(object):
    """Tests for storage.stats.leaderboard()."""

    def test_ranks_by_average_score(
        self,
        sessionmaker: SessionMaker,
        assignment_factory: t.Callable[..., Assignment],
        submission_factory: t.Callable[..., Submission],
        clock: Clock,
    ) -> None:
        a = assignment_factory()
        b = assignment_factory()

        score(sessionmaker, submission_factory(a.code, submitter_id="ada"), 90, clock)
        score(sessionmaker, submission_factory(b.code, submitter_id="ada"), 70, clock)
        score(sessionmaker, submission_factory(a.code, submitter_id="grace"), 80, clock)
        score(sessionmaker, submission_factory(a.code, submitter_id="linus"), 95, clock)
        # no feedback yet, so not ranked
        submission_factory(a.code, submitter_id="ken")

        with sessionmaker() as session, session.begin():
            board = storage.stats.leaderboard(session=session)
            top = storage.stats.leaderboard(1, session=session)

        assert [(e.rank, e.submitter_id, e.average_score) for e in board] == [
            (1, "linus", 95.0),
            (2, "ada", 80.0),
            (3, "grace", 80.0),
        ]
        assert board[1].submissions == 2
        assert [e.submitter_id for e in top] == ["linus"]
