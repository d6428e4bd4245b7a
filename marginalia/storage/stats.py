"""Aggregates over submissions and feedback for the read-side views."""

from __future__ import annotations

import datetime

import sqlalchemy as sqla

from marginalia.core import di
from marginalia.model import Assignment, LeaderboardEntry, RecentSubmission, SubmissionState, UserStatus

from . import Session
from .table import assignments, feedback, submissions

RecentLimit = 5


def is_late(submitted_at: datetime.datetime, deadline: datetime.datetime) -> bool:
    return submitted_at > deadline


def user_status(
    submitter_id: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> UserStatus:
    """Summarize one submitter's submissions.

    Completion is measured against active assignments only. A submission is on
    time when it was made no later than its assignment's deadline.
    """
    stmt = (
        sqla
        .select(
            submissions.submission_id,
            submissions.assignment_code,
            submissions.state,
            submissions.submitted_at,
            assignments.title.label("assignment_title"),
            assignments.deadline,
            assignments.active,
            feedback.score,
        )
        .join(assignments, assignments.code == submissions.assignment_code)
        .outerjoin(feedback, feedback.submission_id == submissions.submission_id)
        .where(submissions.submitter_id == submitter_id)
        .order_by(submissions.submitted_at.desc(), submissions.submission_id)
    )
    rows = session.execute(stmt).mappings().all()

    active = sqla.select(assignments.__table__).where(assignments.active.is_(True)).order_by(assignments.deadline)
    active_assignments = [Assignment(**row) for row in session.execute(active).mappings().all()]

    submitted = {row["assignment_code"] for row in rows}
    scores = [row["score"] for row in rows if row["score"] is not None]
    on_time = sum(1 for row in rows if not is_late(row["submitted_at"], row["deadline"]))

    completion_rate = 0.0
    if active_assignments:
        done = sum(1 for a in active_assignments if a.code in submitted)
        completion_rate = round(done / len(active_assignments) * 100, 1)

    return UserStatus(
        submitter_id=submitter_id,
        total_submissions=len(rows),
        feedback_ready=sum(1 for row in rows if row["state"] is SubmissionState.FeedbackReady),
        completion_rate=completion_rate,
        average_score=round(sum(scores) / len(scores), 1) if scores else None,
        on_time=on_time,
        late=len(rows) - on_time,
        recent=[
            RecentSubmission(
                submission_id=row["submission_id"],
                assignment_code=row["assignment_code"],
                assignment_title=row["assignment_title"],
                state=row["state"].value,
                score=row["score"],
                submitted_at=row["submitted_at"],
            )
            for row in rows[:RecentLimit]
        ],
        outstanding=[a for a in active_assignments if a.code not in submitted],
    )


def leaderboard(
    limit: int = 10,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> list[LeaderboardEntry]:
    """Submitters with at least one scored submission, best average score first.

    Ties go to whoever submitted more, then to submitter id.
    """
    average = sqla.func.avg(feedback.score)
    count = sqla.func.count(submissions.submission_id)
    stmt = (
        sqla
        .select(submissions.submitter_id, average.label("average_score"), count.label("submissions"))
        .outerjoin(feedback, feedback.submission_id == submissions.submission_id)
        .group_by(submissions.submitter_id)
        .having(sqla.func.count(feedback.score) > 0)
        .order_by(average.desc(), count.desc(), submissions.submitter_id)
        .limit(limit)
    )
    return [
        LeaderboardEntry(
            rank=rank,
            submitter_id=row["submitter_id"],
            average_score=round(float(row["average_score"]), 1),
            submissions=row["submissions"],
        )
        for rank, row in enumerate(session.execute(stmt).mappings().all(), start=1)
    ]
