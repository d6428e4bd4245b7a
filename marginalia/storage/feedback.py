from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from marginalia.core import di
from marginalia.model import Feedback, FeedbackID, SubmissionID, Subscores

from . import Session
from .table import feedback


def get(
    submission_id: SubmissionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Feedback | None:
    """Get the feedback for a submission."""
    stmt = sqla.select(feedback.__table__).where(feedback.submission_id == submission_id)
    row = session.execute(stmt).mappings().one_or_none()
    return Feedback(**row) if row else None


def find(
    submission_ids: t.Collection[SubmissionID],
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> dict[SubmissionID, Feedback]:
    """Feedback for each of `submission_ids` that has any."""
    if not submission_ids:
        return {}
    stmt = sqla.select(feedback.__table__).where(feedback.submission_id.in_(list(submission_ids)))
    rows = session.execute(stmt).mappings().all()
    return {row["submission_id"]: Feedback(**row) for row in rows}


def upsert(
    submission_id: SubmissionID,
    *,
    score: int,
    subscores: Subscores,
    content: str,
    model: str,
    latency_ms: int,
    tokens_used: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Feedback:
    """Store feedback for a submission, replacing whatever was there.

    Replacement is wholesale: the new record gets a new id and creation time.
    """
    session.execute(sqla.delete(feedback).where(feedback.submission_id == submission_id))
    stmt = sqla.insert(feedback).values(
        feedback_id=FeedbackID(),
        submission_id=submission_id,
        score=score,
        subscores=subscores.model_dump(mode="json"),
        content=content,
        model=model,
        tokens_used=tokens_used,
        latency_ms=latency_ms,
    )
    session.execute(stmt)
    session.flush()
    result = get(submission_id, session=session)
    assert result is not None
    return result


def delete(
    submission_id: SubmissionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Delete the feedback for a submission.

    Returns:
        True if feedback was deleted, False if there was none
    """
    result = session.execute(sqla.delete(feedback).where(feedback.submission_id == submission_id))
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]
