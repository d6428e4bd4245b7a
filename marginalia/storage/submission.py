from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from marginalia.core import di
from marginalia.model import ContentMetadata, Submission, SubmissionID, SubmissionKind, SubmissionState

from . import Session
from .table import feedback, submissions


def _from_row(row: t.Mapping[str, t.Any]) -> Submission:
    data = dict(row)
    # the column is named `metadata`; it is `content_metadata` only on the mapped class
    data["metadata"] = data["metadata"] or {}
    return Submission(**data)


def get(
    submission_id: SubmissionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Submission | None:
    stmt = sqla.select(submissions.__table__).where(submissions.submission_id == submission_id)
    row = session.execute(stmt).mappings().one_or_none()
    return _from_row(row) if row else None


def find_one(
    assignment_code: str,
    submitter_id: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Submission | None:
    """The submitter's submission to an assignment, if any."""
    stmt = sqla.select(submissions.__table__).where(
        submissions.assignment_code == assignment_code,
        submissions.submitter_id == submitter_id,
    )
    row = session.execute(stmt).mappings().one_or_none()
    return _from_row(row) if row else None


def find(
    *,
    submitter_id: str | None = None,
    assignment_code: str | None = None,
    state: SubmissionState | None = None,
    limit: int | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Submission, ...]:
    """Find submissions matching criteria, most recent first."""
    stmt = sqla.select(submissions.__table__).order_by(
        submissions.submitted_at.desc(), submissions.submission_id
    )
    if submitter_id is not None:
        stmt = stmt.where(submissions.submitter_id == submitter_id)
    if assignment_code is not None:
        stmt = stmt.where(submissions.assignment_code == assignment_code)
    if state is not None:
        stmt = stmt.where(submissions.state == state)
    if limit is not None:
        stmt = stmt.limit(limit)
    rows = session.execute(stmt).mappings().all()
    return tuple(_from_row(row) for row in rows)


def count_by_assignment(
    codes: t.Collection[str] | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> dict[str, int]:
    stmt = sqla.select(submissions.assignment_code, sqla.func.count()).group_by(submissions.assignment_code)
    if codes is not None:
        stmt = stmt.where(submissions.assignment_code.in_(list(codes)))
    return {code: count for code, count in session.execute(stmt).tuples()}


def create(
    *,
    assignment_code: str,
    submitter_id: str,
    kind: SubmissionKind,
    content: str,
    submitted_at: datetime.datetime,
    reference: str | None = None,
    title: str | None = None,
    structure: str | None = None,
    metadata: ContentMetadata | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Submission:
    """Create a new submission in the `created` state.

    Raises:
        sqlalchemy.exc.IntegrityError: if the submitter already has a
            submission to this assignment
    """
    submission_id = SubmissionID()
    stmt = sqla.insert(submissions).values(
        submission_id=submission_id,
        assignment_code=assignment_code,
        submitter_id=submitter_id,
        kind=kind,
        reference=reference,
        title=title,
        content=content,
        structure=structure,
        content_metadata=(metadata or ContentMetadata()).model_dump(mode="json"),
        state=SubmissionState.Created,
        submitted_at=submitted_at,
        update_time=submitted_at,
    )
    session.execute(stmt)
    session.flush()
    result = get(submission_id, session=session)
    assert result is not None
    return result


def replace(
    submission_id: SubmissionID,
    *,
    kind: SubmissionKind,
    content: str,
    submitted_at: datetime.datetime,
    reference: str | None = None,
    title: str | None = None,
    structure: str | None = None,
    metadata: ContentMetadata | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> Submission:
    """Overwrite a submission in place with new content.

    The id is kept, any feedback for the old content is deleted and the state
    goes back to `created`.

    Raises:
        KeyError: If submission_id does not correspond to a submission
    """
    session.execute(sqla.delete(feedback).where(feedback.submission_id == submission_id))
    stmt = (
        sqla
        .update(submissions)
        .where(submissions.submission_id == submission_id)
        .values(
            kind=kind,
            reference=reference,
            title=title,
            content=content,
            structure=structure,
            content_metadata=(metadata or ContentMetadata()).model_dump(mode="json"),
            state=SubmissionState.Created,
            failure_reason=None,
            failure_detail=None,
            submitted_at=submitted_at,
            update_time=submitted_at,
        )
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Submission {submission_id} not found")
    session.flush()
    replaced = get(submission_id, session=session)
    assert replaced is not None
    return replaced


def set_state(
    submission_id: SubmissionID,
    state: SubmissionState,
    *,
    update_time: datetime.datetime,
    failure_reason: str | None = None,
    failure_detail: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Move a submission to `state`.

    The failure fields are overwritten on every transition, so leaving a
    failed state clears them.

    Raises:
        KeyError: If submission_id does not correspond to a submission
    """
    stmt = (
        sqla
        .update(submissions)
        .where(submissions.submission_id == submission_id)
        .values(
            state=state,
            failure_reason=failure_reason,
            failure_detail=failure_detail,
            update_time=update_time,
        )
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Submission {submission_id} not found")
    session.flush()


def delete(
    submission_id: SubmissionID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Delete a submission and its feedback.

    Returns:
        True if a submission was deleted, False if not found
    """
    session.execute(sqla.delete(feedback).where(feedback.submission_id == submission_id))
    result = session.execute(sqla.delete(submissions).where(submissions.submission_id == submission_id))
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]
