from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from marginalia.core import di
from marginalia.lib import NotSet
from marginalia.model import Assignment, AssignmentCategory, Difficulty

from . import Session
from .table import assignments


def get(
    code: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Assignment | None:
    """Get an assignment by its (normalized) code."""
    stmt = sqla.select(assignments.__table__).where(assignments.code == code)
    row = session.execute(stmt).mappings().one_or_none()
    return Assignment(**row) if row else None


def exists(
    code: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    stmt = sqla.select(sqla.exists().where(assignments.code == code))
    return bool(session.execute(stmt).scalar())


def find(
    *,
    active: bool | None = None,
    limit: int | None = None,
    offset: int = 0,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Assignment, ...]:
    """Find assignments, soonest deadline first."""
    stmt = sqla.select(assignments.__table__).order_by(assignments.deadline, assignments.code)
    if active is not None:
        stmt = stmt.where(assignments.active == active)
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    rows = session.execute(stmt).mappings().all()
    return tuple(Assignment(**row) for row in rows)


def codes(
    *,
    active: bool | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> list[str]:
    """All assignment codes, in creation order."""
    stmt = sqla.select(assignments.code).order_by(assignments.create_time, assignments.code)
    if active is not None:
        stmt = stmt.where(assignments.active == active)
    return list(session.execute(stmt).scalars())


def create(
    *,
    code: str,
    title: str,
    deadline: datetime.datetime,
    description: str = "",
    requirements: t.Sequence[str] = (),
    recommendations: t.Sequence[str] = (),
    category: AssignmentCategory = AssignmentCategory.Programming,
    difficulty: Difficulty = Difficulty.Intermediate,
    active: bool = True,
    allow_resubmission: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> Assignment:
    """Create a new assignment under an already-generated code."""
    stmt = sqla.insert(assignments).values(
        code=code,
        title=title,
        description=description,
        requirements=list(requirements),
        recommendations=list(recommendations),
        category=category,
        difficulty=difficulty,
        deadline=deadline,
        active=active,
        allow_resubmission=allow_resubmission,
    )
    session.execute(stmt)
    session.flush()
    result = get(code, session=session)
    assert result is not None
    return result


def update(
    code: str,
    *,
    title: str | NotSet = NotSet(),
    description: str | NotSet = NotSet(),
    requirements: t.Sequence[str] | NotSet = NotSet(),
    recommendations: t.Sequence[str] | NotSet = NotSet(),
    category: AssignmentCategory | NotSet = NotSet(),
    difficulty: Difficulty | NotSet = NotSet(),
    deadline: datetime.datetime | NotSet = NotSet(),
    active: bool | NotSet = NotSet(),
    allow_resubmission: bool | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Update an assignment.

    Call get() after if you need the updated entity.

    Raises:
        KeyError: If code does not correspond to an assignment
    """
    values: dict[str, t.Any] = {}
    if not isinstance(title, NotSet):
        values["title"] = title
    if not isinstance(description, NotSet):
        values["description"] = description
    if not isinstance(requirements, NotSet):
        values["requirements"] = list(requirements)
    if not isinstance(recommendations, NotSet):
        values["recommendations"] = list(recommendations)
    if not isinstance(category, NotSet):
        values["category"] = category
    if not isinstance(difficulty, NotSet):
        values["difficulty"] = difficulty
    if not isinstance(deadline, NotSet):
        values["deadline"] = deadline
    if not isinstance(active, NotSet):
        values["active"] = active
    if not isinstance(allow_resubmission, NotSet):
        values["allow_resubmission"] = allow_resubmission

    if not values:
        # No-op update to verify assignment exists
        values["code"] = code
    stmt = sqla.update(assignments).where(assignments.code == code).values(**values)

    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Assignment {code} not found")

    session.flush()


def delete(
    code: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> bool:
    """Delete an assignment along with its submissions.

    Returns:
        True if an assignment was deleted, False if not found
    """
    stmt = sqla.delete(assignments).where(assignments.code == code)
    result = session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]
