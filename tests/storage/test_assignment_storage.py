"""Tests for marginalia.storage.assignment module."""

from __future__ import annotations

import datetime
import typing as t

import pytest

import marginalia.storage as storage
from marginalia.lib import NotSet
from marginalia.model import Assignment, AssignmentCategory, Difficulty, SubmissionKind

if t.TYPE_CHECKING:
    from tests.conftest import Clock, SessionMaker


class TestGet(object):
    """Tests for storage.assignment.get() and exists()."""

    def test_get_by_code(self, sessionmaker: SessionMaker, assignment_factory: t.Callable[..., Assignment]) -> None:
        """get() returns the assignment with its lists and timestamps."""
        created = assignment_factory(code="ABC123", title="Portfolio")

        with sessionmaker() as session, session.begin():
            result = storage.assignment.get("ABC123", session=session)

        assert result is not None
        assert result.title == "Portfolio"
        assert result.requirements == ["Responsive layout", "At least three projects"]
        assert result.deadline == created.deadline
        assert result.deadline.tzinfo is not None
        assert result.create_time is not None

    def test_get_nonexistent_returns_none(self, sessionmaker: SessionMaker) -> None:
        with sessionmaker() as session, session.begin():
            assert storage.assignment.get("ZZZ999", session=session) is None

    def test_exists(self, sessionmaker: SessionMaker, assignment_factory: t.Callable[..., Assignment]) -> None:
        assignment_factory(code="ABC123")

        with sessionmaker() as session, session.begin():
            assert storage.assignment.exists("ABC123", session=session)
            assert not storage.assignment.exists("XYZ789", session=session)


class TestFind(object):
    """Tests for storage.assignment.find() and codes()."""

    def test_find_orders_by_deadline(
        self, sessionmaker: SessionMaker, assignment_factory: t.Callable[..., Assignment], clock: Clock
    ) -> None:
        """find() lists the soonest deadline first."""
        later = assignment_factory(deadline=clock() + datetime.timedelta(days=14))
        sooner = assignment_factory(deadline=clock() + datetime.timedelta(days=2))

        with sessionmaker() as session, session.begin():
            result = storage.assignment.find(session=session)

        assert [a.code for a in result] == [sooner.code, later.code]

    def test_find_active_filter(
        self, sessionmaker: SessionMaker, assignment_factory: t.Callable[..., Assignment]
    ) -> None:
        active = assignment_factory()
        inactive = assignment_factory(active=False)

        with sessionmaker() as session, session.begin():
            only_active = storage.assignment.find(active=True, session=session)
            only_inactive = storage.assignment.find(active=False, session=session)

        assert [a.code for a in only_active] == [active.code]
        assert [a.code for a in only_inactive] == [inactive.code]

    def test_find_paginates(
        self, sessionmaker: SessionMaker, assignment_factory: t.Callable[..., Assignment], clock: Clock
    ) -> None:
        created = [assignment_factory(deadline=clock() + datetime.timedelta(days=i + 1)) for i in range(4)]

        with sessionmaker() as session, session.begin():
            page = storage.assignment.find(limit=2, offset=1, session=session)

        assert [a.code for a in page] == [created[1].code, created[2].code]

    def test_codes(self, sessionmaker: SessionMaker, assignment_factory: t.Callable[..., Assignment]) -> None:
        assignment_factory(code="ABC123")
        assignment_factory(code="XYZ789", active=False)

        with sessionmaker() as session, session.begin():
            assert set(storage.assignment.codes(session=session)) == {"ABC123", "XYZ789"}
            assert storage.assignment.codes(active=True, session=session) == ["ABC123"]


class TestUpdate(object):
    """Tests for storage.assignment.update()."""

    def test_update_changes_only_given_fields(
        self, sessionmaker: SessionMaker, assignment_factory: t.Callable[..., Assignment]
    ) -> None:
        assignment_factory(code="ABC123", title="Portfolio")

        with sessionmaker() as session, session.begin():
            storage.assignment.update("ABC123", active=False, session=session)
            result = storage.assignment.get("ABC123", session=session)

        assert result is not None
        assert result.active is False
        assert result.title == "Portfolio"

    def test_category_and_difficulty(
        self, sessionmaker: SessionMaker, assignment_factory: t.Callable[..., Assignment]
    ) -> None:
        """Category and difficulty default to programming and intermediate, and can be changed."""
        created = assignment_factory(code="ABC123")
        assert (created.category, created.difficulty) == (AssignmentCategory.Programming, Difficulty.Intermediate)

        with sessionmaker() as session, session.begin():
            storage.assignment.update(
                "ABC123", category=AssignmentCategory.Blog, difficulty=Difficulty.Beginner, session=session
            )
            result = storage.assignment.get("ABC123", session=session)

        assert result is not None
        assert (result.category, result.difficulty) == (AssignmentCategory.Blog, Difficulty.Beginner)

    def test_update_with_nothing_checks_existence(self, sessionmaker: SessionMaker) -> None:
        """An update with every field NotSet still raises for a missing code."""
        with pytest.raises(KeyError):
            with sessionmaker() as session, session.begin():
                storage.assignment.update("ZZZ999", title=NotSet(), session=session)


class TestDelete(object):
    """Tests for storage.assignment.delete()."""

    def test_delete_cascades_to_submissions(
        self,
        sessionmaker: SessionMaker,
        assignment_factory: t.Callable[..., Assignment],
        submission_factory: t.Callable[..., t.Any],
    ) -> None:
        assignment_factory(code="ABC123")
        submission = submission_factory("ABC123", kind=SubmissionKind.Code)

        with sessionmaker() as session, session.begin():
            assert storage.assignment.delete("ABC123", session=session)

        with sessionmaker() as session, session.begin():
            assert storage.submission.get(submission.submission_id, session=session) is None
            assert not storage.assignment.delete("ABC123", session=session)
