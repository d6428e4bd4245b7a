"""Creating and maintaining assignments."""

from __future__ import annotations

import datetime
import logging
import typing as t

import sqlalchemy.orm

import marginalia.storage as storage
from marginalia.assignment import code as assignment_code
from marginalia.errors import AssignmentNotFound
from marginalia.lib.sentinel import NotSet
from marginalia.model import Assignment, AssignmentCategory, Difficulty
from marginalia.storage.cache import CachePolicy

from .queries import SubmissionQueries

logger = logging.getLogger(__name__)


class AssignmentService(object):
    def __init__(
        self,
        sessionmaker: sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session],
        cache: CachePolicy,
        queries: SubmissionQueries,
        max_code_attempts: int = 10,
    ) -> None:
        self.sessionmaker = sessionmaker
        self.cache = cache
        self.queries = queries
        self.max_code_attempts = max_code_attempts

    async def create_assignment(
        self,
        title: str,
        deadline: datetime.datetime,
        description: str = "",
        requirements: t.Sequence[str] = (),
        recommendations: t.Sequence[str] = (),
        category: AssignmentCategory = AssignmentCategory.Programming,
        difficulty: Difficulty = Difficulty.Intermediate,
        active: bool = True,
        allow_resubmission: bool = False,
    ) -> Assignment:
        """
        Raises:
            CodeGenerationExhausted
        """
        with self.sessionmaker() as session, session.begin():
            code = assignment_code.generate_unique(
                lambda c: storage.assignment.exists(c, session=session), self.max_code_attempts
            )
            assignment = storage.assignment.create(
                code=code,
                title=title,
                deadline=deadline,
                description=description,
                requirements=requirements,
                recommendations=recommendations,
                category=category,
                difficulty=difficulty,
                active=active,
                allow_resubmission=allow_resubmission,
                session=session,
            )

        await self.cache.invalidate_assignment(code)
        logger.info("created assignment", extra={"code": code, "title": title, "deadline": deadline})
        return assignment

    async def update_assignment(
        self,
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
    ) -> Assignment:
        """
        Raises:
            InvalidAssignmentCode
            AssignmentNotFound
        """
        code = self.queries.normalize(code)
        try:
            with self.sessionmaker() as session, session.begin():
                storage.assignment.update(
                    code,
                    title=title,
                    description=description,
                    requirements=requirements,
                    recommendations=recommendations,
                    category=category,
                    difficulty=difficulty,
                    deadline=deadline,
                    active=active,
                    allow_resubmission=allow_resubmission,
                    session=session,
                )
                assignment = storage.assignment.get(code, session=session)
        except KeyError:
            raise AssignmentNotFound(code) from None
        assert assignment is not None

        await self.cache.invalidate_assignment(code)
        logger.info("updated assignment", extra={"code": code})
        return assignment

    async def deactivate(self, code: str) -> Assignment:
        return await self.update_assignment(code, active=False)

    async def delete_assignment(self, code: str) -> None:
        """Delete an assignment along with its submissions and their feedback.

        Raises:
            InvalidAssignmentCode
            AssignmentNotFound
        """
        code = self.queries.normalize(code)
        with self.sessionmaker() as session, session.begin():
            submissions = storage.submission.find(assignment_code=code, session=session)
            if not storage.assignment.delete(code, session=session):
                raise AssignmentNotFound(code)

        await self.cache.invalidate_assignment(code)
        for s in submissions:
            await self.cache.invalidate_submission(code, s.submitter_id, s.submission_id)
        logger.info("deleted assignment", extra={"code": code, "submissions": len(submissions)})
