"""Read-side views, served from the cache when possible."""

from __future__ import annotations

import logging

import sqlalchemy.orm

import marginalia.storage as storage
from marginalia.assignment import code as assignment_code
from marginalia.core.config.pipeline import PipelineSettings
from marginalia.errors import AssignmentNotFound, InvalidAssignmentCode
from marginalia.model import AssignmentSummary, LeaderboardEntry, UserStatus, UserSubmissionView
from marginalia.storage.cache import CachePolicy

logger = logging.getLogger(__name__)


class SubmissionQueries(object):
    def __init__(
        self,
        sessionmaker: sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session],
        cache: CachePolicy,
        settings: PipelineSettings,
    ) -> None:
        self.sessionmaker = sessionmaker
        self.cache = cache
        self.settings = settings

    def active_codes(self) -> list[str]:
        with self.sessionmaker() as session, session.begin():
            return storage.assignment.codes(active=True, session=session)

    def normalize(self, code: str) -> str:
        """
        Raises:
            InvalidAssignmentCode: with the closest active codes as suggestions
        """
        normalized = assignment_code.normalize(code)
        if normalized is None:
            raise InvalidAssignmentCode(
                assignment_code.explain(code),
                suggestions=assignment_code.suggest_similar(code or "", self.active_codes()),
            )
        return normalized

    def submission_rate(self, count: int) -> float | None:
        if self.settings.cohort_size is None:
            return None
        return round(count / self.settings.cohort_size * 100, 1)

    async def get_assignment(self, code: str, submitter_id: str) -> AssignmentSummary:
        """An assignment as `submitter_id` sees it.

        Raises:
            InvalidAssignmentCode
            AssignmentNotFound
        """
        code = self.normalize(code)

        def load() -> AssignmentSummary | None:
            with self.sessionmaker() as session, session.begin():
                assignment = storage.assignment.get(code, session=session)
                if assignment is None:
                    return None
                own = storage.submission.find_one(code, submitter_id, session=session)
                count = storage.submission.count_by_assignment([code], session=session).get(code, 0)
            return AssignmentSummary(
                assignment=assignment,
                submission_count=count,
                submission_rate=self.submission_rate(count),
                own_submission_id=own.submission_id if own else None,
                own_state=own.state.value if own else None,
            )

        summary = await self.cache.read_through(
            self.cache.assignment_key(code, submitter_id), self.cache.ttl.assignment, AssignmentSummary, load
        )
        if summary is None:
            raise AssignmentNotFound(code, suggestions=assignment_code.suggest_similar(code, self.active_codes()))
        return summary

    async def list_assignments(
        self, submitter_id: str, active: bool | None = None, limit: int = 20, offset: int = 0
    ) -> list[AssignmentSummary]:
        def load() -> list[AssignmentSummary]:
            with self.sessionmaker() as session, session.begin():
                assignments = storage.assignment.find(active=active, limit=limit, offset=offset, session=session)
                codes = [a.code for a in assignments]
                counts = storage.submission.count_by_assignment(codes, session=session)
                mine = storage.submission.find(submitter_id=submitter_id, session=session)
                own = {s.assignment_code: s for s in mine}
            return [
                AssignmentSummary(
                    assignment=a,
                    submission_count=counts.get(a.code, 0),
                    submission_rate=self.submission_rate(counts.get(a.code, 0)),
                    own_submission_id=own[a.code].submission_id if a.code in own else None,
                    own_state=own[a.code].state.value if a.code in own else None,
                )
                for a in assignments
            ]

        key = self.cache.assignment_list_key(submitter_id, active, limit, offset)
        result = await self.cache.read_through(key, self.cache.ttl.assignment_list, list[AssignmentSummary], load)
        return result or []

    async def get_user_submission(self, submitter_id: str, code: str) -> UserSubmissionView:
        """The submitter's submission to one assignment, with its feedback.

        Raises:
            InvalidAssignmentCode
            AssignmentNotFound
        """
        code = self.normalize(code)

        def load() -> UserSubmissionView | None:
            with self.sessionmaker() as session, session.begin():
                assignment = storage.assignment.get(code, session=session)
                if assignment is None:
                    return None
                submission = storage.submission.find_one(code, submitter_id, session=session)
                feedback = storage.feedback.get(submission.submission_id, session=session) if submission else None
            return UserSubmissionView(assignment=assignment, submission=submission, feedback=feedback)

        view = await self.cache.read_through(
            self.cache.user_submission_key(submitter_id, code), self.cache.ttl.user_submission, UserSubmissionView, load
        )
        if view is None:
            raise AssignmentNotFound(code, suggestions=assignment_code.suggest_similar(code, self.active_codes()))
        return view

    async def get_user_status(self, submitter_id: str) -> UserStatus:
        def load() -> UserStatus:
            with self.sessionmaker() as session, session.begin():
                return storage.stats.user_status(submitter_id, session=session)

        return await self.cache.cached(
            self.cache.user_status_key(submitter_id), self.cache.ttl.user_status, UserStatus, load
        )

    async def get_leaderboard(self, limit: int | None = None) -> list[LeaderboardEntry]:
        limit = limit or self.settings.leaderboard_limit

        def load() -> list[LeaderboardEntry]:
            with self.sessionmaker() as session, session.begin():
                return storage.stats.leaderboard(limit, session=session)

        return await self.cache.cached(
            self.cache.leaderboard_key(limit), self.cache.ttl.leaderboard, list[LeaderboardEntry], load
        )
