"""Submission intake and asynchronous feedback generation.

A submission moves through these states:

    created ──> feedback_pending ──> feedback_ready
                      │
                      └────────────> feedback_failed

`submit` admits a submission in `created` and hands a generation unit to the
worker without waiting for it. The unit marks the submission pending, takes a
slot from the AI quota, asks the generator for feedback under a timeout and
records either the feedback or the reason it could not be had. A failed unit
is never retried; `regenerate` starts a fresh one on request.
"""

from __future__ import annotations

import asyncio
import datetime
import functools
import logging
import math
import typing as t

import sqlalchemy.exc
import sqlalchemy.orm

import marginalia.storage as storage
from marginalia.content import ContentFetcher
from marginalia.core.config.pipeline import PipelineSettings
from marginalia.core.provider import TimestampProvider
from marginalia.errors import AssignmentInactive, DeadlinePassed, DuplicateSubmission, FeedbackGenerationFailed, \
    InvalidSubmissionState, MarginaliaError, QuotaExceeded, SubmissionNotFound
from marginalia.llm import FeedbackGenerator, FeedbackRequest
from marginalia.model import FetchOptions, Submission, SubmissionID, SubmissionKind, SubmissionReceipt, \
    SubmissionState, SubmissionStatus
from marginalia.storage.cache import CachePolicy
from marginalia.throttle import AIQuota

from .queries import SubmissionQueries
from .worker import FeedbackWorker

logger = logging.getLogger(__name__)


def parse_submission_id(submission_id: str) -> SubmissionID:
    """
    Raises:
        SubmissionNotFound: if `submission_id` cannot name a submission
    """
    if isinstance(submission_id, SubmissionID):
        return submission_id
    try:
        return SubmissionID(submission_id)
    except ValueError:
        raise SubmissionNotFound(submission_id) from None


class FeedbackPipeline(object):
    def __init__(
        self,
        sessionmaker: sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session],
        cache: CachePolicy,
        fetcher: ContentFetcher,
        generator: FeedbackGenerator,
        quota: AIQuota,
        worker: FeedbackWorker,
        queries: SubmissionQueries,
        clock: TimestampProvider,
        settings: PipelineSettings,
    ) -> None:
        self.sessionmaker = sessionmaker
        self.cache = cache
        self.fetcher = fetcher
        self.generator = generator
        self.quota = quota
        self.worker = worker
        self.queries = queries
        self.clock = clock
        self.settings = settings

    async def submit(
        self,
        code: str,
        submitter_id: str,
        kind: SubmissionKind,
        reference: str | None = None,
        content: str | None = None,
        title: str | None = None,
        options: FetchOptions | None = None,
    ) -> SubmissionReceipt:
        """Admit a submission and start generating feedback for it.

        Returns as soon as the submission is stored; feedback arrives later.

        Raises:
            InvalidAssignmentCode
            AssignmentNotFound
            AssignmentInactive
            DeadlinePassed
            DuplicateSubmission
            ContentFetchFailed
        """
        summary = await self.queries.get_assignment(code, submitter_id)
        assignment = summary.assignment
        code = assignment.code
        now = self.clock()

        if not assignment.active:
            raise AssignmentInactive(code)
        if now > assignment.deadline:
            raise DeadlinePassed(code, assignment.deadline.isoformat())
        if summary.own_submission_id is not None and not assignment.allow_resubmission:
            raise DuplicateSubmission(code, summary.own_submission_id)

        fetched = await self.fetcher.fetch(kind, reference=reference, content=content, title=title, options=options)

        fields = dict(
            kind=kind,
            reference=reference,
            title=fetched.title,
            content=fetched.content,
            structure=fetched.structure,
            metadata=fetched.metadata,
            submitted_at=now,
        )
        try:
            submission, replaced = self._store(code, submitter_id, assignment.allow_resubmission, fields)
        except sqlalchemy.exc.IntegrityError:
            # a concurrent submit by the same submitter inserted first; its row is visible now
            logger.info("lost submission insert race", extra={"assignment_code": code, "submitter_id": submitter_id})
            submission, replaced = self._store(code, submitter_id, assignment.allow_resubmission, fields)

        await self.cache.invalidate_submission(code, submitter_id, submission.submission_id)
        logger.info(
            "admitted submission",
            extra={
                "submission_id": submission.submission_id,
                "assignment_code": code,
                "submitter_id": submitter_id,
                "kind": kind.value,
                "replaced": replaced,
                "size": len(submission.content),
            },
        )
        self.dispatch(submission.submission_id)
        return SubmissionReceipt(
            submission_id=submission.submission_id, assignment_code=code, state=SubmissionState.Created
        )

    def _store(
        self, code: str, submitter_id: str, allow_resubmission: bool, fields: dict[str, t.Any]
    ) -> tuple[Submission, bool]:
        """Insert the submission, or overwrite the submitter's existing one; True when overwritten.

        Raises:
            DuplicateSubmission: if one exists and resubmission is not allowed
            sqlalchemy.exc.IntegrityError: if another insert got there first
        """
        with self.sessionmaker() as session, session.begin():
            existing = storage.submission.find_one(code, submitter_id, session=session)
            if existing is None:
                submission = storage.submission.create(
                    assignment_code=code, submitter_id=submitter_id, session=session, **fields
                )
                return submission, False
            if not allow_resubmission:
                raise DuplicateSubmission(code, existing.submission_id)
            return storage.submission.replace(existing.submission_id, session=session, **fields), True

    def dispatch(self, submission_id: SubmissionID) -> asyncio.Task[None]:
        return self.worker.dispatch(submission_id, functools.partial(self.generate, submission_id))

    async def generate(self, submission_id: SubmissionID) -> None:
        """Produce feedback for one submission, recording the outcome as its state.

        Never raises; every failure ends up on the submission.
        """
        try:
            await self._generate(submission_id)
        except Exception as e:
            logger.exception("feedback generation unit crashed", extra={"submission_id": submission_id})
            await self._abandon(submission_id, e)

    async def _abandon(self, submission_id: SubmissionID, error: Exception) -> None:
        """Move a submission left unfinished by a crashed unit to `feedback_failed`, if possible."""
        try:
            with self.sessionmaker() as session, session.begin():
                submission = storage.submission.get(submission_id, session=session)
            if submission is None or submission.state not in (SubmissionState.Created, SubmissionState.FeedbackPending):
                return
            self._fail(submission, FeedbackGenerationFailed(f"{type(error).__name__}: {error}"))
            await self.cache.invalidate_submission(submission.assignment_code, submission.submitter_id, submission_id)
        except Exception:
            logger.exception("could not record failed feedback", extra={"submission_id": submission_id})

    async def _generate(self, submission_id: SubmissionID) -> None:
        with self.sessionmaker() as session, session.begin():
            submission = storage.submission.get(submission_id, session=session)
            assignment = storage.assignment.get(submission.assignment_code, session=session) if submission else None
            if submission is None or assignment is None:
                logger.warning("submission disappeared before feedback", extra={"submission_id": submission_id})
                return
            storage.submission.set_state(
                submission_id, SubmissionState.FeedbackPending, update_time=self.clock(), session=session
            )

        try:
            await self.cache.invalidate_submission(submission.assignment_code, submission.submitter_id, submission_id)
            logger.info("generating feedback", extra={"submission_id": submission_id})

            try:
                acquired = await self.quota.acquire()
                status = await self.quota.status() if not acquired else None
            except Exception as e:
                logger.exception("AI quota unavailable", extra={"submission_id": submission_id})
                self._fail(submission, FeedbackGenerationFailed(f"AI quota unavailable ({type(e).__name__}: {e})"))
                return
            if status is not None:
                reset_in = 0
                if status.reset_at is not None:
                    # the quota keeps wall-clock time, not the pipeline clock
                    now = datetime.datetime.now(datetime.UTC)
                    reset_in = max(0, math.ceil((status.reset_at - now).total_seconds()))
                self._fail(submission, QuotaExceeded(status.limit, reset_in))
                return

            request = FeedbackRequest(
                assignment_code=assignment.code,
                assignment_title=assignment.title,
                requirements=assignment.requirements,
                recommendations=assignment.recommendations,
                category=assignment.category,
                difficulty=assignment.difficulty,
                kind=submission.kind,
                content=submission.content,
                reference=submission.reference,
                title=submission.title,
            )
            timeout = self.settings.generation_timeout_seconds
            try:
                async with asyncio.timeout(timeout):
                    response = await self.generator.generate_feedback(request)
            except TimeoutError:
                self._fail(submission, FeedbackGenerationFailed(f"no feedback within {timeout:g} seconds"))
                return
            except MarginaliaError as e:
                self._fail(submission, e)
                return
            except Exception as e:
                logger.exception("feedback generator raised", extra={"submission_id": submission_id})
                self._fail(submission, FeedbackGenerationFailed(f"{type(e).__name__}: {e}"))
                return

            with self.sessionmaker() as session, session.begin():
                storage.feedback.upsert(
                    submission_id,
                    score=response.score,
                    subscores=response.subscores,
                    content=response.content,
                    model=response.model_info.model,
                    tokens_used=response.model_info.tokens_used,
                    latency_ms=response.timing_ms,
                    session=session,
                )
                storage.submission.set_state(
                    submission_id, SubmissionState.FeedbackReady, update_time=self.clock(), session=session
                )
            logger.info(
                "feedback ready",
                extra={
                    "submission_id": submission_id,
                    "score": response.score,
                    "model": response.model_info.model,
                    "tokens_used": response.model_info.tokens_used,
                    "latency_ms": response.timing_ms,
                },
            )
        finally:
            await self.cache.invalidate_submission(submission.assignment_code, submission.submitter_id, submission_id)

    def _fail(self, submission: Submission, error: MarginaliaError) -> None:
        with self.sessionmaker() as session, session.begin():
            storage.submission.set_state(
                submission.submission_id,
                SubmissionState.FeedbackFailed,
                update_time=self.clock(),
                failure_reason=error.kind,
                failure_detail=error.message,
                session=session,
            )
        logger.warning(
            "feedback failed",
            extra={"submission_id": submission.submission_id, "reason": error.kind, "detail": error.message},
        )

    async def regenerate(self, submission_id: str) -> SubmissionReceipt:
        """Start a fresh generation unit for a submission whose last one finished.

        Raises:
            SubmissionNotFound
            InvalidSubmissionState: unless feedback is ready or has failed
        """
        sid = parse_submission_id(submission_id)
        with self.sessionmaker() as session, session.begin():
            submission = storage.submission.get(sid, session=session)
        if submission is None:
            raise SubmissionNotFound(submission_id)
        if not submission.state.regenerable:
            raise InvalidSubmissionState(submission_id, submission.state.value)

        logger.info("regenerating feedback", extra={"submission_id": sid, "state": submission.state.value})
        self.dispatch(sid)
        return SubmissionReceipt(submission_id=sid, assignment_code=submission.assignment_code, state=submission.state)

    async def get_submission_status(self, submission_id: str) -> SubmissionStatus:
        """
        Raises:
            SubmissionNotFound
        """
        sid = parse_submission_id(submission_id)

        def load() -> SubmissionStatus | None:
            with self.sessionmaker() as session, session.begin():
                submission = storage.submission.get(sid, session=session)
                if submission is None:
                    return None
                feedback = storage.feedback.get(sid, session=session)
            return SubmissionStatus(
                submission_id=submission.submission_id,
                assignment_code=submission.assignment_code,
                submitter_id=submission.submitter_id,
                kind=submission.kind,
                state=submission.state,
                failure_reason=submission.failure_reason,
                failure_detail=submission.failure_detail,
                submitted_at=submission.submitted_at,
                feedback=feedback,
            )

        status = await self.cache.read_through(
            self.cache.submission_key(sid), self.cache.ttl.submission, SubmissionStatus, load
        )
        if status is None:
            raise SubmissionNotFound(submission_id)
        return status
