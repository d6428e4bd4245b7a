"""Pytest fixtures for Marginalia tests.

Storage-backed tests each get a fresh in-memory sqlite database, so rows
never leak between tests. Components under test are assembled directly from
these fixtures; the container booted in the test environment is used where
wiring itself is under test (routes, CLI, container).

Usage:
    def test_get_assignment(sessionmaker: SessionMaker, assignment_factory):
        assignment = assignment_factory(title="Portfolio")
        ...
"""

from __future__ import annotations

import asyncio
import datetime
import os
import typing as t
from pathlib import Path

import httpx
import pydantic as p
import pytest
import sqlalchemy
import sqlalchemy.event
import sqlalchemy.orm
import sqlalchemy.pool
from fastapi import FastAPI
from fastapi.testclient import TestClient

import marginalia
import marginalia.storage as storage
from marginalia.core import MarginaliaContainer
from marginalia.core.config import GitHubSettings, PipelineSettings, WebPageSettings, WindowSettings
from marginalia.core.container.storage import enable_foreign_keys
from marginalia.content import ContentFetcher, GitHubRepositoryWalker
from marginalia.errors import FeedbackGenerationFailed
from marginalia.llm import FeedbackRequest, FeedbackResponse, ModelInfo
from marginalia.model import Assignment, AssignmentCategory, DeploymentEnvironment, Difficulty, Submission, \
    SubmissionKind, Subscores
from marginalia.pipeline import AssignmentService, FeedbackPipeline, FeedbackWorker, SubmissionQueries
from marginalia.storage.cache import CachePolicy, InMemoryCacheStore
from marginalia.storage.table import metadata
from marginalia.throttle import InMemoryAIQuota, InMemoryWindowLimiter

SessionMaker = sqlalchemy.orm.sessionmaker[sqlalchemy.orm.Session]

Root = Path(os.path.dirname(marginalia.__file__)).parent


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(scope="session")
def container() -> t.Generator[MarginaliaContainer]:
    """Boot the DI container once for the test session, in the test environment."""
    ct = MarginaliaContainer()
    MarginaliaContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{Root}/config"),
        override=(),
    )

    yield ct

    ct.shutdown_resources()


@pytest.fixture
def engine() -> t.Generator[sqlalchemy.Engine]:
    engine = sqlalchemy.create_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=sqlalchemy.pool.StaticPool,
        connect_args={"check_same_thread": False},
    )
    sqlalchemy.event.listen(engine, "connect", enable_foreign_keys)
    metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture
def sessionmaker(engine: sqlalchemy.Engine) -> SessionMaker:
    return sqlalchemy.orm.sessionmaker(engine, expire_on_commit=False, autoflush=False, autobegin=False)


class Clock(object):
    """A settable stand-in for `utcnow`."""

    def __init__(self, now: datetime.datetime) -> None:
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += datetime.timedelta(**kwargs)


@pytest.fixture
def clock() -> Clock:
    return Clock(datetime.datetime(2026, 3, 2, 9, 0, tzinfo=datetime.UTC))


@pytest.fixture
def assignment_factory(sessionmaker: SessionMaker, clock: Clock) -> t.Callable[..., Assignment]:
    """Factory fixture for creating assignments.

    Deadlines default to a week after the test clock's current time.
    """
    codes = iter(["ABC123", "XYZ789", "QRS456", "DEF234", "GHJ567", "KMN890"])

    def create_assignment(
        code: str | None = None,
        title: str = "Personal Portfolio",
        deadline: datetime.datetime | None = None,
        requirements: t.Sequence[str] = ("Responsive layout", "At least three projects"),
        recommendations: t.Sequence[str] = ("Use semantic HTML",),
        category: AssignmentCategory = AssignmentCategory.Programming,
        difficulty: Difficulty = Difficulty.Intermediate,
        active: bool = True,
        allow_resubmission: bool = False,
    ) -> Assignment:
        with sessionmaker() as session, session.begin():
            return storage.assignment.create(
                code=code or next(codes),
                title=title,
                deadline=deadline or clock() + datetime.timedelta(days=7),
                requirements=requirements,
                recommendations=recommendations,
                category=category,
                difficulty=difficulty,
                active=active,
                allow_resubmission=allow_resubmission,
                session=session,
            )

    return create_assignment


@pytest.fixture
def submission_factory(sessionmaker: SessionMaker, clock: Clock) -> t.Callable[..., Submission]:
    def create_submission(
        assignment_code: str,
        submitter_id: str = "student-1",
        kind: SubmissionKind = SubmissionKind.Code,
        content: str = "print('hello')\n",
        submitted_at: datetime.datetime | None = None,
    ) -> Submission:
        with sessionmaker() as session, session.begin():
            return storage.submission.create(
                assignment_code=assignment_code,
                submitter_id=submitter_id,
                kind=kind,
                content=content,
                submitted_at=submitted_at or clock(),
                session=session,
            )

    return create_submission


class ScriptedGenerator(object):
    """FeedbackGenerator whose behavior each test chooses.

    `mode` is one of "ok", "fail" or "hang".
    """

    def __init__(self, score: int = 82) -> None:
        self.score = score
        self.mode = "ok"
        self.requests: list[FeedbackRequest] = []

    async def generate_feedback(self, request: FeedbackRequest) -> FeedbackResponse:
        self.requests.append(request)
        match self.mode:
            case "fail":
                raise FeedbackGenerationFailed("the model replied with something that is not JSON")
            case "hang":
                await asyncio.sleep(3600)
        return FeedbackResponse(
            score=self.score,
            subscores=Subscores(requirements_met=90, quality=80, best_practices=75, creativity=70),
            content="## Strengths\n\nClear structure.",
            model_info=ModelInfo(model="scripted", tokens_used=321),
            timing_ms=12,
        )


@pytest.fixture
def generator() -> ScriptedGenerator:
    return ScriptedGenerator()


@pytest.fixture
def cache() -> CachePolicy:
    return CachePolicy(InMemoryCacheStore())


@pytest.fixture
def quota() -> InMemoryAIQuota:
    return InMemoryAIQuota(limit=100, window_seconds=3600)


@pytest.fixture
def http_client() -> httpx.AsyncClient:
    # respx patches the transport of every client, this one included
    return httpx.AsyncClient()


@pytest.fixture
def fetcher(http_client: httpx.AsyncClient) -> ContentFetcher:
    github = GitHubRepositoryWalker(http_client, GitHubSettings())
    return ContentFetcher(http_client, github, WebPageSettings())


@pytest.fixture
def pipeline_settings() -> PipelineSettings:
    return PipelineSettings(generation_timeout_seconds=0.5, max_concurrency=2, cohort_size=20)


@pytest.fixture
def queries(sessionmaker: SessionMaker, cache: CachePolicy, pipeline_settings: PipelineSettings) -> SubmissionQueries:
    return SubmissionQueries(sessionmaker, cache, pipeline_settings)


@pytest.fixture
def pipeline(
    sessionmaker: SessionMaker,
    cache: CachePolicy,
    fetcher: ContentFetcher,
    generator: ScriptedGenerator,
    quota: InMemoryAIQuota,
    queries: SubmissionQueries,
    clock: Clock,
    pipeline_settings: PipelineSettings,
) -> FeedbackPipeline:
    return FeedbackPipeline(
        sessionmaker=sessionmaker,
        cache=cache,
        fetcher=fetcher,
        generator=generator,
        quota=quota,
        worker=FeedbackWorker(max_concurrency=pipeline_settings.max_concurrency),
        queries=queries,
        clock=clock,
        settings=pipeline_settings,
    )


@pytest.fixture
def assignment_service(sessionmaker: SessionMaker, cache: CachePolicy, queries: SubmissionQueries) -> AssignmentService:
    return AssignmentService(sessionmaker, cache, queries)


@pytest.fixture
def limiter() -> InMemoryWindowLimiter:
    """A limiter with a small submission window and a frozen clock."""
    windows = {
        "general": WindowSettings(limit=100, window_seconds=900),
        "submission": WindowSettings(limit=3, window_seconds=3600),
        "feedback": WindowSettings(limit=100, window_seconds=600),
        "query": WindowSettings(limit=100, window_seconds=60),
    }
    return InMemoryWindowLimiter(windows, clock=lambda: 1_800_000_000.0)


@pytest.fixture
def app(
    container: MarginaliaContainer,
    pipeline: FeedbackPipeline,
    queries: SubmissionQueries,
    limiter: InMemoryWindowLimiter,
) -> t.Generator[FastAPI]:
    """Create the FastAPI application for testing.

    The pipeline, queries and limiter served by the container are replaced
    with the ones built from this test's fixtures, so requests see the
    test's database and clock.
    """
    from marginalia.core.config.web import MarginaliaWebSettings
    from marginalia.web.main import _create_app  # pyright: ignore[reportPrivateUsage]

    container.wire(
        modules=[
            "marginalia.web.main",
            "marginalia.web.dependencies",
            "marginalia.web.route.assignment",
            "marginalia.web.route.submission",
            "marginalia.web.route.user",
        ]
    )
    container.pipeline().feedback.override(pipeline)
    container.pipeline().queries.override(queries)
    container.throttle().limiter.override(limiter)

    yield _create_app(
        config=MarginaliaWebSettings(**container.config.web.marginalia()),
        env=DeploymentEnvironment.Test,
        worker=pipeline.worker,
    )

    container.pipeline().feedback.reset_override()
    container.pipeline().queries.reset_override()
    container.throttle().limiter.reset_override()


@pytest.fixture
def client(app: FastAPI) -> t.Generator[TestClient]:
    """Provide a TestClient.

    Leaving the client runs the application's shutdown, which waits for
    feedback generation still underway.
    """
    with TestClient(app) as test_client:
        yield test_client
