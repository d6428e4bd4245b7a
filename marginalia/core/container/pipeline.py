from __future__ import annotations

import typing as t

from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Object, Provider, Singleton

from marginalia.pipeline import AssignmentService, FeedbackPipeline, FeedbackWorker, SubmissionQueries

from ..config.pipeline import PipelineSettings


class PipelineContainer(DeclarativeContainer):
    config = Configuration()
    sessionmaker: Provider[t.Any] = Object()
    cache: Provider[t.Any] = Object()
    fetcher: Provider[t.Any] = Object()
    generator: Provider[t.Any] = Object()
    quota: Provider[t.Any] = Object()
    utcnow: Provider[t.Any] = Object()

    worker: Provider[FeedbackWorker] = Singleton(FeedbackWorker, max_concurrency=config.max_concurrency)
    queries: Provider[SubmissionQueries] = Singleton(
        SubmissionQueries, sessionmaker=sessionmaker, cache=cache, settings=config.as_(PipelineSettings)
    )
    feedback: Provider[FeedbackPipeline] = Singleton(
        FeedbackPipeline,
        sessionmaker=sessionmaker,
        cache=cache,
        fetcher=fetcher,
        generator=generator,
        quota=quota,
        worker=worker,
        queries=queries,
        clock=utcnow,
        settings=config.as_(PipelineSettings),
    )
    assignments: Provider[AssignmentService] = Singleton(
        AssignmentService, sessionmaker=sessionmaker, cache=cache, queries=queries
    )
