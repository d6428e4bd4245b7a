from __future__ import annotations

import typing as t

import annotated_types as ant

from .base import BaseSettings


class PipelineSettings(BaseSettings):
    generation_timeout_seconds: t.Annotated[float, ant.Gt(0)] = 120.0
    max_concurrency: t.Annotated[int, ant.Gt(0)] = 4
    # number of submitters expected per assignment; without it the
    # submission rate of an assignment is not reported
    cohort_size: t.Annotated[int, ant.Gt(0)] | None = None
    leaderboard_limit: t.Annotated[int, ant.Gt(0)] = 10
