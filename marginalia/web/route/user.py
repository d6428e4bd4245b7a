"""Per-submitter views and the leaderboard."""

from __future__ import annotations

import typing as t

from fastapi import APIRouter, Depends, Query

from marginalia.core import di
from marginalia.model import UserStatus, UserSubmissionView
from marginalia.pipeline import SubmissionQueries

from ..dependencies import Throttle
from ..view import LeaderboardResponse

router = APIRouter(prefix="/api", tags=["users"])


@router.get(
    "/users/{submitter_id}/status", operation_id="get_user_status", dependencies=[Depends(Throttle("query"))]
)
@di.inject
async def get_user_status(
    submitter_id: str,
    queries: SubmissionQueries = Depends(di.Provide["pipeline.queries"]),
) -> UserStatus:
    return await queries.get_user_status(submitter_id)


@router.get(
    "/users/{submitter_id}/submissions/{code}",
    operation_id="get_user_submission",
    dependencies=[Depends(Throttle("query"))],
)
@di.inject
async def get_user_submission(
    submitter_id: str,
    code: str,
    queries: SubmissionQueries = Depends(di.Provide["pipeline.queries"]),
) -> UserSubmissionView:
    return await queries.get_user_submission(submitter_id, code)


@router.get("/leaderboard", operation_id="get_leaderboard", dependencies=[Depends(Throttle("general"))])
@di.inject
async def get_leaderboard(
    limit: t.Annotated[int | None, Query(ge=1, le=100)] = None,
    queries: SubmissionQueries = Depends(di.Provide["pipeline.queries"]),
) -> LeaderboardResponse:
    return LeaderboardResponse(entries=await queries.get_leaderboard(limit))
