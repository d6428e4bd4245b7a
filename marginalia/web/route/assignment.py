"""Assignment lookup routes."""

from __future__ import annotations

import typing as t

from fastapi import APIRouter, Depends, Query

from marginalia.core import di
from marginalia.model import AssignmentSummary
from marginalia.pipeline import SubmissionQueries

from ..dependencies import Throttle
from ..view import AssignmentListResponse

router = APIRouter(prefix="/api/assignments", tags=["assignments"], dependencies=[Depends(Throttle("query"))])


@router.get("", operation_id="list_assignments")
@di.inject
async def list_assignments(
    submitter_id: str = "",
    active: bool | None = None,
    limit: t.Annotated[int, Query(ge=1, le=100)] = 20,
    offset: t.Annotated[int, Query(ge=0)] = 0,
    queries: SubmissionQueries = Depends(di.Provide["pipeline.queries"]),
) -> AssignmentListResponse:
    assignments = await queries.list_assignments(submitter_id, active=active, limit=limit, offset=offset)
    return AssignmentListResponse(assignments=assignments, limit=limit, offset=offset)


@router.get("/{code}", operation_id="get_assignment")
@di.inject
async def get_assignment(
    code: str,
    submitter_id: str = "",
    queries: SubmissionQueries = Depends(di.Provide["pipeline.queries"]),
) -> AssignmentSummary:
    """Look up an assignment by code, as typed by a person.

    Mistyped codes are answered with suggestions of similar active codes.
    """
    return await queries.get_assignment(code, submitter_id)
