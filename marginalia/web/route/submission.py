"""Submission intake and feedback status routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from marginalia.core import di
from marginalia.model import SubmissionReceipt, SubmissionStatus
from marginalia.pipeline import FeedbackPipeline

from ..dependencies import Throttle
from ..view import SubmissionCreateRequest

router = APIRouter(prefix="/api/submissions", tags=["submissions"])


@router.post(
    "",
    operation_id="create_submission",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(Throttle("submission"))],
)
@di.inject
async def create_submission(
    request: SubmissionCreateRequest,
    pipeline: FeedbackPipeline = Depends(di.Provide["pipeline.feedback"]),
) -> SubmissionReceipt:
    """Submit work to an assignment.

    Returns as soon as the submission is stored, in state `created`; poll
    the submission to see its feedback arrive.
    """
    return await pipeline.submit(
        request.assignment_code,
        request.submitter_id,
        request.kind,
        reference=request.reference,
        content=request.content,
        title=request.title,
        options=request.options,
    )


@router.get("/{submission_id}", operation_id="get_submission", dependencies=[Depends(Throttle("feedback"))])
@di.inject
async def get_submission(
    submission_id: str,
    pipeline: FeedbackPipeline = Depends(di.Provide["pipeline.feedback"]),
) -> SubmissionStatus:
    return await pipeline.get_submission_status(submission_id)


@router.post(
    "/{submission_id}/regenerate",
    operation_id="regenerate_feedback",
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(Throttle("feedback"))],
)
@di.inject
async def regenerate_feedback(
    submission_id: str,
    pipeline: FeedbackPipeline = Depends(di.Provide["pipeline.feedback"]),
) -> SubmissionReceipt:
    """Generate feedback again for a submission whose feedback is ready or has failed."""
    return await pipeline.regenerate(submission_id)
