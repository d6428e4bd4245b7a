"""Route aggregation for the Marginalia web application."""

from fastapi import APIRouter

from . import assignment, submission, user

router = APIRouter()
router.include_router(submission.router)
router.include_router(assignment.router)
router.include_router(user.router)
