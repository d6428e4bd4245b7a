"""View models for assignments and per-submitter views."""

from __future__ import annotations

import pydantic as p

from marginalia.model import AssignmentSummary, LeaderboardEntry


class AssignmentListResponse(p.BaseModel):
    assignments: list[AssignmentSummary]
    limit: int
    offset: int


class LeaderboardResponse(p.BaseModel):
    entries: list[LeaderboardEntry]
