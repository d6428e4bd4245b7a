from __future__ import annotations

import typing as t

import pydantic as p


class ErrorDetail(p.BaseModel):
    kind: str
    message: str
    transient: bool
    details: dict[str, t.Any] = {}


class ErrorResponse(p.BaseModel):
    error: ErrorDetail
