"""FastAPI dependency providers for the Marginalia web application."""

import logging

from fastapi import Depends, Request, Response

from marginalia.core import di
from marginalia.throttle import WindowLimiter

logger = logging.getLogger(__name__)

ClientHeader = "X-Client-ID"


def client_id(request: Request) -> str:
    """Who a request counts against: the `X-Client-ID` header, else the peer address."""
    if header := request.headers.get(ClientHeader, "").strip():
        return header
    if request.client is not None:
        return request.client.host
    return "unknown"


class Throttle(object):
    """Dependency counting each request against one throttle scope.

    Sets the `X-RateLimit-*` headers on the response; a request over the
    scope's cap raises RateLimitExceeded before the route runs.
    """

    def __init__(self, scope: str) -> None:
        self.scope = scope

    @di.inject
    async def __call__(
        self,
        request: Request,
        response: Response,
        limiter: WindowLimiter = Depends(di.Provide["throttle.limiter"]),
    ) -> None:
        state = await limiter.hit(self.scope, client_id(request))
        response.headers["X-RateLimit-Limit"] = str(state.limit)
        response.headers["X-RateLimit-Remaining"] = str(state.remaining)
        response.headers["X-RateLimit-Reset"] = str(int(state.reset_at.timestamp()))
