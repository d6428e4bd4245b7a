import datetime

import pydantic as p

from marginalia.model import FrozenModel


class WindowState(FrozenModel):
    """Where a client stands in the current window of one throttle scope."""

    limit: int
    remaining: int = p.Field(ge=0)
    reset_at: datetime.datetime


class QuotaStatus(FrozenModel):
    limit: int
    used: int
    # None while no window is open, i.e. nothing has been used since the
    # last one ended
    reset_at: datetime.datetime | None = None

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)
