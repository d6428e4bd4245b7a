__all__ = [
    "AIQuota",
    "InMemoryAIQuota",
    "InMemoryWindowLimiter",
    "QuotaStatus",
    "RedisAIQuota",
    "RedisWindowLimiter",
    "WindowLimiter",
    "WindowState",
]

from .limiter import InMemoryWindowLimiter, RedisWindowLimiter, WindowLimiter
from .quota import AIQuota, InMemoryAIQuota, RedisAIQuota
from .state import QuotaStatus, WindowState
