__all__ = [
    "CachePolicy",
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
]

from .memory import InMemoryCacheStore
from .policy import CachePolicy
from .redis import RedisCacheStore
from .store import CacheStore
