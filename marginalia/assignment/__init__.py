__all__ = [
    "code",
]

from . import code
