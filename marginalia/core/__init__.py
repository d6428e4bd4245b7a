import importlib
import typing as t

__all__ = [
    "BootConfiguration",
    "di",
    "MarginaliaContainer",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di

if t.TYPE_CHECKING:
    from .config import Secrets, Settings
    from .container import BootConfiguration, MarginaliaContainer
    from .provider import LoggingProvider, TimestampProvider

# the container imports every component package, and those import their
# settings from `marginalia.core.config`, so it is only loaded on first use
_Lazy: t.Final[dict[str, str]] = {
    "BootConfiguration": ".container",
    "MarginaliaContainer": ".container",
    "LoggingProvider": ".provider",
    "TimestampProvider": ".provider",
    "Settings": ".config",
    "Secrets": ".config",
}


def __getattr__(name: str) -> t.Any:
    if name in _Lazy:
        value = getattr(importlib.import_module(_Lazy[name], __name__), name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__} has no attribute {name}")
