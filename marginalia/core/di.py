"""The parts of dependency_injector that Marginalia code reaches for.

Modules import this as `from marginalia.core import di` and declare their
dependencies as `di.Provide["pipeline.queries"]` defaults, resolved by path
in `MarginaliaContainer` once it is booted and wired.
"""

from __future__ import annotations

__all__ = [
    "NotReady",
    "Provide",
    "as_",
    "inject",
]

import functools
import typing as t

import dependency_injector.wiring as wiring
from dependency_injector.wiring import Provide, TypeModifier

from marginalia.lib.sentinel import NotReady

P = t.ParamSpec("P")
R = t.TypeVar("R")

# FastAPI evaluates the string annotations of these modules' handlers
# against the handler's __globals__
_RouteModules: t.Final[tuple[str, ...]] = ("marginalia.web",)


def inject(fn: t.Callable[P, R]) -> t.Callable[P, R]:
    """`wiring.inject`, except that route handlers keep their module globals."""
    injections, closing = wiring._fetch_reference_injections(fn)  # pyright: ignore [reportPrivateUsage]
    patched = wiring._get_patched(fn, injections, closing)  # pyright: ignore [reportPrivateUsage]
    if fn.__module__.startswith(_RouteModules) and hasattr(fn, "__globals__"):
        return functools.wraps(fn, updated=("__globals__",))(patched)
    return patched


def as_(type_: type[R]) -> TypeModifier:
    """Coerce a provided configuration value to `type_`, e.g. a settings model."""
    return TypeModifier(type_)
