from __future__ import annotations

import typing as t


class Sentinel(object):
    """One shared instance per subclass, compared by identity or `isinstance`."""

    __instances: t.ClassVar[dict[type[Sentinel], Sentinel]] = {}

    def __new__(cls) -> t.Self:
        if cls not in Sentinel.__instances:
            Sentinel.__instances[cls] = super().__new__(cls)
        return t.cast(t.Self, Sentinel.__instances[cls])

    def __repr__(self) -> str:
        return f"<{type(self).__name__}>"

    def __reduce__(self) -> tuple[type[Sentinel], tuple[()]]:
        return type(self), ()


class NotReady(Sentinel):
    """A container value that exists only once the container has booted, e.g. `root`."""


class NotSet(Sentinel):
    """An update argument that was left out, so the stored value is kept; None is a value."""
