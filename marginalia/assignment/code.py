"""Six-character assignment codes.

Codes are drawn from digits and uppercase letters, minus the letters people
confuse with digits when copying a code out of a chat message (`O`, `I`,
`L`). Input from people is always passed through `normalize`, which folds
those letters back to digits, before it is compared with anything.
"""

from __future__ import annotations

import logging
import secrets
import string
import typing as t

from marginalia.errors import CodeGenerationExhausted

logger = logging.getLogger(__name__)

Length: t.Final[int] = 6
Alphabet: t.Final[str] = "".join(c for c in string.digits + string.ascii_uppercase if c not in "OIL")

_Confusables = str.maketrans({"O": "0", "I": "1", "L": "1"})
_Separators = str.maketrans("", "", "-_ \t\r\n")


def generate() -> str:
    return "".join(secrets.choice(Alphabet) for _ in range(Length))


def generate_unique(exists: t.Callable[[str], bool], max_attempts: int = 10) -> str:
    """Generate a code for which `exists` returns False.

    Raises:
        CodeGenerationExhausted: if `max_attempts` candidates all collided
    """
    for attempt in range(1, max_attempts + 1):
        candidate = generate()
        if not exists(candidate):
            return candidate
        logger.debug("assignment code collision", extra={"code": candidate, "attempt": attempt})
    raise CodeGenerationExhausted(max_attempts)


def validate(code: str) -> bool:
    return isinstance(code, str) and len(code) == Length and all(c in Alphabet for c in code)


def _fold(value: str) -> str:
    return value.strip().upper().translate(_Separators).translate(_Confusables)


def normalize(value: str | None) -> str | None:
    """Fold a human-typed code into canonical form, or None if it cannot be one.

    >>> normalize(" abc-123 ")
    'ABC123'
    >>> normalize("O0I1L1")
    '001111'
    """
    if not value:
        return None
    folded = _fold(value)
    return folded if validate(folded) else None


def format_code(code: str) -> str:
    """Render a code for display as `ABC-123`."""
    normalized = normalize(code)
    if normalized is None:
        raise ValueError(f"invalid assignment code: {code!r}")
    return f"{normalized[:3]}-{normalized[3:]}"


def explain(value: str | None) -> str:
    """Describe, for a person, why `value` is not a usable code."""
    if not value or not value.strip():
        return "please enter an assignment code"
    folded = _fold(value)
    if len(folded) != Length:
        return f"assignment codes have {Length} characters (got {len(folded)})"
    bad = sorted({c for c in folded if c not in Alphabet})
    if bad:
        return f"assignment codes may only contain digits and letters; found {', '.join(bad)}"
    return "that does not look like an assignment code"


def distance(a: str, b: str) -> int:
    """Levenshtein edit distance."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + (ca != cb)))
        previous = current
    return previous[-1]


def suggest_similar(value: str, candidates: t.Iterable[str], max_distance: int = 2, limit: int = 3) -> list[str]:
    """Return up to `limit` candidates within `max_distance` edits of `value`.

    Closest first; candidates at equal distance keep their order in the pool.
    """
    if not value:
        return []
    folded = _fold(value)
    scored = [(distance(folded, c), i, c) for i, c in enumerate(candidates)]
    return [c for d, _, c in sorted(s for s in scored if s[0] <= max_distance)][:limit]


def collision_probability(existing: int) -> float:
    """Chance, in percent, that one fresh code collides with `existing` codes."""
    return existing / len(Alphabet) ** Length * 100
