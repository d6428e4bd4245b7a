"""Pull the readable text out of a web page."""

from __future__ import annotations

import re
import typing as t

_Flags = re.IGNORECASE | re.DOTALL

# tried in order; the first that matches is taken as the page's main region
MainRegions: t.Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"<article\b[^>]*>(.*?)</article>", _Flags),
    re.compile(r"<main\b[^>]*>(.*?)</main>", _Flags),
    re.compile(r"<div\b[^>]*class=\"[^\"]*content[^\"]*\"[^>]*>(.*?)</div>", _Flags),
    re.compile(r"<div\b[^>]*class=\"[^\"]*post[^\"]*\"[^>]*>(.*?)</div>", _Flags),
    re.compile(r"<body\b[^>]*>(.*?)</body>", _Flags),
)

_Boilerplate = re.compile(r"<(script|style|nav|header|footer|aside)\b[^>]*>.*?</\1\s*>", _Flags)
_Tag = re.compile(r"<[^>]+>")
_Space = re.compile(r"\s+")
_Title = re.compile(r"<title\b[^>]*>([^<]*)</title>", re.IGNORECASE)

Entities: t.Final[dict[str, str]] = {
    "&nbsp;": " ",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&amp;": "&",
}
_Entity = re.compile("|".join(re.escape(e) for e in Entities))

_Dangerous = (
    re.compile(r"<script\b.*?</script\s*>", _Flags),
    re.compile(r"<iframe\b.*?</iframe\s*>", _Flags),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=\s*\"[^\"]*\"", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=\s*'[^']*'", re.IGNORECASE),
)


def decode_entities(s: str) -> str:
    """
    >>> decode_entities("a&nbsp;&lt;b&gt; &amp;amp;")
    'a <b> &amp;'
    """
    return _Entity.sub(lambda m: Entities[m.group(0)], s)


def sanitize(content: str) -> str:
    """Strip markup that could execute if the text were ever rendered as HTML."""
    for pattern in _Dangerous:
        content = pattern.sub("", content)
    return content


def extract_title(html: str) -> str | None:
    if m := _Title.search(html):
        return _Space.sub(" ", decode_entities(m.group(1))).strip() or None
    return None


def extract_text(html: str) -> str:
    region = html
    for pattern in MainRegions:
        if m := pattern.search(html):
            region = m.group(1)
            break
    text = _Boilerplate.sub(" ", region)
    text = _Tag.sub(" ", text)
    text = decode_entities(text)
    return sanitize(_Space.sub(" ", text).strip())
