"""Segment-aware glob matching for dotted hook patterns.

Patterns look like ``before.users.*``. ``*`` and ``?`` never cross a ``.``,
``**`` does. A ``**`` that is a whole segment also matches zero segments, so
``before.**.login`` matches both ``before.login`` and ``before.users.login``.
Character classes (``[a-z]``, ``[!x]``) and brace alternatives (``{a,b}``) are
supported.
"""

from __future__ import annotations

import re
from functools import lru_cache

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    match = _BRACE_RE.search(pattern)
    if match is None or "," not in match.group(1):
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        for candidate in expand_braces(head + option + tail):
            if candidate not in expanded:
                expanded.append(candidate)
    return expanded


def _translate_class(pattern: str, start: int) -> tuple[str, int] | None:
    end = pattern.find("]", start + 1)
    if end == -1:
        return None
    body = pattern[start + 1 : end]
    if not body:
        return None
    negate = body[0] in "!^"
    if negate:
        body = body[1:]
    body = body.replace("\\", "\\\\")
    if negate:
        return f"[^.{body}]", end + 1
    return f"[{body}]", end + 1


def translate(pattern: str) -> str:
    """Translate one brace-free glob into an anchored regular expression."""
    parts: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == "*":
            j = i
            while j < n and pattern[j] == "*":
                j += 1
            if j - i == 1:
                parts.append("[^.]*")
                i = j
                continue
            segment_start = i == 0 or pattern[i - 1] == "."
            if segment_start and j < n and pattern[j] == ".":
                parts.append(r"(?:[^.]*\.)*")
                i = j + 1
            else:
                parts.append(".*")
                i = j
        elif char == "?":
            parts.append("[^.]")
            i += 1
        elif char == "[":
            translated = _translate_class(pattern, i)
            if translated is None:
                parts.append(re.escape(char))
                i += 1
            else:
                parts.append(translated[0])
                i = translated[1]
        else:
            parts.append(re.escape(char))
            i += 1
    return r"\A" + "".join(parts) + r"\Z"


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(translate(variant)) for variant in expand_braces(pattern))


def match(candidate: str, pattern: str) -> bool:
    """Return True when ``candidate`` (e.g. ``before.users.login``) matches ``pattern``."""
    if candidate == pattern:
        return True
    return any(regex.match(candidate) for regex in compile_pattern(pattern))
