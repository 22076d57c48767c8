"""Glob matching for projection ``include`` patterns."""

from __future__ import annotations

import re
from functools import lru_cache

# A wildcard at the start of a segment never matches a leading dot.
_NO_DOT = r"(?!\.)"
_SEGMENT = _NO_DOT + r"[^/]*"


def matches_glob(path: str, pattern: str) -> bool:
    """Return True when ``path`` matches ``pattern``.

    ``*`` and ``?`` stay within one path segment, ``**`` spans segments and
    ``{a,b}`` selects alternatives. Patterns without a slash only match paths at
    the repository root, so ``*.json`` matches ``package.json`` but not
    ``src/package.json``. Wildcards skip dot-prefixed names (``.eslintrc.json``,
    ``.github/``) unless the pattern spells the dot out, e.g. ``.github/**``.
    """
    normalized = path.replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return _compile(pattern).fullmatch(normalized) is not None


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    if pattern.startswith("./"):
        pattern = pattern[2:]
    parts: list[str] = []
    index = 0
    depth = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        at_segment_start = index == 0 or pattern[index - 1] == "/" or (depth and pattern[index - 1] in "{,")
        if char == "*":
            if pattern.startswith("**", index):
                after = index + 2
                if at_segment_start and pattern.startswith("/", after):
                    parts.append(f"(?:{_SEGMENT}/)*")
                    index = after + 1
                    continue
                if at_segment_start and after == length:
                    parts.append(f"{_SEGMENT}(?:/{_SEGMENT})*")
                    index = after
                    continue
                parts.append(_SEGMENT if at_segment_start else "[^/]*")
                index = after
                continue
            parts.append(_SEGMENT if at_segment_start else "[^/]*")
        elif char == "?":
            parts.append(_NO_DOT + "[^/]" if at_segment_start else "[^/]")
        elif char == "[":
            closing = pattern.find("]", index + 2)
            if closing == -1:
                parts.append(re.escape(char))
            else:
                body = pattern[index + 1 : closing]
                if body.startswith("!"):
                    body = "^" + body[1:]
                parts.append(f"{_NO_DOT if at_segment_start else ''}[{body}]")
                index = closing
        elif char == "{":
            depth += 1
            parts.append("(?:")
        elif char == "}" and depth:
            depth -= 1
            parts.append(")")
        elif char == "," and depth:
            parts.append("|")
        else:
            parts.append(re.escape(char))
        index += 1
    if depth:
        # Unbalanced brace: treat the whole pattern literally.
        return re.compile(re.escape(pattern))
    return re.compile("".join(parts))


__all__ = ["matches_glob"]
