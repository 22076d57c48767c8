"""Regular-expression focus."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Dict, List, Optional

from ..config import RegexFocusConfig
from ..errors import FocusError
from ..models import LineRange
from .base import ArtifactFocus, Extraction
from .utils import line_of

_FLAG_VALUES = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


class RegexFocus(ArtifactFocus):
    """Compares the text matched by a pattern (or one of its groups)."""

    type = RegexFocusConfig.type

    def extract(self, content: str, config: RegexFocusConfig, file_path: Optional[str]) -> Extraction:
        compiled = _compile(config.pattern, config.flags)
        matches: List[str] = []
        context: List[Dict[str, Any]] = []
        first_line: Optional[int] = None
        last_line: Optional[int] = None
        for match in compiled.finditer(content):
            try:
                text = match.group(config.group) if config.group is not None else match.group(0)
            except IndexError as exc:
                raise FocusError(f"Regex '{config.pattern}' has no group {config.group!r}") from exc
            if text is None:
                continue
            start_line = line_of(content, match.start())
            end_line = line_of(content, max(match.start(), match.end() - 1))
            if first_line is None:
                first_line = start_line
            last_line = end_line
            matches.append(text)
            context.append({"match": text, "line": start_line})

        line_range = None
        if first_line is not None and last_line is not None:
            line_range = LineRange(start=first_line, end=last_line)
        return Extraction(artifact="\n".join(matches), line_range=line_range, context=context or None)


@lru_cache(maxsize=128)
def _compile(pattern: str, flags: str) -> re.Pattern[str]:
    value = 0
    for flag in flags:
        value |= _FLAG_VALUES[flag]
    try:
        return re.compile(pattern, value)
    except re.error as exc:
        raise FocusError(f"Invalid regex '{pattern}': {exc}") from exc


__all__ = ["RegexFocus"]
