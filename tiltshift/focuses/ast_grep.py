"""ast-grep pattern focus."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from ..config import AstGrepFocusConfig
from ..errors import FocusError
from ..models import LineRange
from .base import ArtifactFocus, Extraction
from .tsq import language_for_path

try:  # pragma: no cover - optional dependency
    from ast_grep_py import SgRoot

    AST_GREP_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    SgRoot = None  # type: ignore[assignment]
    AST_GREP_AVAILABLE = False


# tree-sitter grammar names that ast-grep spells differently.
_LANGUAGE_ALIASES = {"c_sharp": "csharp"}


class AstGrepFocus(ArtifactFocus):
    """Compares the source text of nodes matched by an ast-grep pattern.

    Patterns are code with metavariables, e.g. ``console.log($$$ARGS)``. The
    language comes from the focus config, else from the file extension.
    """

    type = AstGrepFocusConfig.type

    def __init__(self, enabled: Optional[bool] = None) -> None:
        self._enabled = AST_GREP_AVAILABLE if enabled is None else enabled

    def extract(self, content: str, config: AstGrepFocusConfig, file_path: Optional[str]) -> Extraction:
        if not self._enabled:
            raise FocusError(
                "The ast-grep focus requires ast-grep-py. Install it with `pip install tiltshift[ast-grep]`."
            )
        language = config.language or language_for_path(file_path)
        if not language:
            raise FocusError(
                f"ast-grep focus requires a language for {file_path or 'content'}; "
                "set 'language' on the focus or use a known file extension"
            )
        language = _LANGUAGE_ALIASES.get(language, language)

        pattern: Union[str, Dict[str, str]] = config.pattern
        if config.selector:
            pattern = {"context": config.pattern, "selector": config.selector}
        try:
            root = SgRoot(content, language).root()
            nodes = root.find_all({"rule": {"pattern": pattern}})
        except Exception as exc:
            raise FocusError(f"ast-grep pattern '{config.pattern}' failed for {language}: {exc}") from exc

        texts: List[str] = []
        context: List[Dict[str, Any]] = []
        first_line: Optional[int] = None
        last_line: Optional[int] = None
        for node in nodes:
            text = node.text()
            span = node.range()
            start_line = span.start.line + 1
            end_line = span.end.line + 1
            first_line = start_line if first_line is None else min(first_line, start_line)
            last_line = end_line if last_line is None else max(last_line, end_line)
            texts.append(text)
            context.append({"match": text, "line": start_line})

        line_range = None
        if first_line is not None and last_line is not None:
            line_range = LineRange(start=first_line, end=last_line)
        return Extraction(artifact="\n\n".join(texts), line_range=line_range, context=context or None)


__all__ = ["AST_GREP_AVAILABLE", "AstGrepFocus"]
