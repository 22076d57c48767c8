"""Tree-sitter query focus."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Tuple

from ..config import TsqFocusConfig
from ..errors import FocusError
from ..models import LineRange
from .base import ArtifactFocus, Extraction

try:  # pragma: no cover - optional dependency
    from tree_sitter import Parser
    from tree_sitter_languages import get_language

    TREE_SITTER_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    Parser = None  # type: ignore[assignment]
    get_language = None  # type: ignore[assignment]
    TREE_SITTER_AVAILABLE = False


_EXTENSION_LANGUAGES = {
    ".py": "python",
    ".java": "java",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".cs": "c_sharp",
    ".kt": "kotlin",
    ".php": "php",
    ".sh": "bash",
    ".json": "json",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".toml": "toml",
}


class TsqFocus(ArtifactFocus):
    """Compares the source text of nodes captured by a tree-sitter query."""

    type = TsqFocusConfig.type

    def __init__(self, enabled: Optional[bool] = None) -> None:
        self._enabled = TREE_SITTER_AVAILABLE if enabled is None else enabled
        self._parsers: Dict[str, Tuple[Any, Any]] = {}

    def extract(self, content: str, config: TsqFocusConfig, file_path: Optional[str]) -> Extraction:
        if not self._enabled:
            raise FocusError(
                "The tsq focus requires tree-sitter. Install it with `pip install tiltshift[tree-sitter]`."
            )
        language_key = config.language or language_for_path(file_path)
        if not language_key:
            raise FocusError(
                f"Cannot infer a tree-sitter language for {file_path or 'content'}; set 'language' on the focus"
            )
        parser, language = self._get_parser(language_key)
        source_bytes = content.encode("utf-8")
        tree = parser.parse(source_bytes)
        try:
            query = language.query(config.query)
        except Exception as exc:
            raise FocusError(f"Invalid tree-sitter query for {language_key}: {exc}") from exc

        texts: List[str] = []
        context: List[Dict[str, Any]] = []
        first_line: Optional[int] = None
        last_line: Optional[int] = None
        for node, capture in query.captures(tree.root_node):
            if config.capture and capture != config.capture:
                continue
            text = source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")
            start_line = node.start_point[0] + 1
            end_line = node.end_point[0] + 1
            first_line = start_line if first_line is None else min(first_line, start_line)
            last_line = end_line if last_line is None else max(last_line, end_line)
            texts.append(text)
            context.append({"capture": capture, "text": text, "line": start_line})

        line_range = None
        if first_line is not None and last_line is not None:
            line_range = LineRange(start=first_line, end=last_line)
        return Extraction(artifact="\n\n".join(texts), line_range=line_range, context=context or None)

    def _get_parser(self, language_key: str) -> Tuple[Any, Any]:
        cached = self._parsers.get(language_key)
        if cached is not None:
            return cached
        try:
            language = get_language(language_key)
        except Exception as exc:
            raise FocusError(f"Unsupported tree-sitter language '{language_key}': {exc}") from exc
        parser = Parser()
        parser.set_language(language)
        self._parsers[language_key] = (parser, language)
        return parser, language


def language_for_path(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    return _EXTENSION_LANGUAGES.get(PurePosixPath(path).suffix.lower())


__all__ = ["TREE_SITTER_AVAILABLE", "TsqFocus", "language_for_path"]
