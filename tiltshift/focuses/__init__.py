"""Focus engines and dispatch."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from ..errors import ConfigurationError
from ..models import FileVersions, FilterResult
from .ast_grep import AST_GREP_AVAILABLE, AstGrepFocus
from .base import ArtifactFocus, Extraction, Focus
from .jq import JqFocus
from .regex import RegexFocus
from .tsq import TREE_SITTER_AVAILABLE, TsqFocus
from .utils import compare_artifacts, create_diff_text
from .xpath import XPathFocus


def default_focuses() -> Dict[str, Focus]:
    """Return fresh instances of the built-in focus engines keyed by type."""
    return {
        RegexFocus.type: RegexFocus(),
        JqFocus.type: JqFocus(),
        XPathFocus.type: XPathFocus(),
        TsqFocus.type: TsqFocus(),
        AstGrepFocus.type: AstGrepFocus(),
    }


async def apply_focus(
    config: object,
    versions: FileVersions,
    file_path: Optional[str] = None,
    registry: Optional[Mapping[str, Focus]] = None,
) -> Optional[FilterResult]:
    """Run the engine registered for ``config.type``."""
    engines = registry if registry is not None else default_focuses()
    focus_type = getattr(config, "type", None)
    focus = engines.get(focus_type) if isinstance(focus_type, str) else None
    if focus is None:
        raise ConfigurationError(f"No focus engine registered for type '{focus_type}'")
    return await focus.apply(versions, config, file_path)


__all__ = [
    "AST_GREP_AVAILABLE",
    "AstGrepFocus",
    "ArtifactFocus",
    "Extraction",
    "Focus",
    "JqFocus",
    "RegexFocus",
    "TREE_SITTER_AVAILABLE",
    "TsqFocus",
    "XPathFocus",
    "apply_focus",
    "compare_artifacts",
    "create_diff_text",
    "default_focuses",
]
