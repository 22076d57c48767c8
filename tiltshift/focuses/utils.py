"""Shared helpers for focus engines."""

from __future__ import annotations

import difflib
from typing import Any, Dict, List, Optional

from ..models import Artifact, FilterResult, LineRange


def create_diff_text(left: str, right: str, file_path: Optional[str] = None) -> str:
    """Return a unified diff between two artifacts."""
    fromfile = f"a/{file_path}" if file_path else "left"
    tofile = f"b/{file_path}" if file_path else "right"
    diff = difflib.unified_diff(
        left.splitlines(),
        right.splitlines(),
        fromfile=fromfile,
        tofile=tofile,
        lineterm="",
    )
    return "\n".join(diff)


def compare_artifacts(
    left: str,
    right: str,
    *,
    file_path: Optional[str] = None,
    line_range: Optional[LineRange] = None,
    context: Optional[List[Dict[str, Any]]] = None,
) -> Optional[FilterResult]:
    """Build a result for two artifacts, or ``None`` when they are identical."""
    if left == right:
        return None
    return FilterResult(
        diff_text=create_diff_text(left, right, file_path),
        left=Artifact(artifact=left),
        right=Artifact(artifact=right),
        line_range=line_range,
        context=tuple(context) if context is not None else None,
    )


def line_of(content: str, offset: int) -> int:
    """1-based line number of a character offset."""
    return content.count("\n", 0, offset) + 1


__all__ = ["compare_artifacts", "create_diff_text", "line_of"]
