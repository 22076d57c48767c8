"""Subject-context viewer execution and merging."""

from __future__ import annotations

from typing import Dict, Mapping, Optional

from ..config import UpdateSubjectContextViewer
from ..models import FilterResult, SubjectContext
from .templates import build_evaluation_context, render_template


def execute_update_subject_context_viewer(
    viewer: UpdateSubjectContextViewer,
    result: FilterResult,
    file_path: str,
    *,
    subject: Optional[str] = None,
    subjects: Optional[SubjectContext] = None,
) -> Dict[str, str]:
    """Render each configured value independently. Values are always strings."""
    evaluation = build_evaluation_context(result, file_path, subject=subject, subjects=subjects)
    return {
        key: render_template(template, evaluation, where=f"context value '{key}' for {file_path}")
        for key, template in viewer.set.items()
    }


def merge_subject_context(subjects: SubjectContext, subject: str, updates: Mapping[str, str]) -> None:
    """Shallow-merge updates into a subject's entry, creating it on first write."""
    entry = subjects.setdefault(subject, {})
    entry.update(updates)


__all__ = ["execute_update_subject_context_viewer", "merge_subject_context"]
