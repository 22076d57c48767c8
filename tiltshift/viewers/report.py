"""Report viewer execution."""

from __future__ import annotations

from typing import Optional

from ..config import ReportViewer
from ..models import FilterResult, ReportMetadata, ReportOutput, SubjectContext
from .templates import build_evaluation_context, render_template


def execute_report_viewer(
    viewer: ReportViewer,
    result: FilterResult,
    file_path: str,
    *,
    subject: Optional[str] = None,
    subjects: Optional[SubjectContext] = None,
) -> ReportOutput:
    """Render the viewer's template; the rendered text doubles as the metadata message."""
    evaluation = build_evaluation_context(result, file_path, subject=subject, subjects=subjects)
    content = render_template(viewer.template, evaluation, where=f"report template for {file_path}")
    metadata = ReportMetadata(
        file_name=file_path,
        message=content,
        diff_text=result.diff_text,
        line_range=result.line_range,
        context=[dict(item) for item in result.context] if result.context is not None else None,
    )
    return ReportOutput(content=content, metadata=metadata, subject=subject)


__all__ = ["execute_report_viewer"]
