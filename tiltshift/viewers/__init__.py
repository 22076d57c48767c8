"""Viewer execution: reports, run invocations and subject-context updates."""

from __future__ import annotations

from ..config import ReportViewer, RunViewer, UpdateSubjectContextViewer
from .context import execute_update_subject_context_viewer, merge_subject_context
from .report import execute_report_viewer
from .run import render_run_viewer
from .templates import build_evaluation_context, render_template


def is_report_viewer(viewer: object) -> bool:
    return isinstance(viewer, ReportViewer)


def is_run_viewer(viewer: object) -> bool:
    return isinstance(viewer, RunViewer)


def is_update_subject_context_viewer(viewer: object) -> bool:
    return isinstance(viewer, UpdateSubjectContextViewer)


__all__ = [
    "build_evaluation_context",
    "execute_report_viewer",
    "execute_update_subject_context_viewer",
    "is_report_viewer",
    "is_run_viewer",
    "is_update_subject_context_viewer",
    "merge_subject_context",
    "render_run_viewer",
    "render_template",
]
