"""Run viewer rendering. Executing the command is the caller's concern."""

from __future__ import annotations

from typing import Dict, Optional

from ..config import RunViewer
from ..models import FilterResult, RunInvocation, SubjectContext
from .templates import build_evaluation_context, render_template


def render_run_viewer(
    viewer: RunViewer,
    result: FilterResult,
    file_path: str,
    *,
    subject: Optional[str] = None,
    subjects: Optional[SubjectContext] = None,
) -> RunInvocation:
    """Render command, arguments and environment for one invocation."""
    evaluation = build_evaluation_context(result, file_path, subject=subject, subjects=subjects)
    command = tuple(
        render_template(part, evaluation, where=f"run command for {file_path}") for part in viewer.command
    )
    args = tuple(render_template(arg, evaluation, where=f"run argument for {file_path}") for arg in viewer.args)

    env: Dict[str, str] = {
        "TILTSHIFT_FILE_PATH": file_path,
        "TILTSHIFT_DIFF_TEXT": result.diff_text,
        "TILTSHIFT_LEFT_ARTIFACT": result.left.artifact,
        "TILTSHIFT_RIGHT_ARTIFACT": result.right.artifact,
    }
    if subject is not None:
        env["TILTSHIFT_SUBJECT"] = subject
    for key, template in viewer.env.items():
        env[key] = render_template(template, evaluation, where=f"run environment '{key}' for {file_path}")
    return RunInvocation(command=command, args=args, env=env)


__all__ = ["render_run_viewer"]
