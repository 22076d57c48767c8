"""Template rendering shared by all viewer kinds."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

from jinja2 import Environment, Template, TemplateError

from ..errors import ViewerError
from ..models import FilterResult, SubjectContext

_ENV = Environment(autoescape=False, keep_trailing_newline=True)


def build_evaluation_context(
    result: FilterResult,
    file_path: str,
    *,
    subject: Optional[str] = None,
    subjects: Optional[SubjectContext] = None,
) -> Dict[str, Any]:
    """Return the values every viewer template can reference.

    Subject context is exposed as copies so templates observe updates from
    earlier files without being able to change them.
    """
    context: Dict[str, Any] = {
        "diffText": result.diff_text,
        "filePath": file_path,
        "left": {"artifact": result.left.artifact},
        "right": {"artifact": result.right.artifact},
    }
    if result.context is not None:
        context["context"] = [dict(item) for item in result.context]
    if subjects is not None:
        context["subjects"] = {name: dict(values) for name, values in subjects.items()}
    if subject is not None:
        context["subject"] = subject
        context["subjectContext"] = dict((subjects or {}).get(subject, {}))
    return context


def render_template(source: str, context: Mapping[str, Any], *, where: str) -> str:
    try:
        return _compile(source).render(**context)
    except TemplateError as exc:
        raise ViewerError(f"Failed to render {where}: {exc}") from exc


@lru_cache(maxsize=256)
def _compile(source: str) -> Template:
    return _ENV.from_string(source)


__all__ = ["build_evaluation_context", "render_template"]
