"""Resolution of ``#defined/<kind>/<name>`` references into concrete definitions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, cast

from .config import (
    DefinedBlock,
    FocusConfig,
    FocusRef,
    Projection,
    ProjectionRef,
    TiltshiftConfig,
    UseReference,
    Viewer,
    ViewerRef,
)
from .errors import ConfigurationError

PROJECTIONS = "projections"
FOCUSES = "focuses"
VIEWERS = "viewers"

REFERENCE_KINDS = (PROJECTIONS, FOCUSES, VIEWERS)

_REFERENCE_PATTERN = re.compile(r"^#defined/(projections|focuses|viewers)/(.+)$")

_SINGULAR = {PROJECTIONS: "projection", FOCUSES: "focus", VIEWERS: "viewer"}


@dataclass(frozen=True)
class ParsedReference:
    kind: str
    name: str


def parse_reference(use: str) -> ParsedReference:
    """Split a reference string into its kind and name."""
    match = _REFERENCE_PATTERN.match(use) if isinstance(use, str) else None
    if match is None:
        raise ConfigurationError(
            f'Invalid reference format: "{use}". Expected "#defined/<type>/<name>" '
            "where type is projections, focuses, or viewers."
        )
    return ParsedReference(kind=match.group(1), name=match.group(2))


def resolve(ref: object, defined: Optional[DefinedBlock], expected_kind: str) -> object:
    """Return the concrete definition for ``ref``.

    Inline definitions are returned unchanged and need no pool. References must
    name ``expected_kind``; a same-named entry under another kind never matches.
    """
    if expected_kind not in REFERENCE_KINDS:
        raise ValueError(f"Unknown reference kind '{expected_kind}'")
    if not isinstance(ref, UseReference):
        return ref

    parsed = parse_reference(ref.use)
    if parsed.kind != expected_kind:
        raise ConfigurationError(
            f'Expected a {_SINGULAR[expected_kind]} reference, got "{parsed.kind}" in "{ref.use}"'
        )

    pool = defined.pool(expected_kind) if defined is not None else {}
    if parsed.name not in pool:
        raise ConfigurationError(
            f'{_SINGULAR[expected_kind].capitalize()} "{parsed.name}" not found in '
            f'defined.{expected_kind} (referenced by "{ref.use}")'
        )
    return pool[parsed.name]


def resolve_projection(ref: ProjectionRef, defined: Optional[DefinedBlock] = None) -> Projection:
    return cast(Projection, resolve(ref, defined, PROJECTIONS))


def resolve_focus(ref: FocusRef, defined: Optional[DefinedBlock] = None) -> FocusConfig:
    return cast(FocusConfig, resolve(ref, defined, FOCUSES))


def resolve_viewer(ref: ViewerRef, defined: Optional[DefinedBlock] = None) -> Viewer:
    return cast(Viewer, resolve(ref, defined, VIEWERS))


def resolve_focuses(refs: Iterable[FocusRef], defined: Optional[DefinedBlock] = None) -> List[FocusConfig]:
    return [resolve_focus(ref, defined) for ref in refs]


def resolve_viewers(refs: Iterable[ViewerRef], defined: Optional[DefinedBlock] = None) -> List[Viewer]:
    return [resolve_viewer(ref, defined) for ref in refs]


def validate_references(config: TiltshiftConfig) -> None:
    """Resolve every reference in the configuration, raising on the first defect.

    The runner resolves lazily in traversal order; this is the eager check used
    before a run when a configuration should be rejected up front.
    """
    defined = config.defined
    projections: List[Projection] = []
    if defined is not None:
        projections.extend(defined.projections.values())
    for subject in config.subjects.values():
        projections.extend(resolve_projection(ref, defined) for ref in subject.projections)
    for projection in projections:
        resolve_focuses(projection.focuses, defined)
        resolve_viewers(projection.viewers, defined)


__all__ = [
    "FOCUSES",
    "PROJECTIONS",
    "REFERENCE_KINDS",
    "VIEWERS",
    "ParsedReference",
    "parse_reference",
    "resolve",
    "resolve_focus",
    "resolve_focuses",
    "resolve_projection",
    "resolve_viewer",
    "resolve_viewers",
    "validate_references",
]
