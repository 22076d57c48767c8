"""Configuration model and parsing for tiltshift rule sets (tiltshift.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Sequence, Tuple, TypeVar, Union

import yaml

from .errors import ConfigurationError

_T = TypeVar("_T")


@dataclass(frozen=True)
class UseReference:
    """Pointer into the ``defined`` block, e.g. ``#defined/focuses/deps``."""

    use: str


# ---------------------------------------------------------------------------
# Focuses


@dataclass(frozen=True)
class RegexFocusConfig:
    """Compare the text matched by a regular expression."""

    pattern: str
    flags: str = ""
    group: Optional[Union[int, str]] = None

    type: ClassVar[str] = "regex"


@dataclass(frozen=True)
class JqFocusConfig:
    """Compare the output of a jq-style path query over JSON or YAML content."""

    query: str

    type: ClassVar[str] = "jq"


@dataclass(frozen=True)
class XPathFocusConfig:
    """Compare the XML elements selected by an ElementTree path expression."""

    expression: str
    namespaces: Mapping[str, str] = field(default_factory=dict)

    type: ClassVar[str] = "xpath"


@dataclass(frozen=True)
class TsqFocusConfig:
    """Compare the nodes captured by a tree-sitter query."""

    query: str
    language: Optional[str] = None
    capture: Optional[str] = None

    type: ClassVar[str] = "tsq"


@dataclass(frozen=True)
class AstGrepFocusConfig:
    """Compare the nodes matched by an ast-grep code pattern such as ``console.log($$$ARGS)``."""

    pattern: str
    language: Optional[str] = None
    selector: Optional[str] = None

    type: ClassVar[str] = "ast-grep"


FocusConfig = Union[RegexFocusConfig, JqFocusConfig, XPathFocusConfig, TsqFocusConfig, AstGrepFocusConfig]
FocusRef = Union[FocusConfig, UseReference]


# ---------------------------------------------------------------------------
# Viewers


@dataclass(frozen=True)
class ReportViewer:
    """Render a template into a report (e.g. a pull-request comment)."""

    template: str

    type: ClassVar[str] = "report"


@dataclass(frozen=True)
class RunViewer:
    """Describe a command invocation whose arguments and environment are templates."""

    command: Tuple[str, ...]
    args: Tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)

    type: ClassVar[str] = "run"


@dataclass(frozen=True)
class UpdateSubjectContextViewer:
    """Merge rendered key/value pairs into the owning subject's context."""

    set: Mapping[str, str]

    type: ClassVar[str] = "set"


Viewer = Union[ReportViewer, RunViewer, UpdateSubjectContextViewer]
ViewerRef = Union[Viewer, UseReference]


# ---------------------------------------------------------------------------
# Projections, subjects and the root document


@dataclass(frozen=True)
class Projection:
    """A rule: file glob plus ordered focuses and viewers."""

    include: str
    focuses: Tuple[FocusRef, ...] = ()
    viewers: Tuple[ViewerRef, ...] = ()


ProjectionRef = Union[Projection, UseReference]


@dataclass(frozen=True)
class Stakeholder:
    name: str
    contact_method: str
    description: Optional[str] = None


@dataclass(frozen=True)
class Subject:
    """Named area of interest owning projections and a context map."""

    projections: Tuple[ProjectionRef, ...] = ()
    stakeholders: Tuple[Stakeholder, ...] = ()


@dataclass
class DefinedBlock:
    """Reusable named definitions addressed by ``#defined/<kind>/<name>``."""

    projections: Dict[str, Projection] = field(default_factory=dict)
    focuses: Dict[str, FocusConfig] = field(default_factory=dict)
    viewers: Dict[str, Viewer] = field(default_factory=dict)

    def pool(self, kind: str) -> Mapping[str, object]:
        return getattr(self, kind)


@dataclass
class TiltshiftConfig:
    """Root of a tiltshift configuration."""

    subjects: Dict[str, Subject]
    defined: Optional[DefinedBlock] = None


# ---------------------------------------------------------------------------
# Parsing


def load_config_text(text: str) -> TiltshiftConfig:
    """Parse YAML configuration text into a :class:`TiltshiftConfig`."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse configuration: {exc}") from exc
    if data is None:
        raise ConfigurationError("Configuration is empty; a 'subjects' mapping is required")
    return parse_config(data)


def parse_config(data: Any) -> TiltshiftConfig:
    """Build a typed configuration from a decoded mapping."""
    if not isinstance(data, Mapping):
        raise ConfigurationError("Configuration must contain a mapping at the root")

    defined = None
    if data.get("defined") is not None:
        defined = _parse_defined(_require_mapping(data["defined"], "defined"))

    raw_subjects = data.get("subjects")
    if raw_subjects is None:
        raise ConfigurationError("Configuration is missing the 'subjects' mapping")
    subjects: Dict[str, Subject] = {}
    for name, raw in _require_mapping(raw_subjects, "subjects").items():
        subjects[str(name)] = _parse_subject(raw, f"subjects.{name}")

    return TiltshiftConfig(subjects=subjects, defined=defined)


def focus_from_mapping(data: Any, where: str = "focus") -> FocusConfig:
    """Build a focus config from its tagged mapping form."""
    mapping = _require_mapping(data, where)
    focus_type = mapping.get("type")
    if not isinstance(focus_type, str):
        raise ConfigurationError(f"{where} is missing a string 'type'")
    parser = _FOCUS_PARSERS.get(focus_type)
    if parser is None:
        known = ", ".join(sorted(_FOCUS_PARSERS))
        raise ConfigurationError(f"{where} has unknown focus type '{focus_type}' (expected one of: {known})")
    return parser(mapping, where)


def viewer_from_mapping(data: Any, where: str = "viewer") -> Viewer:
    """Build a viewer, discriminating on which of template/command/set is present.

    An explicit ``type`` is optional but must agree with the structural kind.
    Items carrying more than one discriminating field are rejected.
    """
    mapping = _require_mapping(data, where)
    present = [key for key in _VIEWER_FIELDS if key in mapping]
    if not present:
        raise ConfigurationError(f"{where} must define one of 'template', 'command' or 'set'")
    if len(present) > 1:
        raise ConfigurationError(
            f"{where} is ambiguous: it defines {', '.join(repr(key) for key in present)}"
        )
    kind = _VIEWER_FIELDS[present[0]]
    tag = mapping.get("type")
    if tag is not None and tag != kind:
        raise ConfigurationError(
            f"{where} declares type '{tag}' but its '{present[0]}' field implies '{kind}'"
        )

    if kind == "report":
        return ReportViewer(template=_require_str(mapping["template"], f"{where}.template"))
    if kind == "run":
        command = mapping["command"]
        if isinstance(command, str):
            command_parts: Tuple[str, ...] = (command,)
        else:
            command_parts = tuple(_require_str_list(command, f"{where}.command"))
            if not command_parts:
                raise ConfigurationError(f"{where}.command must not be empty")
        args = tuple(_require_str_list(mapping.get("args") or [], f"{where}.args"))
        env = {
            str(key): _template_text(value, f"{where}.env.{key}")
            for key, value in _require_mapping(mapping.get("env") or {}, f"{where}.env").items()
        }
        return RunViewer(command=command_parts, args=args, env=env)
    values = {
        str(key): _template_text(value, f"{where}.set.{key}")
        for key, value in _require_mapping(mapping["set"], f"{where}.set").items()
    }
    return UpdateSubjectContextViewer(set=values)


def projection_from_mapping(data: Any, where: str = "projection") -> Projection:
    mapping = _require_mapping(data, where)
    include = _require_str(mapping.get("include"), f"{where}.include")
    focuses = tuple(
        _reference_or(item, f"{where}.focuses[{index}]", focus_from_mapping)
        for index, item in enumerate(_require_list(mapping.get("focuses") or [], f"{where}.focuses"))
    )
    viewers = tuple(
        _reference_or(item, f"{where}.viewers[{index}]", viewer_from_mapping)
        for index, item in enumerate(_require_list(mapping.get("viewers") or [], f"{where}.viewers"))
    )
    return Projection(include=include, focuses=focuses, viewers=viewers)


def _parse_defined(mapping: Mapping[str, Any]) -> DefinedBlock:
    block = DefinedBlock()
    for name, raw in _require_mapping(mapping.get("projections") or {}, "defined.projections").items():
        block.projections[str(name)] = projection_from_mapping(raw, f"defined.projections.{name}")
    for name, raw in _require_mapping(mapping.get("focuses") or {}, "defined.focuses").items():
        block.focuses[str(name)] = focus_from_mapping(raw, f"defined.focuses.{name}")
    for name, raw in _require_mapping(mapping.get("viewers") or {}, "defined.viewers").items():
        block.viewers[str(name)] = viewer_from_mapping(raw, f"defined.viewers.{name}")
    return block


def _parse_subject(data: Any, where: str) -> Subject:
    mapping = _require_mapping(data, where)
    projections = tuple(
        _reference_or(item, f"{where}.projections[{index}]", projection_from_mapping)
        for index, item in enumerate(_require_list(mapping.get("projections") or [], f"{where}.projections"))
    )
    stakeholders = []
    for index, item in enumerate(_require_list(mapping.get("stakeholders") or [], f"{where}.stakeholders")):
        item_where = f"{where}.stakeholders[{index}]"
        raw = _require_mapping(item, item_where)
        stakeholders.append(
            Stakeholder(
                name=_require_str(raw.get("name"), f"{item_where}.name"),
                contact_method=_require_str(raw.get("contactMethod"), f"{item_where}.contactMethod"),
                description=_as_str(raw.get("description")),
            )
        )
    return Subject(projections=projections, stakeholders=tuple(stakeholders))


def _reference_or(item: Any, where: str, build: Callable[[Any, str], _T]) -> Union[UseReference, _T]:
    if isinstance(item, Mapping) and isinstance(item.get("use"), str):
        return UseReference(use=item["use"])
    return build(item, where)


def _regex_focus(mapping: Mapping[str, Any], where: str) -> RegexFocusConfig:
    pattern = _require_str(mapping.get("pattern"), f"{where}.pattern")
    raw_flags = mapping.get("flags") or ""
    flags = raw_flags if isinstance(raw_flags, str) else "".join(_require_str_list(raw_flags, f"{where}.flags"))
    unknown = sorted(set(flags) - set("imsx"))
    if unknown:
        raise ConfigurationError(f"{where}.flags contains unsupported flags: {''.join(unknown)}")
    group = mapping.get("group")
    if group is not None and (isinstance(group, bool) or not isinstance(group, (int, str))):
        raise ConfigurationError(f"{where}.group must be a group number or name")
    return RegexFocusConfig(pattern=pattern, flags=flags, group=group)


def _jq_focus(mapping: Mapping[str, Any], where: str) -> JqFocusConfig:
    return JqFocusConfig(query=_require_str(mapping.get("query"), f"{where}.query"))


def _xpath_focus(mapping: Mapping[str, Any], where: str) -> XPathFocusConfig:
    namespaces = {
        str(prefix): _require_str(uri, f"{where}.namespaces.{prefix}")
        for prefix, uri in _require_mapping(mapping.get("namespaces") or {}, f"{where}.namespaces").items()
    }
    return XPathFocusConfig(
        expression=_require_str(mapping.get("expression"), f"{where}.expression"),
        namespaces=namespaces,
    )


def _tsq_focus(mapping: Mapping[str, Any], where: str) -> TsqFocusConfig:
    return TsqFocusConfig(
        query=_require_str(mapping.get("query"), f"{where}.query"),
        language=_as_str(mapping.get("language")),
        capture=_as_str(mapping.get("capture")),
    )


def _ast_grep_focus(mapping: Mapping[str, Any], where: str) -> AstGrepFocusConfig:
    raw_pattern = mapping.get("pattern")
    selector = _as_str(mapping.get("selector"))
    if isinstance(raw_pattern, Mapping):
        # Pattern object form: {context: <code>, selector: <node kind>}.
        if selector is not None:
            raise ConfigurationError(f"{where} sets 'selector' both inside and beside 'pattern'")
        pattern = _require_str(raw_pattern.get("context"), f"{where}.pattern.context")
        selector = _require_str(raw_pattern.get("selector"), f"{where}.pattern.selector")
    else:
        pattern = _require_str(raw_pattern, f"{where}.pattern")
    return AstGrepFocusConfig(pattern=pattern, language=_as_str(mapping.get("language")), selector=selector)


_FOCUS_PARSERS = {
    RegexFocusConfig.type: _regex_focus,
    JqFocusConfig.type: _jq_focus,
    XPathFocusConfig.type: _xpath_focus,
    TsqFocusConfig.type: _tsq_focus,
    AstGrepFocusConfig.type: _ast_grep_focus,
}

_VIEWER_FIELDS = {"template": "report", "command": "run", "set": "set"}


def _require_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{where} must be a mapping")
    return value


def _require_list(value: Any, where: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ConfigurationError(f"{where} must be a list")
    return value


def _require_str(value: Any, where: str) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigurationError(f"{where} must be a non-empty string")
    return value


def _require_str_list(value: Any, where: str) -> list[str]:
    return [_template_text(item, f"{where}[{index}]") for index, item in enumerate(_require_list(value, where))]


def _template_text(value: Any, where: str) -> str:
    # YAML turns unquoted true/1 into typed scalars; templates are always text.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigurationError(f"{where} must be a string")


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None
