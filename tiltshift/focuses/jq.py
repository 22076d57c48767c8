"""jq-style path query focus for JSON and YAML documents.

Supports the path subset of jq used to pick parts of manifests:
``.``, ``.a.b``, ``."key"``, ``.["key"]``, ``.[0]``, ``.[]``, a trailing
``?`` to drop errors, pipes, and the ``keys`` and ``length`` builtins.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, List, Optional, Sequence, Tuple

import yaml

from ..config import JqFocusConfig
from ..errors import FocusError
from .base import ArtifactFocus, Extraction

_TOKEN_PATTERN = re.compile(
    r"""\s*(?:
        (?P<pipe>\|)
      | (?P<dot>\.)
      | (?P<lbracket>\[)
      | (?P<rbracket>\])
      | (?P<optional>\?)
      | (?P<string>"(?:[^"\\]|\\.)*")
      | (?P<number>-?\d+)
      | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    )""",
    re.VERBOSE,
)

_BUILTINS = {"keys", "length"}
_YAML_SUFFIXES = (".yml", ".yaml")


@dataclass(frozen=True)
class _Op:
    kind: str
    value: Any = None
    optional: bool = False


_Stage = Tuple[_Op, ...]


class JqFocus(ArtifactFocus):
    """Compares the output of a jq path query over the parsed document."""

    type = JqFocusConfig.type

    def extract(self, content: str, config: JqFocusConfig, file_path: Optional[str]) -> Extraction:
        stages = compile_query(config.query)
        document = _load_document(content, file_path)
        outputs = run_query(stages, document)
        rendered = [json.dumps(value, indent=2, ensure_ascii=False, default=str) for value in outputs]
        return Extraction(artifact="\n".join(rendered))


@lru_cache(maxsize=128)
def compile_query(query: str) -> Tuple[_Stage, ...]:
    """Parse a query into pipeline stages."""
    tokens = _tokenize(query)
    stages: List[_Stage] = []
    index = 0
    while True:
        stage, index = _parse_term(tokens, index, query)
        stages.append(stage)
        if index >= len(tokens):
            break
        kind, _ = tokens[index]
        if kind != "pipe":
            raise FocusError(f"Unexpected token in jq query '{query}'")
        index += 1
    return tuple(stages)


def run_query(stages: Sequence[_Stage], document: Any) -> List[Any]:
    values: List[Any] = [document]
    for stage in stages:
        for op in stage:
            produced: List[Any] = []
            for value in values:
                try:
                    produced.extend(_apply(op, value))
                except FocusError:
                    if not op.optional:
                        raise
            values = produced
    return values


def _tokenize(query: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    position = 0
    stripped = query.rstrip()
    while position < len(stripped):
        match = _TOKEN_PATTERN.match(stripped, position)
        if match is None or match.end() == position:
            raise FocusError(f"Invalid jq query '{query}' at position {position}")
        kind = match.lastgroup or ""
        tokens.append((kind, match.group(kind)))
        position = match.end()
    if not tokens:
        raise FocusError("jq query is empty")
    return tokens


def _parse_term(tokens: List[Tuple[str, str]], index: int, query: str) -> Tuple[_Stage, int]:
    if index >= len(tokens):
        raise FocusError(f"jq query '{query}' ends unexpectedly")
    kind, text = tokens[index]
    if kind == "ident":
        if text not in _BUILTINS:
            raise FocusError(f"Unsupported jq builtin '{text}' in '{query}'")
        return (_Op("builtin", text),), index + 1
    if kind != "dot":
        raise FocusError(f"jq query '{query}' must start with '.' or a builtin")

    ops: List[_Op] = []
    index += 1
    expect_component = True
    while index < len(tokens):
        kind, text = tokens[index]
        if kind == "pipe":
            break
        if kind == "optional":
            if not ops:
                raise FocusError(f"Misplaced '?' in jq query '{query}'")
            last = ops.pop()
            ops.append(_Op(last.kind, last.value, optional=True))
            index += 1
            continue
        if kind == "dot":
            if expect_component:
                raise FocusError(f"Unexpected '.' in jq query '{query}'")
            expect_component = True
            index += 1
            continue
        if kind == "ident" and expect_component:
            ops.append(_Op("field", text))
        elif kind == "string" and expect_component:
            ops.append(_Op("field", json.loads(text)))
        elif kind == "lbracket":
            op, index = _parse_bracket(tokens, index, query)
            ops.append(op)
            expect_component = False
            continue
        else:
            raise FocusError(f"Unexpected token '{text}' in jq query '{query}'")
        expect_component = False
        index += 1

    if expect_component and ops:
        raise FocusError(f"jq query '{query}' ends with '.'")
    return tuple(ops), index


def _parse_bracket(tokens: List[Tuple[str, str]], index: int, query: str) -> Tuple[_Op, int]:
    # tokens[index] is '['
    if index + 1 >= len(tokens):
        raise FocusError(f"Unclosed '[' in jq query '{query}'")
    kind, text = tokens[index + 1]
    if kind == "rbracket":
        return _Op("iterate"), index + 2
    if index + 2 >= len(tokens) or tokens[index + 2][0] != "rbracket":
        raise FocusError(f"Unclosed '[' in jq query '{query}'")
    if kind == "number":
        return _Op("index", int(text)), index + 3
    if kind == "string":
        return _Op("field", json.loads(text)), index + 3
    raise FocusError(f"Unsupported index '{text}' in jq query '{query}'")


def _apply(op: _Op, value: Any) -> List[Any]:
    if op.kind == "field":
        if value is None:
            return [None]
        if isinstance(value, dict):
            return [value.get(op.value)]
        raise FocusError(f"Cannot index {_type_name(value)} with \"{op.value}\"")
    if op.kind == "index":
        if value is None:
            return [None]
        if isinstance(value, list):
            try:
                return [value[op.value]]
            except IndexError:
                return [None]
        raise FocusError(f"Cannot index {_type_name(value)} with number")
    if op.kind == "iterate":
        if isinstance(value, dict):
            return list(value.values())
        if isinstance(value, list):
            return list(value)
        raise FocusError(f"Cannot iterate over {_type_name(value)}")
    if op.value == "keys":
        if isinstance(value, dict):
            return [sorted(value)]
        if isinstance(value, list):
            return [list(range(len(value)))]
        raise FocusError(f"{_type_name(value)} has no keys")
    # length
    if value is None:
        return [0]
    if isinstance(value, bool):
        raise FocusError("boolean has no length")
    if isinstance(value, (int, float)):
        return [abs(value)]
    if isinstance(value, (str, list, dict)):
        return [len(value)]
    raise FocusError(f"{_type_name(value)} has no length")


def _load_document(content: str, file_path: Optional[str]) -> Any:
    label = file_path or "content"
    if file_path and file_path.lower().endswith(_YAML_SUFFIXES):
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise FocusError(f"Failed to parse {label} as YAML: {exc}") from exc
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise FocusError(f"Failed to parse {label} as JSON: {exc}") from exc


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


__all__ = ["JqFocus", "compile_query", "run_query"]
