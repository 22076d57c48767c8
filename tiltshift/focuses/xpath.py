"""XML focus using ElementTree's XPath subset."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import List, Optional

from ..config import XPathFocusConfig
from ..errors import FocusError
from .base import ArtifactFocus, Extraction


class XPathFocus(ArtifactFocus):
    """Compares the serialized elements selected by a path expression."""

    type = XPathFocusConfig.type

    def extract(self, content: str, config: XPathFocusConfig, file_path: Optional[str]) -> Extraction:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as exc:
            raise FocusError(f"Failed to parse {file_path or 'content'} as XML: {exc}") from exc

        elements = _select(root, config.expression, dict(config.namespaces))
        rendered: List[str] = []
        for element in elements:
            element.tail = None
            rendered.append(ET.tostring(element, encoding="unicode").strip())
        return Extraction(artifact="\n\n".join(rendered))


def _select(root: ET.Element, expression: str, namespaces: dict[str, str]) -> List[ET.Element]:
    expression = expression.strip()
    if expression.startswith("//"):
        path = "." + expression
    elif expression.startswith("/"):
        head, _, rest = expression[1:].partition("/")
        if head != "*" and _local_name(head) != _local_name(root.tag):
            return []
        if not rest:
            return [root]
        path = "./" + rest
    else:
        path = expression
    try:
        return root.findall(path, namespaces)
    except (SyntaxError, KeyError) as exc:
        raise FocusError(f"Invalid XPath expression '{expression}': {exc}") from exc


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag.split(":", 1)[-1]


__all__ = ["XPathFocus"]
