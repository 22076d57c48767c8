"""Base classes for focus engines."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional

from ..models import FileVersions, FilterResult, LineRange
from .utils import compare_artifacts


class Focus(ABC):
    """Contract for engines that turn two file versions into a comparable result.

    ``apply`` returns ``None`` when there is no meaningful difference. It must
    depend only on its arguments and the engine's configuration.
    """

    type: ClassVar[str]

    @abstractmethod
    async def apply(
        self,
        versions: FileVersions,
        config: Any,
        file_path: Optional[str] = None,
    ) -> Optional[FilterResult]:
        """Compare the versions through this engine."""


@dataclass
class Extraction:
    """Artifact extracted from one side of a change."""

    artifact: str
    line_range: Optional[LineRange] = None
    context: Optional[List[Dict[str, Any]]] = None


class ArtifactFocus(Focus):
    """Focus that extracts an artifact from each side and diffs the two.

    Line range and auxiliary context are taken from the post-change side.
    """

    async def apply(
        self,
        versions: FileVersions,
        config: Any,
        file_path: Optional[str] = None,
    ) -> Optional[FilterResult]:
        if versions.old_content is None and versions.new_content is None:
            return None
        left = self._extract_side(versions.old_content, config, file_path)
        right = self._extract_side(versions.new_content, config, file_path)
        return compare_artifacts(
            left.artifact,
            right.artifact,
            file_path=file_path,
            line_range=right.line_range,
            context=right.context,
        )

    def _extract_side(self, content: Optional[str], config: Any, file_path: Optional[str]) -> Extraction:
        if not content:
            return Extraction(artifact="")
        return self.extract(content, config, file_path)

    @abstractmethod
    def extract(self, content: str, config: Any, file_path: Optional[str]) -> Extraction:
        """Extract the comparable artifact from one version of the file."""
