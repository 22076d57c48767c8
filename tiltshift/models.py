"""Core data models shared across tiltshift components."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union

CHANGE_TYPES = ("add", "delete", "modify", "rename", "copy")

ContextValue = Union[str, int, float, bool]
SubjectContextValues = Dict[str, ContextValue]
SubjectContext = Dict[str, SubjectContextValues]

ContentProvider = Callable[[str, str], Union[Optional[str], Awaitable[Optional[str]]]]


@dataclass(frozen=True)
class ChangedFile:
    """One entry of the change batch between two revisions."""

    old_path: Optional[str]
    new_path: Optional[str]
    type: str = "modify"

    @property
    def is_added(self) -> bool:
        return self.type == "add"

    @property
    def is_deleted(self) -> bool:
        return self.type == "delete"

    @property
    def path(self) -> str:
        """Path used for glob matching: post-change path unless the file is gone."""
        if self.is_deleted or not self.new_path:
            return self.old_path or ""
        return self.new_path


@dataclass(frozen=True)
class FileVersions:
    """Pre- and post-change content of a file; either side may be absent."""

    old_content: Optional[str]
    new_content: Optional[str]


@dataclass(frozen=True)
class Artifact:
    artifact: str


@dataclass(frozen=True)
class LineRange:
    start: int
    end: int

    def to_dict(self) -> Dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class FilterResult:
    """Meaningful difference extracted by a focus."""

    diff_text: str
    left: Artifact
    right: Artifact
    line_range: Optional[LineRange] = None
    context: Optional[Tuple[Mapping[str, Any], ...]] = None


@dataclass
class ReportMetadata:
    """Details forwarded alongside a rendered report."""

    file_name: str
    message: str
    diff_text: str
    line_range: Optional[LineRange] = None
    context: Optional[List[Dict[str, Any]]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "diffText": self.diff_text,
            "fileName": self.file_name,
            "message": self.message,
        }
        if self.line_range is not None:
            payload["lineRange"] = self.line_range.to_dict()
        if self.context is not None:
            payload["context"] = [dict(item) for item in self.context]
        return payload


@dataclass
class ReportOutput:
    """Rendered output of a report viewer.

    ``subject`` names the owning subject for in-process callers; it is not part
    of the serialized form.
    """

    content: str
    metadata: Optional[ReportMetadata] = None
    subject: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"content": self.content}
        if self.metadata is not None:
            payload["metadata"] = self.metadata.to_dict()
        return payload


@dataclass(frozen=True)
class RevisionPair:
    base: str
    head: str


@dataclass(frozen=True)
class RunInvocation:
    """Rendered command line for a run viewer. Execution is left to the caller."""

    command: Tuple[str, ...]
    args: Tuple[str, ...]
    env: Mapping[str, str]

    @property
    def argv(self) -> List[str]:
        return [*self.command, *self.args]


CommandExecutor = Callable[[RunInvocation], Union[None, Awaitable[None]]]


@dataclass
class ProcessingContext:
    """State for one batch run: content access, revisions and subject context."""

    content_provider: ContentProvider
    refs: RevisionPair
    subjects: SubjectContext = field(default_factory=dict)
    command_executor: Optional[CommandExecutor] = None


@dataclass
class ProcessingResult:
    """Outcome of a batch run."""

    reports: List[ReportOutput]
    subjects: SubjectContext

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reports": [report.to_dict() for report in self.reports],
            "subjects": {name: dict(values) for name, values in self.subjects.items()},
        }
