"""Configuration-driven evaluation of changed files for review commentary."""

from .config import TiltshiftConfig, load_config_text, parse_config
from .errors import CollaboratorError, ConfigurationError, FocusError, TiltshiftError, ViewerError
from .models import (
    ChangedFile,
    FileVersions,
    FilterResult,
    ProcessingContext,
    ProcessingResult,
    ReportOutput,
    RevisionPair,
)
from .processing import ProjectionRunner, process_files

__all__ = [
    "ChangedFile",
    "CollaboratorError",
    "ConfigurationError",
    "FileVersions",
    "FilterResult",
    "FocusError",
    "ProcessingContext",
    "ProcessingResult",
    "ProjectionRunner",
    "ReportOutput",
    "RevisionPair",
    "TiltshiftConfig",
    "TiltshiftError",
    "ViewerError",
    "load_config_text",
    "parse_config",
    "process_files",
]
