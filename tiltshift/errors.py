"""Exception hierarchy for tiltshift runs."""

from __future__ import annotations


class TiltshiftError(RuntimeError):
    """Base class for errors raised by tiltshift itself."""


class ConfigurationError(TiltshiftError):
    """Raised when the configuration is malformed or a reference cannot be resolved."""


class CollaboratorError(TiltshiftError):
    """Raised by built-in focuses and viewers when they cannot complete."""


class FocusError(CollaboratorError):
    """Raised when a focus cannot extract artifacts from file content."""


class ViewerError(CollaboratorError):
    """Raised when a viewer template fails to render."""


__all__ = [
    "CollaboratorError",
    "ConfigurationError",
    "FocusError",
    "TiltshiftError",
    "ViewerError",
]
