"""HTTP service mode for tiltshift."""

from .app import create_app, run_service

__all__ = ["create_app", "run_service"]
