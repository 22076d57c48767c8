"""Batch processing of changed files."""

from .runner import ProjectionRunner, process_files

__all__ = ["ProjectionRunner", "process_files"]
