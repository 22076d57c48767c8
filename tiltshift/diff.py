"""Helpers for building the changed-file batch from diff listings."""

from __future__ import annotations

from typing import Iterable, List

from .models import CHANGE_TYPES, ChangedFile

_STATUS_TYPES = {
    "A": "add",
    "D": "delete",
    "M": "modify",
    "T": "modify",
    "R": "rename",
    "C": "copy",
}


def parse_name_status(text: str) -> List[ChangedFile]:
    """Parse ``git diff --name-status`` output into changed files, preserving order."""
    files: List[ChangedFile] = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        fields = stripped.split("\t")
        status = fields[0][:1].upper()
        change_type = _STATUS_TYPES.get(status)
        if change_type is None:
            raise ValueError(f"Unsupported status '{fields[0]}' on line {line_number}")
        if change_type in {"rename", "copy"}:
            if len(fields) != 3:
                raise ValueError(f"Expected old and new path on line {line_number}")
            files.append(ChangedFile(old_path=fields[1], new_path=fields[2], type=change_type))
            continue
        if len(fields) != 2:
            raise ValueError(f"Expected a single path on line {line_number}")
        path = fields[1]
        files.append(
            ChangedFile(
                old_path=None if change_type == "add" else path,
                new_path=None if change_type == "delete" else path,
                type=change_type,
            )
        )
    return files


def changed_files(entries: Iterable[dict]) -> List[ChangedFile]:
    """Build changed files from mappings with ``old_path``/``new_path``/``type`` keys."""
    files: List[ChangedFile] = []
    for entry in entries:
        change_type = str(entry.get("type") or "modify")
        if change_type not in CHANGE_TYPES:
            raise ValueError(f"Unknown change type '{change_type}'")
        old_path = entry.get("old_path")
        new_path = entry.get("new_path")
        if not old_path and not new_path:
            raise ValueError("Changed file entries need an old_path or a new_path")
        files.append(ChangedFile(old_path=old_path or None, new_path=new_path or None, type=change_type))
    return files


__all__ = ["changed_files", "parse_name_status"]
