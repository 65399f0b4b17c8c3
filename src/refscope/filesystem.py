"""Directory traversal for folder-scoped reference queries."""

from __future__ import annotations

import logging
import os
from enum import IntEnum

log = logging.getLogger(__name__)


class FileType(IntEnum):
    """Kind of a directory entry (values follow the VS Code FileType enum)."""

    Unknown = 0
    File = 1
    Directory = 2
    SymbolicLink = 64


def get_file_type(path: str) -> FileType:
    """Classify a path without following symbolic links."""
    if os.path.islink(path):
        return FileType.SymbolicLink
    if os.path.isdir(path):
        return FileType.Directory
    if os.path.isfile(path):
        return FileType.File
    return FileType.Unknown


def list_directory_entries(path: str) -> list[tuple[str, FileType]]:
    """List the entries of a directory as (name, kind) pairs, sorted by name."""
    return [(name, get_file_type(os.path.join(path, name))) for name in sorted(os.listdir(path))]


def get_files_recursive(path: str, exclude_dirs: frozenset[str] | set[str] = frozenset()) -> list[str]:
    """Return the paths of all regular files below a directory.

    Symbolic links and entries of unknown kind are skipped with a log message.

    Args:
        path: Directory to traverse
        exclude_dirs: Directory names that are not descended into

    Returns:
        File paths in traversal order
    """
    files: list[str] = []
    for name, file_type in list_directory_entries(path):
        child = os.path.join(path, name)
        if file_type == FileType.File:
            files.append(child)
        elif file_type == FileType.Directory:
            if name in exclude_dirs:
                log.debug(f"Skipping excluded directory {child}")
                continue
            files.extend(get_files_recursive(child, exclude_dirs))
        else:
            log.info(f"Ignoring {child}, unsupported file type {file_type.name}")
    return files
