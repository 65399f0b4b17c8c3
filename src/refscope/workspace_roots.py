"""Workspace root resolution for display paths."""

from __future__ import annotations

import os

from lsprotocol import types

from refscope.errors import PathResolutionError
from refscope.uri_utils import fs_path_to_uri, uri_path, uri_to_fs_path


class WorkspaceRoots:
    """The set of workspace folders that files are displayed relative to.

    When more than one root is configured, short paths are prefixed with the
    name of the owning root to keep them unambiguous.
    """

    def __init__(self, folders: list[types.WorkspaceFolder]) -> None:
        self._folders = list(folders)

    @classmethod
    def from_paths(cls, paths: list[str]) -> WorkspaceRoots:
        folders = []
        for path in paths:
            path = os.path.abspath(path)
            folders.append(types.WorkspaceFolder(uri=fs_path_to_uri(path), name=os.path.basename(path) or path))
        return cls(folders)

    @property
    def folders(self) -> list[types.WorkspaceFolder]:
        return list(self._folders)

    def resolve_owning_root(self, uri: str) -> types.WorkspaceFolder | None:
        """Return the innermost workspace folder containing the URI, or None."""
        path = uri_path(uri)
        best: types.WorkspaceFolder | None = None
        best_length = -1
        for folder in self._folders:
            root_path = uri_path(folder.uri).rstrip("/")
            if (path == root_path or path.startswith(root_path + "/")) and len(root_path) > best_length:
                best, best_length = folder, len(root_path)
        return best

    def get_short_path(self, uri: str) -> str:
        """Return the '/'-separated path of the URI relative to its owning root.

        Raises:
            PathResolutionError: If no workspace folder contains the URI
        """
        root = self.resolve_owning_root(uri)
        if root is None:
            raise PathResolutionError(uri)
        root_fs_path = uri_to_fs_path(root.uri).rstrip("/\\")
        short = uri_to_fs_path(uri)[len(root_fs_path) + 1 :].replace("\\", "/")
        if not short:
            return root.name
        if len(self._folders) > 1:
            short = f"{root.name}/{short}"
        return short
