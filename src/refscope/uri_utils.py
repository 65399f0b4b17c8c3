"""URI helpers shared by the fetchers and the presentation code."""

from __future__ import annotations

from urllib.parse import unquote, urlparse

from pygls import uris


def uri_path(uri: str) -> str:
    """Return the decoded path component of a URI (always '/'-separated)."""
    return unquote(urlparse(uri).path)


def uri_to_fs_path(uri: str) -> str:
    path = uris.to_fs_path(uri)
    if path is None:
        raise ValueError(f"Not a file URI: {uri}")
    return path


def fs_path_to_uri(path: str) -> str:
    uri = uris.from_fs_path(path)
    if uri is None:
        raise ValueError(f"Cannot convert path to URI: {path}")
    return uri


def is_inside_folder(uri: str, folder_uri: str) -> bool:
    """Whether the URI points strictly below the folder URI."""
    return uri_path(uri).startswith(uri_path(folder_uri).rstrip("/") + "/")
