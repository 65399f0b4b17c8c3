"""Display tree for external references.

This module groups reference sets by the file containing each reference,
derives short display paths and builds the three-level tree
(scope -> referencing file -> reference) consumed by the presentation layer.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Union, assert_never

from lsprotocol import types

if TYPE_CHECKING:
    from collections.abc import Sequence

    from refscope.symbol import SymbolInfo, SymbolReferences
    from refscope.workspace_roots import WorkspaceRoots

log = logging.getLogger(__name__)

ELLIPSIS = "..."


@dataclass
class ReferenceNode:
    """A single reference to a symbol inside a referencing file."""

    label: str
    uri: str
    range: types.Range
    kind: types.SymbolKind

    @property
    def children(self) -> list[TreeNode]:
        return []


@dataclass
class FileNode:
    """A referencing file with one leaf per reference it contains."""

    label: str
    uri: str
    children: list[ReferenceNode] = field(default_factory=list)


@dataclass
class FolderNode:
    """A folder grouping referencing files."""

    label: str
    uri: str
    children: list[FileNode] = field(default_factory=list)


@dataclass
class SourceNode:
    """Root of the tree: the file or folder the references were requested for."""

    label: str
    uri: str
    children: list[FolderNode | FileNode] = field(default_factory=list)


TreeNode = Union[SourceNode, FolderNode, FileNode, ReferenceNode]


class Collapsible(Enum):
    NONE = "none"
    COLLAPSED = "collapsed"
    EXPANDED = "expanded"


@dataclass(frozen=True)
class NodeView:
    """How a tree node is shown and what selecting it opens.

    Attributes:
        label: Text shown for the node
        collapsible: Initial collapsible state
        context_value: Node category for context menus (None for leaves)
        uri: Resource the node stands for or opens
        selection: Range selected when the node is opened (leaves only)
    """

    label: str
    collapsible: Collapsible
    context_value: str | None
    uri: str
    selection: types.Range | None = None


def describe_node(node: TreeNode) -> NodeView:
    """Map a tree node to its presentation."""
    if not node.children:
        collapsible = Collapsible.NONE
    elif isinstance(node, SourceNode):
        collapsible = Collapsible.EXPANDED
    else:
        collapsible = Collapsible.COLLAPSED

    if isinstance(node, ReferenceNode):
        return NodeView(node.label, collapsible, None, node.uri, selection=node.range)
    elif isinstance(node, FileNode):
        return NodeView(node.label, collapsible, "file", node.uri)
    elif isinstance(node, FolderNode):
        return NodeView(node.label, collapsible, "folder", node.uri)
    elif isinstance(node, SourceNode):
        return NodeView(node.label, collapsible, "source", node.uri)
    else:
        assert_never(node)


def group_references_by_file(
    symbols_references: Sequence[SymbolReferences],
) -> dict[str, list[tuple[SymbolInfo, types.Range]]]:
    """Group (symbol, range) pairs by the URI of the file containing the reference.

    Within a file the pairs keep the order of the input sets and references.
    """
    grouped: dict[str, list[tuple[SymbolInfo, types.Range]]] = {}
    for symbol_references in symbols_references:
        for reference in symbol_references.references:
            grouped.setdefault(reference.uri, []).append((symbol_references.symbol, reference.range))
    return grouped


def strip_common_prefix(paths: Sequence[str]) -> list[str]:
    """Replace the longest common '/'-segment prefix of all paths by an ellipsis.

    A path that consists of the prefix only keeps its last segment, so it does
    not collapse to a bare ellipsis.

    Example:
        ["src/a/b.ts", "src/a/c.ts", "src/a"] -> [".../b.ts", ".../c.ts", "...a"]
    """
    if not paths:
        return []
    common = posixpath.commonpath(list(paths)) if all(paths) else ""
    if not common:
        return list(paths)
    shortened = []
    for path in paths:
        rest = path[len(common) :]
        if rest:
            shortened.append(ELLIPSIS + rest)
        else:
            shortened.append(ELLIPSIS + posixpath.basename(path))
    return shortened


def build_display_tree(
    source_uri: str,
    symbols_references: Sequence[SymbolReferences],
    roots: WorkspaceRoots,
) -> SourceNode:
    """Build the display tree for the references found for a file or folder.

    Args:
        source_uri: URI of the queried file or folder
        symbols_references: External references per symbol
        roots: Workspace roots used to derive short paths

    Returns:
        Root node of the new tree

    Raises:
        PathResolutionError: If the scope or a referencing file has no workspace root
    """
    references_by_file = group_references_by_file(symbols_references)
    log.info(
        f"Found external references for {len(symbols_references)} symbols "
        f"in {len(references_by_file)} files for {source_uri}"
    )

    sorted_files = sorted(references_by_file)
    short_paths = [roots.get_short_path(uri) for uri in sorted_files]
    short_paths.append(roots.get_short_path(source_uri))
    short_paths = strip_common_prefix(short_paths)
    source_label = short_paths.pop()

    file_nodes: list[FolderNode | FileNode] = []
    for uri, label in zip(sorted_files, short_paths):
        reference_nodes = [
            ReferenceNode(f"Line {reference_range.start.line + 1}: {symbol.name}", uri, reference_range, symbol.kind)
            for symbol, reference_range in references_by_file[uri]
        ]
        file_nodes.append(FileNode(label, uri, reference_nodes))

    return SourceNode(source_label, source_uri, file_nodes)
