"""Reference tree service.

Entry point used by presentation layers: runs file or folder queries, keeps
the current tree in a single slot and notifies subscribers when it changes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from refscope.aggregator import FolderAggregator
from refscope.cache import SymbolCache
from refscope.config import RefScopeSettings
from refscope.fetcher import ReferenceFetcher
from refscope.tree import build_display_tree

if TYPE_CHECKING:
    from refscope.documents import DocumentStore
    from refscope.provider import SymbolProvider
    from refscope.symbol import SymbolReferences
    from refscope.tree import SourceNode, TreeNode
    from refscope.workspace_roots import WorkspaceRoots

log = logging.getLogger(__name__)

TreeListener = Callable[["SourceNode"], None]


class ReferenceTreeService:
    """Computes reference trees and publishes the most recent one.

    Running requests are not cancelled when a newer request starts. Each
    request is numbered, and a result is only published if no newer request
    has been started in the meantime; the superseded result is still returned
    to its caller.
    """

    def __init__(self, fetcher: ReferenceFetcher, aggregator: FolderAggregator, roots: WorkspaceRoots) -> None:
        self._fetcher = fetcher
        self._aggregator = aggregator
        self._roots = roots
        self._tree_root: SourceNode | None = None
        self._listeners: list[TreeListener] = []
        self._generation = 0

    @property
    def tree_root(self) -> SourceNode | None:
        return self._tree_root

    def subscribe(self, listener: TreeListener) -> Callable[[], None]:
        """Register a listener called with the new root after every published update.

        A listener that raises is logged and does not keep later listeners from
        being notified.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get_children(self, node: TreeNode | None = None) -> list[TreeNode]:
        if node is None:
            return [self._tree_root] if self._tree_root is not None else []
        return list(node.children)

    async def find_references_by_file(self, uri: str) -> SourceNode:
        """Show the references from other files to the symbols of a file."""
        generation = self._next_generation()
        references = await self._fetcher.fetch_file_references(uri)
        return self._show_in_tree(generation, uri, references)

    async def find_references_by_folder(self, uri: str) -> SourceNode:
        """Show the references from outside a folder to the symbols defined in it."""
        generation = self._next_generation()
        references = await self._aggregator.fetch_folder_references(uri)
        return self._show_in_tree(generation, uri, references)

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _show_in_tree(self, generation: int, source_uri: str, references: list[SymbolReferences]) -> SourceNode:
        root = build_display_tree(source_uri, references, self._roots)
        if generation != self._generation:
            log.info(f"Discarding superseded result for {source_uri}")
            return root
        self._tree_root = root
        for listener in list(self._listeners):
            try:
                listener(root)
            except Exception:
                log.exception(f"Tree listener {listener!r} failed for {source_uri}")
        return root


def create_reference_tree_service(
    provider: SymbolProvider,
    documents: DocumentStore,
    roots: WorkspaceRoots,
    settings: RefScopeSettings | None = None,
    cache: SymbolCache | None = None,
) -> ReferenceTreeService:
    """Wire fetcher, aggregator and a (new or shared) session cache into a service."""
    settings = settings if settings is not None else RefScopeSettings()
    fetcher = ReferenceFetcher(provider, documents, cache if cache is not None else SymbolCache())
    aggregator = FolderAggregator(fetcher, settings.exclude_dirs, settings.max_concurrency)
    return ReferenceTreeService(fetcher, aggregator, roots)
