"""Folder-scoped reference aggregation.

Runs the per-file fetch for every file below a folder and keeps only references
located outside the folder, so references between sibling files are dropped
too. The request fails only when no file at all could be processed.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from refscope.errors import NoReferencesRetrievable
from refscope.filesystem import get_files_recursive
from refscope.uri_utils import fs_path_to_uri, is_inside_folder, uri_to_fs_path

if TYPE_CHECKING:
    from refscope.fetcher import ReferenceFetcher
    from refscope.symbol import SymbolReferences

log = logging.getLogger(__name__)


class FolderAggregator:
    """Merges the external references of all files below a folder."""

    def __init__(
        self,
        fetcher: ReferenceFetcher,
        exclude_dirs: frozenset[str] = frozenset(),
        max_concurrency: int | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._exclude_dirs = exclude_dirs
        self._max_concurrency = max_concurrency

    def list_files(self, folder_uri: str) -> list[str]:
        folder_path = uri_to_fs_path(folder_uri)
        return [fs_path_to_uri(p) for p in get_files_recursive(folder_path, self._exclude_dirs)]

    async def fetch_folder_references(self, folder_uri: str) -> list[SymbolReferences]:
        """Return the references from outside the folder to symbols defined inside it.

        Args:
            folder_uri: URI of the folder

        Returns:
            Non-empty SymbolReferences of all files that could be processed

        Raises:
            NoReferencesRetrievable: If every file of the folder failed; carries
                the first failure in completion order
        """
        file_uris = self.list_files(folder_uri)
        log.info(f"Fetching references for {len(file_uris)} files in {folder_uri}")
        semaphore = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency else None

        failures: list[Exception] = []

        async def process(file_uri: str) -> list[SymbolReferences]:
            try:
                async with semaphore if semaphore is not None else contextlib.nullcontext():
                    return await self._fetcher.fetch_file_references(file_uri)
            except Exception as e:
                log.warning(f"Skipping {file_uri}: {e}")
                failures.append(e)
                return []

        # gather keeps file order, failures are recorded in completion order
        results = await asyncio.gather(*(process(u) for u in file_uris))

        if file_uris and len(failures) == len(file_uris):
            raise NoReferencesRetrievable(folder_uri, failures[0]) from failures[0]

        folder_references: list[SymbolReferences] = []
        for file_references in results:
            for symbol_references in file_references:
                external = symbol_references.filter_uri(lambda ref_uri: not is_inside_folder(ref_uri, folder_uri))
                if external.references:
                    folder_references.append(external)
        return folder_references
