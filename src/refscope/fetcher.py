"""Per-file reference fetching.

For every important symbol of a file the reference anchor is resolved, the
references are requested (through the session cache) and references located in
the file itself are dropped. Symbols are processed concurrently and a failure
only drops the failing symbol.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from refscope.resolver import get_simple_symbol_name, resolve_reference_position
from refscope.symbol import SymbolReferences, get_important_symbols
from refscope.uri_utils import uri_path

if TYPE_CHECKING:
    from lsprotocol import types

    from refscope.cache import SymbolCache
    from refscope.documents import DocumentStore
    from refscope.provider import SymbolProvider
    from refscope.symbol import SymbolInfo

log = logging.getLogger(__name__)


class ReferenceFetcher:
    """Collects the external references of the symbols defined in a file."""

    def __init__(self, provider: SymbolProvider, documents: DocumentStore, cache: SymbolCache) -> None:
        self._provider = provider
        self._documents = documents
        self._cache = cache

    async def get_file_symbols(self, uri: str) -> list[SymbolInfo]:
        return await self._cache.get_or_fetch_symbols(uri, lambda: self._provider.list_symbols(uri))

    async def get_symbol_references(self, symbol: SymbolInfo) -> list[types.Location]:
        """Resolve the symbol's anchor and return all references to it (cached)."""

        async def fetch() -> list[types.Location]:
            position = resolve_reference_position(symbol, self._documents)
            log.debug(
                f'Fetching references for "{get_simple_symbol_name(symbol.name)}" (original: "{symbol.name}") '
                f"at {position.line + 1}:{position.character + 1} in {symbol.uri}"
            )
            return await self._provider.find_references(symbol.uri, position)

        return await self._cache.get_or_fetch_references(symbol, fetch)

    async def fetch_file_references(self, uri: str) -> list[SymbolReferences]:
        """Return the external references of every important symbol in a file.

        Args:
            uri: URI of the file whose symbols are examined

        Returns:
            One SymbolReferences per symbol that has at least one reference
            outside the file, in symbol order

        Raises:
            ProviderUnavailable: If the symbols of the file cannot be listed
        """
        symbols = await self.get_file_symbols(uri)
        important_symbols = get_important_symbols(symbols)
        log.info(f"{len(symbols)} (after filter: {len(important_symbols)}) symbols retrieved for {uri}")
        if not important_symbols:
            log.info(f"Unfiltered symbols: {', '.join(s.describe() for s in symbols)}")

        file_path = uri_path(uri)
        results = await asyncio.gather(
            *(self._fetch_external_references(symbol, file_path) for symbol in important_symbols)
        )
        return [r for r in results if r is not None and r.references]

    async def _fetch_external_references(self, symbol: SymbolInfo, file_path: str) -> SymbolReferences | None:
        try:
            references = await self.get_symbol_references(symbol)
        except Exception as e:
            log.warning(f"Skipping {symbol.describe()} in {symbol.uri}: {e}")
            return None
        symbol_references = SymbolReferences(symbol, tuple(references))
        return symbol_references.filter_uri(lambda ref_uri: uri_path(ref_uri) != file_path)
