"""Session cache for symbol lists and symbol references.

Both maps live as long as the cache object (one session) and are never
invalidated on file edits. Failed reference lookups are cached as well, so a
symbol known to be broken is not queried again.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from lsprotocol import types

    from refscope.symbol import SymbolInfo

log = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class _InFlight(Generic[K, V]):
    """Shares one running fetch between all concurrent callers of the same key."""

    def __init__(self) -> None:
        self._tasks: dict[K, asyncio.Task[V]] = {}

    async def run(self, key: K, fetch: Callable[[], Awaitable[V]]) -> V:
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(fetch())
            self._tasks[key] = task
            task.add_done_callback(lambda _: self._tasks.pop(key, None))
        return await asyncio.shield(task)


class SymbolCache:
    """Memoizes per-file symbol lists and per-symbol reference lists.

    The symbol map stores successful listings only (an empty list is a valid
    answer). The reference map stores either the reference list or the
    exception raised while resolving/fetching it.
    """

    def __init__(self) -> None:
        self._symbols: dict[str, list[SymbolInfo]] = {}
        self._references: dict[tuple[str, int, int], list[types.Location] | Exception] = {}
        self._pending_symbols: _InFlight[str, list[SymbolInfo]] = _InFlight()
        self._pending_references: _InFlight[tuple[str, int, int], list[types.Location]] = _InFlight()

    async def get_or_fetch_symbols(
        self,
        uri: str,
        fetch: Callable[[], Awaitable[list[SymbolInfo]]],
    ) -> list[SymbolInfo]:
        """Return the cached symbols of a document, fetching them on first use.

        Args:
            uri: Document URI (cache key)
            fetch: Coroutine factory listing the document's symbols

        Returns:
            List of symbols of the document
        """
        cached = self._symbols.get(uri)
        if cached is not None:
            log.debug(f"Using cached symbols for {uri}")
            return cached

        async def fetch_and_store() -> list[SymbolInfo]:
            log.debug(f"Fetching symbols for {uri}")
            symbols = await fetch()
            self._symbols[uri] = symbols
            return symbols

        return await self._pending_symbols.run(uri, fetch_and_store)

    async def get_or_fetch_references(
        self,
        symbol: SymbolInfo,
        fetch: Callable[[], Awaitable[list[types.Location]]],
    ) -> list[types.Location]:
        """Return the cached references of a symbol, fetching them on first use.

        A previously recorded failure is re-raised without calling fetch.

        Args:
            symbol: Symbol whose definition location is the cache key
            fetch: Coroutine factory resolving the symbol and requesting its references

        Returns:
            List of reference locations
        """
        key = symbol.cache_key
        cached = self._references.get(key)
        if isinstance(cached, Exception):
            log.debug(f'Ignoring symbol "{symbol.name}" in {symbol.uri} due to previous error')
            raise cached
        if cached is not None:
            log.debug(f'Using cached references for "{symbol.name}" in {symbol.uri}')
            return cached

        async def fetch_and_store() -> list[types.Location]:
            try:
                references = await fetch()
            except Exception as e:
                self._references[key] = e
                raise
            self._references[key] = references
            return references

        return await self._pending_references.run(key, fetch_and_store)

    def clear(self) -> None:
        """Forget all cached symbols and references (explicit session reset)."""
        self._symbols.clear()
        self._references.clear()
