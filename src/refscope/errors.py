"""Error taxonomy for external reference discovery.

Per-symbol and per-file failures (ProviderUnavailable, SymbolNameMismatch and
any other exception raised while fetching) are recovered where they occur. NoReferencesRetrievable and PathResolutionError
abort the request and surface to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lsprotocol import types


class RefScopeError(Exception):
    """Base class for all errors raised by refscope."""


class ProviderUnavailable(RefScopeError):
    """A symbol or reference provider returned no usable result.

    Attributes:
        uri: URI of the document the request was made for
    """

    def __init__(self, message: str, uri: str | None = None) -> None:
        super().__init__(message)
        self.uri = uri


class SymbolNameMismatch(RefScopeError):
    """The simple name of a symbol was not found inside its declaration range.

    Attributes:
        symbol_name: Name as reported by the symbol provider
        simple_name: Normalized name that was searched for
        range: Declaration range that was searched
        uri: URI of the document containing the declaration
    """

    def __init__(self, symbol_name: str, simple_name: str, range: types.Range, uri: str) -> None:
        start, end = range.start, range.end
        super().__init__(
            f'Symbol name "{simple_name}" (original: "{symbol_name}") not found in symbol range '
            f"[{start.line + 1}:{start.character + 1}, {end.line + 1}:{end.character + 1}] in {uri}"
        )
        self.symbol_name = symbol_name
        self.simple_name = simple_name
        self.range = range
        self.uri = uri


class NoReferencesRetrievable(RefScopeError):
    """Symbols/references could not be retrieved for any file of a folder.

    Attributes:
        folder_uri: URI of the requested folder
        first_error: The first per-file failure that was recorded
    """

    def __init__(self, folder_uri: str, first_error: BaseException) -> None:
        super().__init__(
            f"Could not retrieve symbols/references for any file in {folder_uri}, first error was: {first_error}"
        )
        self.folder_uri = folder_uri
        self.first_error = first_error


class PathResolutionError(RefScopeError):
    """No workspace root owns a file that has to be displayed."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"Could not determine workspace folder for {uri}")
        self.uri = uri

