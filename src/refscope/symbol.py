"""Symbol data model for external reference discovery.

This module provides the SymbolInfo and SymbolReferences dataclasses, the
importance filter applied before references are requested, and the conversion
of provider symbol trees into flat SymbolInfo lists.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from lsprotocol import types


@dataclass(frozen=True)
class SymbolInfo:
    """Represents a symbol reported by a symbol provider.

    Attributes:
        name: The symbol name as reported (may be qualified or carry a signature)
        kind: LSP SymbolKind of the symbol
        location: Definition location; the range is expected to contain the name
    """

    name: str
    kind: types.SymbolKind
    location: types.Location

    @property
    def uri(self) -> str:
        return self.location.uri

    @property
    def cache_key(self) -> tuple[str, int, int]:
        """Stable identity of the symbol: definition URI and range start."""
        start = self.location.range.start
        return (self.location.uri, start.line, start.character)

    def describe(self) -> str:
        return f"{self.name} [{types.SymbolKind(self.kind).name}]"


@dataclass(frozen=True)
class SymbolReferences:
    """A symbol together with the locations referencing it.

    Attributes:
        symbol: The referenced symbol
        references: Reference locations in provider order
    """

    symbol: SymbolInfo
    references: tuple[types.Location, ...]

    def filter_uri(self, predicate: Callable[[str], bool]) -> SymbolReferences:
        """Return a new set keeping only references whose URI satisfies the predicate."""
        return SymbolReferences(self.symbol, tuple(r for r in self.references if predicate(r.uri)))


# Methods are not included as they often are inherited/interface methods,
# which would yield unrelated references of the superclass/interface.
IMPORTANT_SYMBOL_KINDS = frozenset(
    {
        types.SymbolKind.Class,
        types.SymbolKind.Interface,
        types.SymbolKind.Enum,
        types.SymbolKind.Function,
    }
)


def get_important_symbols(symbols: Sequence[SymbolInfo]) -> list[SymbolInfo]:
    """Keep only the symbols whose kind is relevant for cross-file navigation."""
    return [s for s in symbols if s.kind in IMPORTANT_SYMBOL_KINDS]


def flatten_document_symbols(uri: str, symbols: Sequence[types.DocumentSymbol]) -> list[SymbolInfo]:
    """Flatten a DocumentSymbol tree into SymbolInfo objects.

    The selection range (the range of the name) becomes the definition range.
    Symbols are returned in pre-order, parents before their children.

    Args:
        uri: Document URI the symbols belong to
        symbols: Root symbols as returned by textDocument/documentSymbol

    Returns:
        Flat list of SymbolInfo objects
    """
    result: list[SymbolInfo] = []
    for symbol in symbols:
        result.append(
            SymbolInfo(
                name=symbol.name,
                kind=symbol.kind,
                location=types.Location(uri=uri, range=symbol.selection_range),
            )
        )
        if symbol.children:
            result.extend(flatten_document_symbols(uri, symbol.children))
    return result


def to_symbol_infos(
    uri: str,
    symbols: Sequence[types.DocumentSymbol] | Sequence[types.SymbolInformation],
) -> list[SymbolInfo]:
    """Convert a documentSymbol response of either shape into SymbolInfo objects."""
    if symbols and isinstance(symbols[0], types.DocumentSymbol):
        return flatten_document_symbols(uri, symbols)  # type: ignore[arg-type]
    return [SymbolInfo(name=s.name, kind=s.kind, location=s.location) for s in symbols]  # type: ignore[union-attr]
