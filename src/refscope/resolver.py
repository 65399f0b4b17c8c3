"""Reference anchor resolution.

Symbol providers report a declaration range and a name that may be fully
qualified (C#) or carry part of a signature (C++). Reference providers expect
the position of the identifier itself, so the simple name is searched inside the
declaration range.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from refscope.errors import SymbolNameMismatch

if TYPE_CHECKING:
    from lsprotocol import types

    from refscope.documents import DocumentStore
    from refscope.symbol import SymbolInfo


def get_simple_symbol_name(name: str) -> str:
    """Normalize a reported symbol name to the identifier expected in source.

    Examples:
        "Foo.Bar.Baz" -> "Baz"
        "doWork(int, int)" -> "doWork"
        "Foo.bar(x)" -> "bar"
    """
    name = name.split(".")[-1]
    return name.split("(")[0]


def resolve_reference_position(symbol: SymbolInfo, documents: DocumentStore) -> types.Position:
    """Find the position of the symbol's simple name within its declaration range.

    Args:
        symbol: Symbol whose definition range should contain its name
        documents: Store used to read the document text

    Returns:
        Position of the first occurrence of the simple name

    Raises:
        SymbolNameMismatch: If the simple name does not occur in the range
    """
    uri = symbol.location.uri
    text_range = symbol.location.range
    text = documents.read_text(uri, text_range)
    simple_name = get_simple_symbol_name(symbol.name)
    offset_in_range = text.find(simple_name) if simple_name else -1
    if offset_in_range == -1:
        raise SymbolNameMismatch(symbol.name, simple_name, text_range, uri)
    range_offset = documents.offset_at(uri, text_range.start)
    return documents.position_at(uri, range_offset + offset_in_range)
