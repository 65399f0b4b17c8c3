"""refscope: find the references to a file's or folder's symbols from outside of it.

This package collects symbols and references from a language server and
groups the cross-boundary references by the file containing them.
"""

__version__ = "0.1.0"

from refscope.errors import NoReferencesRetrievable, PathResolutionError, ProviderUnavailable, SymbolNameMismatch
from refscope.symbol import SymbolInfo, SymbolReferences

__all__ = [
    "NoReferencesRetrievable",
    "PathResolutionError",
    "ProviderUnavailable",
    "SymbolInfo",
    "SymbolNameMismatch",
    "SymbolReferences",
]
