"""Symbol extraction, search and reference resolution."""

from .finder import find_symbol, summarize_symbols
from .models import Reference, ReferenceRole, Symbol, SymbolKind
from .references import ReferenceResolver, ReferenceSearch

__all__ = [
    "find_symbol",
    "summarize_symbols",
    "Reference",
    "ReferenceRole",
    "Symbol",
    "SymbolKind",
    "ReferenceResolver",
    "ReferenceSearch",
]
