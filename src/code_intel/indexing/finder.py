"""Project-wide symbol search."""

import logging
from collections import Counter
from typing import Optional

from code_intel.indexing.extractors import get_extractor_for_language
from code_intel.indexing.models import Symbol, SymbolKind
from code_intel.source.cache import SourceProject
from code_intel.utils.error_handling import ErrorContext

logger = logging.getLogger(__name__)

_KIND_ORDER = [kind.value for kind in SymbolKind]


def find_symbol(
    project: SourceProject,
    name: str,
    kind: Optional[str] = None,
) -> list[Symbol]:
    """Symbols whose name contains ``name``.

    Results follow file traversal order, then source order, with exact
    name matches moved ahead of partial ones (stable).
    """
    matches: list[Symbol] = []
    for rel, unit in project.units.items():
        extractor = get_extractor_for_language(unit.language)
        if extractor is None:
            continue
        symbols: list[Symbol] = []
        with ErrorContext(
            f"extracting symbols from {rel}",
            raise_on_error=False,
            logger_instance=logger,
            log_level=logging.WARNING,
        ):
            symbols = extractor.extract_symbols(unit)
        for symbol in symbols:
            if name not in symbol.name:
                continue
            if kind and symbol.kind != kind:
                continue
            matches.append(symbol)

    matches.sort(key=lambda s: 0 if s.name == name else 1)
    return matches


def summarize_symbols(symbols: list[Symbol]) -> str:
    """E.g. "Found 3 symbols: 2 functions, 1 class"."""
    if not symbols:
        return "Found 0 symbols"
    counts = Counter(s.kind for s in symbols)
    parts = []
    for kind in sorted(counts, key=_KIND_ORDER.index):
        count = counts[kind]
        parts.append(f"{count} {_plural(kind, count)}")
    noun = "symbol" if len(symbols) == 1 else "symbols"
    return f"Found {len(symbols)} {noun}: {', '.join(parts)}"


def _plural(word: str, count: int) -> str:
    if count == 1:
        return word
    return word + ("es" if word.endswith("s") else "s")
