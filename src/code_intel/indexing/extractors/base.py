"""Abstract base class for language-specific symbol extractors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Collection, Optional

from code_intel.indexing.models import Binding, ImportSpec, Occurrence, Symbol
from code_intel.source.models import ParsedUnit

PREVIEW_MAX_LEN = 100


@dataclass(frozen=True)
class ResolvedImport:
    """Outcome of resolving one import specifier.

    Exactly one of ``target`` (a project-relative file) and ``external``
    (a package name) is set for a resolvable specifier.
    """
    specifier: str
    target: Optional[str] = None
    external: Optional[str] = None


class BaseExtractor(ABC):

    # Whether occurrences carry lexical bindings usable for precise lookup
    supports_bindings = False

    @abstractmethod
    def extract_symbols(self, unit: ParsedUnit) -> list[Symbol]:
        ...

    @abstractmethod
    def extract_occurrences(self, unit: ParsedUnit, name: str) -> list[Occurrence]:
        """Every syntactic occurrence of the identifier ``name``, in source order."""
        ...

    @abstractmethod
    def extract_imports(self, unit: ParsedUnit) -> list[ImportSpec]:
        ...

    @abstractmethod
    def extract_exports(self, unit: ParsedUnit) -> list[str]:
        ...

    @abstractmethod
    def resolve_import(
        self,
        importer: str,
        specifier: str,
        known_files: Collection[str],
        default_extension: str = ".ts",
    ) -> list[ResolvedImport]:
        ...

    def export_binding(self, unit: ParsedUnit, name: str) -> Optional[Binding]:
        """Binding that ``name`` refers to when imported from ``unit``."""
        return None

    def star_exports(self, unit: ParsedUnit) -> list[str]:
        """Specifiers whose exports ``unit`` re-exports wholesale."""
        return []

    def _truncate(self, text: str, limit: int = PREVIEW_MAX_LEN) -> str:
        text = " ".join(text.split())
        if len(text) <= limit:
            return text
        return text[: limit - 3] + "..."

    def _statement_text(self, unit: ParsedUnit, line: int) -> str:
        return self._truncate(unit.line_text(line).strip())

    @staticmethod
    def _memo(unit: ParsedUnit, key: str, factory):
        """Cache a per-unit analysis on the unit itself."""
        value = unit.memo.get(key)
        if value is None:
            value = factory()
            unit.memo[key] = value
        return value
