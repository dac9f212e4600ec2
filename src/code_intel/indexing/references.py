"""Definition and usage lookup for a named symbol across a project."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from code_intel.indexing.extractors import get_extractor_for_language
from code_intel.indexing.imports import imported_files, resolve_unit_imports
from code_intel.indexing.models import Binding, BindingKind, Occurrence, Reference, ReferenceRole
from code_intel.source.cache import SourceProject
from code_intel.source.models import ParsedUnit
from code_intel.utils.error_handling import ErrorContext

logger = logging.getLogger(__name__)

PRECISE = "precise"
FALLBACK = "fallback"

# re-export chains longer than this are treated as unresolved
MAX_IMPORT_HOPS = 8


@dataclass
class ReferenceSearch:
    symbol: str
    mode: str
    references: list[Reference] = field(default_factory=list)
    anchor: Optional[Binding] = None

    @property
    def definitions(self) -> list[Reference]:
        return [r for r in self.references if r.role == ReferenceRole.DEFINITION]

    @property
    def usages(self) -> list[Reference]:
        return [r for r in self.references if r.role == ReferenceRole.USAGE]

    def by_file(self) -> dict[str, list[Reference]]:
        grouped: dict[str, list[Reference]] = {}
        for reference in self.references:
            grouped.setdefault(reference.file_path, []).append(reference)
        return grouped


class ReferenceResolver:
    """Finds every occurrence of one identifier in a project.

    With an anchor (file and line) the identifier at that position is
    resolved to its binding and only occurrences bound to the same
    declaration are returned. Without one, or when the anchor cannot be
    resolved, every identifier token with the name is returned.
    """

    def __init__(self, project: SourceProject, default_extension: str = ".ts") -> None:
        self.project = project
        self.default_extension = default_extension
        self._occurrences: dict[tuple[str, str], list[Occurrence]] = {}
        self._canonical: dict[Binding, Binding] = {}

    def find(
        self,
        name: str,
        file_path: Optional[str] = None,
        line: Optional[int] = None,
    ) -> ReferenceSearch:
        if file_path is not None and line is not None:
            search = self._find_precise(name, file_path, line)
            if search is not None:
                return search
            logger.debug("No resolvable anchor for %s at %s:%s, scanning by name", name, file_path, line)
        return self._find_fallback(name)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def _find_fallback(self, name: str) -> ReferenceSearch:
        search = ReferenceSearch(symbol=name, mode=FALLBACK)
        for rel, unit in self.project.units.items():
            for occurrence in self._unit_occurrences(unit, name):
                search.references.append(occurrence.to_reference(rel))
        return search

    def _find_precise(self, name: str, file_path: str, line: int) -> Optional[ReferenceSearch]:
        rel = self.project.relative_path(file_path)
        unit = self.project.get(rel)
        if unit is None:
            return None
        extractor = get_extractor_for_language(unit.language)
        if extractor is None or not extractor.supports_bindings:
            return None

        on_line = [o for o in self._unit_occurrences(unit, name) if o.line == line]
        if not on_line:
            return None
        # prefer the declaration when a line holds several occurrences
        on_line.sort(key=lambda o: 0 if o.role == ReferenceRole.DEFINITION else 1)
        anchor = on_line[0]
        if anchor.binding is None:
            return None

        member_files: Optional[set[str]] = None
        if anchor.binding.kind == BindingKind.MEMBER:
            member_files = self._member_scope(rel, unit, name, anchor)
        canonical_anchor = self._canonicalize(anchor.binding)

        search = ReferenceSearch(symbol=name, mode=PRECISE, anchor=canonical_anchor)
        for path, other in self.project.units.items():
            other_extractor = get_extractor_for_language(other.language)
            if other_extractor is None or not other_extractor.supports_bindings:
                continue
            for occurrence in self._unit_occurrences(other, name):
                if self._is_match(occurrence, path, canonical_anchor, member_files):
                    search.references.append(occurrence.to_reference(path))
        return search

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _is_match(
        self,
        occurrence: Occurrence,
        path: str,
        anchor: Binding,
        member_files: Optional[set[str]],
    ) -> bool:
        if occurrence.binding is None:
            return False
        if member_files is not None:
            return path in member_files and occurrence.binding == anchor
        return self._canonicalize(occurrence.binding) == anchor

    def _unit_occurrences(self, unit: ParsedUnit, name: str) -> list[Occurrence]:
        key = (unit.path, name)
        cached = self._occurrences.get(key)
        if cached is not None:
            return cached
        occurrences: list[Occurrence] = []
        extractor = get_extractor_for_language(unit.language)
        if extractor is not None:
            with ErrorContext(
                f"scanning {unit.path} for {name}",
                raise_on_error=False,
                logger_instance=logger,
                log_level=logging.WARNING,
            ):
                occurrences = extractor.extract_occurrences(unit, name)
        self._occurrences[key] = occurrences
        return occurrences

    def _canonicalize(self, binding: Binding, hops: int = 0) -> Binding:
        """Follow import bindings to the declaration they name."""
        if binding.kind != BindingKind.IMPORT or not binding.file_path:
            return binding
        cached = self._canonical.get(binding)
        if cached is not None:
            return cached
        result = self._follow_import(binding, hops)
        self._canonical[binding] = result
        return result

    def _follow_import(self, binding: Binding, hops: int) -> Binding:
        importer = self.project.get(binding.file_path)
        unresolved = Binding.imported("", binding.scope, binding.name)
        if importer is None or hops >= MAX_IMPORT_HOPS:
            return unresolved
        extractor = get_extractor_for_language(importer.language)
        if extractor is None:
            return unresolved

        resolved = extractor.resolve_import(
            importer.path, binding.scope, self.project.units.keys(), self.default_extension,
        )
        target_path = next((r.target for r in resolved if r.target is not None), None)
        if target_path is None:
            external = next((r.external for r in resolved if r.external is not None), binding.scope)
            return Binding.imported("", external, binding.name)

        target = self.project.get(target_path)
        target_extractor = get_extractor_for_language(target.language)
        unresolved = Binding.imported("", target_path, binding.name)
        if binding.name == "*" or target_extractor is None:
            return unresolved

        exported = target_extractor.export_binding(target, binding.name)
        if exported is not None:
            return self._canonicalize(exported, hops + 1)

        for star_source in target_extractor.star_exports(target):
            candidate = self._canonicalize(
                Binding.imported(target_path, star_source, binding.name), hops + 1,
            )
            if candidate.kind != BindingKind.IMPORT or candidate.file_path:
                return candidate
        return unresolved

    def _member_scope(self, rel: str, unit: ParsedUnit, name: str, anchor: Occurrence) -> set[str]:
        """Files where a member access of ``name`` may refer to the anchor's member."""
        declaring = {rel}
        if anchor.role != ReferenceRole.DEFINITION:
            for target in imported_files(self.project, unit, self.default_extension):
                target_unit = self.project.get(target)
                if target_unit is None:
                    continue
                if any(
                    o.role == ReferenceRole.DEFINITION and o.binding is not None
                    and o.binding.kind == BindingKind.MEMBER
                    for o in self._unit_occurrences(target_unit, name)
                ):
                    declaring.add(target)

        files = set(declaring)
        for path, other in self.project.units.items():
            for resolved in resolve_unit_imports(self.project, other, self.default_extension):
                if resolved.target in declaring:
                    files.add(path)
                    break
        return files
