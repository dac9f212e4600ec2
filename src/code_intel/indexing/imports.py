"""Resolve a unit's import specifiers against the files of its project."""

from code_intel.indexing.extractors import PythonExtractor, ResolvedImport, get_extractor_for_language
from code_intel.source.cache import SourceProject
from code_intel.source.models import ParsedUnit


def resolve_unit_imports(
    project: SourceProject,
    unit: ParsedUnit,
    default_extension: str = ".ts",
) -> list[ResolvedImport]:
    """Every resolvable import of ``unit``, in source order.

    Unresolvable relative specifiers are dropped by the extractors.
    """
    extractor = get_extractor_for_language(unit.language)
    if extractor is None:
        return []
    known_files = project.units.keys()
    resolved: list[ResolvedImport] = []
    for spec in extractor.extract_imports(unit):
        targets = extractor.resolve_import(unit.path, spec.specifier, known_files, default_extension)
        resolved.extend(targets)
        if isinstance(extractor, PythonExtractor):
            # "from pkg import mod" also depends on pkg/mod.py
            resolved.extend(extractor.resolve_submodules(unit.path, spec, known_files))
    return resolved


def imported_files(project: SourceProject, unit: ParsedUnit, default_extension: str = ".ts") -> list[str]:
    targets: list[str] = []
    for resolved in resolve_unit_imports(project, unit, default_extension):
        if resolved.target is not None and resolved.target not in targets:
            targets.append(resolved.target)
    return targets
