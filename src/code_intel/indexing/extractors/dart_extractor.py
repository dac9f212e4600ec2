"""Dart symbol extractor using regex-based line scanning."""

import logging
import re
from typing import Collection

from code_intel.indexing.extractors.base import BaseExtractor, ResolvedImport
from code_intel.indexing.models import ImportSpec, Occurrence, ReferenceRole, Symbol, SymbolKind
from code_intel.source.models import ParsedUnit
from code_intel.source.paths import join_relative

logger = logging.getLogger(__name__)

RE_CLASS = re.compile(
    r'^\s*(?:(?:abstract|sealed|base|final|interface|mixin)\s+)*class\s+(\w+)'
)
RE_MIXIN = re.compile(r'^\s*(?:base\s+)?mixin\s+(\w+)')
RE_EXTENSION = re.compile(r'^\s*extension\s+(\w+)\s+on\b')
RE_ENUM = re.compile(r'^\s*enum\s+(\w+)')
RE_TYPEDEF = re.compile(r'^\s*typedef\s+(\w+)')
RE_FUNCTION = re.compile(
    r'^\s*(?:(?:static|external|factory)\s+)*'
    r'(?:[\w<>?,\[\]]+(?:<[^()]*>)?\??\s+)?'
    r'(?:get\s+|set\s+)?(\w+)\s*(?:<[^()]*>)?\s*\([^;]*?(?:\)\s*(?:async\*?|sync\*)?\s*(?:\{|=>)|$)'
)
RE_VARIABLE = re.compile(
    r'^\s*(?:(?:static|late|external)\s+)*(?:final|const|var)\s+(?:[\w<>?,\[\]]+\s+)?(\w+)\s*(=|;)'
)
RE_TYPED_FIELD = re.compile(
    r'^\s*(?:(?:static|late)\s+)*[A-Z][\w<>?,\[\]]*\??\s+(\w+)\s*(=|;)'
)
RE_FUNCTION_LITERAL = re.compile(r'=\s*(?:\([^)]*\)|\w+)\s*(?:async\s*)?(?:=>|\{)')
RE_DIRECTIVE = re.compile(r'''^\s*(import|export|part)\s+(?!of\b)['"]([^'"]+)['"]''')

_KEYWORDS = frozenset({
    "if", "for", "while", "switch", "catch", "return", "assert",
    "new", "throw", "await", "super", "this", "else", "do", "try",
    "case", "when",
})


def _strip_line_comment(line: str) -> str:
    index = line.find("//")
    return line if index < 0 else line[:index]


class DartExtractor(BaseExtractor):

    def extract_symbols(self, unit: ParsedUnit) -> list[Symbol]:
        return [symbol for symbol, _ in self._scan(unit)]

    def _scan(self, unit: ParsedUnit) -> list[tuple[Symbol, bool]]:
        """Declarations paired with whether they sit at the top level."""
        return self._memo(unit, "dart", lambda: self._scan_symbols(unit))

    def _scan_symbols(self, unit: ParsedUnit) -> list[tuple[Symbol, bool]]:
        if not unit.text.strip():
            return []

        symbols: list[tuple[Symbol, bool]] = []
        depth = 0
        class_depths: list[int] = []

        for index, raw in enumerate(unit.lines):
            line = _strip_line_comment(raw)
            stripped = line.strip()
            if stripped:
                found = self._match_line(line, in_class=bool(class_depths), depth=depth,
                                         class_depth=class_depths[-1] if class_depths else 0)
                if found is not None:
                    name, kind, column, opens_body = found
                    symbol = Symbol(
                        name=name,
                        kind=kind,
                        file_path=unit.path,
                        line=index + 1,
                        column=column,
                        preview=self._truncate(stripped),
                    )
                    symbols.append((symbol, depth == 0))
                    if opens_body:
                        class_depths.append(depth)

            depth += line.count("{") - line.count("}")
            depth = max(depth, 0)
            while class_depths and depth <= class_depths[-1] and "}" in line:
                class_depths.pop()
        return symbols

    def _match_line(self, line: str, in_class: bool, depth: int, class_depth: int):
        """Return (name, kind, column, opens_class_body) for a declaration line."""
        for pattern, kind in ((RE_CLASS, SymbolKind.CLASS), (RE_MIXIN, SymbolKind.CLASS),
                              (RE_EXTENSION, SymbolKind.CLASS)):
            m = pattern.match(line)
            if m:
                return m.group(1), kind, m.start(1), True
        for pattern in (RE_ENUM, RE_TYPEDEF):
            m = pattern.match(line)
            if m:
                return m.group(1), SymbolKind.TYPE, m.start(1), False

        # only direct members of a class, or top-level declarations
        at_member_level = depth == (class_depth + 1 if in_class else 0)
        if not at_member_level:
            return None

        m = RE_VARIABLE.match(line) or RE_TYPED_FIELD.match(line)
        if m and m.group(1) not in _KEYWORDS:
            is_function = bool(RE_FUNCTION_LITERAL.search(line))
            kind = SymbolKind.FUNCTION if is_function else SymbolKind.VARIABLE
            return m.group(1), kind, m.start(1), False

        m = RE_FUNCTION.match(line)
        if m and m.group(1) not in _KEYWORDS:
            kind = SymbolKind.METHOD if in_class else SymbolKind.FUNCTION
            return m.group(1), kind, m.start(1), False
        return None

    def extract_occurrences(self, unit: ParsedUnit, name: str) -> list[Occurrence]:
        if name not in unit.text:
            return []
        definitions = {
            (s.line, s.column) for s in self.extract_symbols(unit) if s.name == name
        }
        pattern = re.compile(rf"(?<![\w$]){re.escape(name)}(?![\w$])")
        occurrences: list[Occurrence] = []
        for index, raw in enumerate(unit.lines):
            line = _strip_line_comment(raw)
            for m in pattern.finditer(line):
                position = (index + 1, m.start())
                role = ReferenceRole.DEFINITION if position in definitions else ReferenceRole.USAGE
                occurrences.append(Occurrence(
                    name=name,
                    line=index + 1,
                    column=m.start(),
                    role=role,
                    text=self._statement_text(unit, index + 1),
                ))
        return occurrences

    def extract_imports(self, unit: ParsedUnit) -> list[ImportSpec]:
        imports: list[ImportSpec] = []
        for index, line in enumerate(unit.lines):
            m = RE_DIRECTIVE.match(line)
            if m:
                imports.append(ImportSpec(m.group(2), index + 1, {}))
        return imports

    def extract_exports(self, unit: ParsedUnit) -> list[str]:
        names: list[str] = []
        for symbol, top_level in self._scan(unit):
            if not top_level or symbol.name.startswith("_"):
                continue
            if symbol.name not in names:
                names.append(symbol.name)
        return names

    def resolve_import(
        self,
        importer: str,
        specifier: str,
        known_files: Collection[str],
        default_extension: str = ".ts",
    ) -> list[ResolvedImport]:
        if specifier.startswith("dart:"):
            return [ResolvedImport(specifier, external=specifier)]
        if specifier.startswith("package:"):
            package = specifier[len("package:"):].split("/", 1)[0]
            return [ResolvedImport(specifier, external=package)]
        joined = join_relative(importer, specifier)
        if joined is None:
            return []
        for candidate in (joined, joined + ".dart"):
            if candidate in known_files:
                return [ResolvedImport(specifier, target=candidate)]
        logger.debug("Unresolved import %r in %s", specifier, importer)
        return []
