"""TypeScript/JavaScript extractor over tree-sitter syntax trees.

Besides declarations, this extractor runs a small lexical scope analysis
so that identifier occurrences can be tied to the declaration they
resolve to. Scopes are the program, functions (including arrow functions
and methods), blocks, loops and catch clauses. ``var`` declarations hoist
to the nearest function scope; everything else binds in the scope it
appears in.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Collection, Iterator, Optional

from code_intel.indexing.extractors.base import BaseExtractor, ResolvedImport
from code_intel.indexing.models import (
    Binding,
    ImportSpec,
    Occurrence,
    ReferenceRole,
    Symbol,
    SymbolKind,
)
from code_intel.source.models import ParsedUnit
from code_intel.source.parsers import node_text, walk_nodes
from code_intel.source.paths import (
    first_existing,
    is_relative_specifier,
    join_relative,
    script_candidates,
)

logger = logging.getLogger(__name__)

PROGRAM_SCOPE = "<program>"

FUNCTION_SCOPE_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
})
BLOCK_SCOPE_TYPES = frozenset({
    "statement_block",
    "for_statement",
    "for_in_statement",
    "catch_clause",
    "switch_body",
})

_FUNCTION_VALUE_TYPES = frozenset({
    "arrow_function",
    "function_expression",
    "function",
    "generator_function",
})

_SYMBOL_KINDS: dict[str, SymbolKind] = {
    "function_declaration": SymbolKind.FUNCTION,
    "generator_function_declaration": SymbolKind.FUNCTION,
    "function_signature": SymbolKind.FUNCTION,
    "class_declaration": SymbolKind.CLASS,
    "abstract_class_declaration": SymbolKind.CLASS,
    "interface_declaration": SymbolKind.INTERFACE,
    "type_alias_declaration": SymbolKind.TYPE,
    "enum_declaration": SymbolKind.TYPE,
    "method_definition": SymbolKind.METHOD,
    "method_signature": SymbolKind.METHOD,
    "abstract_method_signature": SymbolKind.METHOD,
}

# Declarations whose ``name`` field binds in the enclosing scope
_NAMED_DECLARATIONS = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_signature",
    "class_declaration",
    "abstract_class_declaration",
    "interface_declaration",
    "type_alias_declaration",
    "enum_declaration",
})

# Parents whose ``name``/``key`` child declares a class or object member
_MEMBER_DECLARATIONS = frozenset({
    "method_definition",
    "method_signature",
    "abstract_method_signature",
    "public_field_definition",
    "property_signature",
    "pair",
})

_IDENTIFIER_TYPES = frozenset({
    "identifier",
    "type_identifier",
    "property_identifier",
    "private_property_identifier",
    "shorthand_property_identifier",
    "shorthand_property_identifier_pattern",
})

_PACKAGE_NAME = re.compile(r"^(@[^/]+/[^/]+|[^/]+)")


def _key(node) -> tuple[int, int]:
    return node.start_byte, node.end_byte


def _opens_scope(node) -> bool:
    # "function" is also the type of the anonymous keyword token
    return node.is_named and (node.type in FUNCTION_SCOPE_TYPES or node.type in BLOCK_SCOPE_TYPES)


def _scope_key(node) -> str:
    row, col = node.start_point
    return f"{node.type}@{row + 1}:{col}"


def _string_value(node) -> Optional[str]:
    if node is None or node.type not in ("string", "template_string"):
        return None
    text = node_text(node)
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return None


@dataclass
class _Scope:
    key: str
    parent: Optional["_Scope"]
    is_function: bool
    names: dict[str, Binding] = field(default_factory=dict)

    def function_scope(self) -> "_Scope":
        scope = self
        while not scope.is_function and scope.parent is not None:
            scope = scope.parent
        return scope

    def lookup(self, name: str) -> Optional[Binding]:
        scope: Optional[_Scope] = self
        while scope is not None:
            binding = scope.names.get(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None


@dataclass
class _ScriptAnalysis:
    program: _Scope
    scopes: dict[str, _Scope]
    definitions: dict[tuple[int, int], Binding]
    import_names: dict[tuple[int, int], Binding]
    imports: list[ImportSpec]
    exports: dict[str, Binding]
    star_exports: list[str]


class _ScopeBuilder:
    """Collects declarations per scope for one unit."""

    def __init__(self, unit: ParsedUnit) -> None:
        self.unit = unit
        root = unit.tree.root_node
        self.is_module = self._has_module_syntax(root)
        self.program = _Scope(PROGRAM_SCOPE, None, True)
        self.scopes: dict[str, _Scope] = {PROGRAM_SCOPE: self.program}
        self.definitions: dict[tuple[int, int], Binding] = {}
        self.import_names: dict[tuple[int, int], Binding] = {}
        self.imports: list[ImportSpec] = []
        self.exports: dict[str, Binding] = {}
        self.star_exports: list[str] = []

    @staticmethod
    def _has_module_syntax(root) -> bool:
        for child in root.named_children:
            if child.type in ("import_statement", "export_statement"):
                return True
        text = node_text(root)
        return "require(" in text or "module.exports" in text or "exports." in text

    def build(self) -> _ScriptAnalysis:
        root = self.unit.tree.root_node
        stack = [(root, self.program)]
        while stack:
            node, scope = stack.pop()
            inner = self._visit(node, scope)
            for child in reversed(node.children):
                stack.append((child, inner))
        self._collect_exports(root)
        return _ScriptAnalysis(
            program=self.program,
            scopes=self.scopes,
            definitions=self.definitions,
            import_names=self.import_names,
            imports=self.imports,
            exports=self.exports,
            star_exports=self.star_exports,
        )

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _bind(self, scope: _Scope, name_node) -> None:
        name = node_text(name_node)
        if scope is self.program and not self.is_module:
            binding = Binding.global_(name)
        else:
            binding = Binding.local(self.unit.path, scope.key, name)
        scope.names.setdefault(name, binding)
        self.definitions[_key(name_node)] = scope.names[name]

    def _bind_pattern(self, scope: _Scope, pattern) -> None:
        for name_node in _pattern_names(pattern):
            self._bind(scope, name_node)

    def _visit(self, node, scope: _Scope) -> _Scope:
        kind = node.type

        if kind in _NAMED_DECLARATIONS:
            name = node.child_by_field_name("name")
            if name is not None:
                self._bind(scope, name)
        elif kind == "variable_declarator":
            name = node.child_by_field_name("name")
            if name is not None:
                target = scope
                if node.parent is not None and node.parent.type == "variable_declaration":
                    target = scope.function_scope()
                self._bind_pattern(target, name)
        elif kind in ("required_parameter", "optional_parameter"):
            pattern = node.child_by_field_name("pattern")
            if pattern is not None:
                self._bind_pattern(scope, pattern)
        elif kind == "formal_parameters":
            # plain JavaScript-style parameters without a wrapper node
            for child in node.named_children:
                if child.type in ("identifier", "object_pattern", "array_pattern",
                                  "assignment_pattern", "rest_pattern"):
                    self._bind_pattern(scope, child)
        elif kind == "import_statement":
            self._declare_import(node, scope)

        if not _opens_scope(node):
            return scope

        inner = _Scope(_scope_key(node), scope, kind in FUNCTION_SCOPE_TYPES)
        self.scopes[inner.key] = inner

        if kind in ("function_expression", "function", "generator_function"):
            name = node.child_by_field_name("name")
            if name is not None:
                self._bind(inner, name)
        elif kind == "arrow_function":
            param = node.child_by_field_name("parameter")
            if param is not None:
                self._bind(inner, param)
        elif kind == "catch_clause":
            param = node.child_by_field_name("parameter")
            if param is not None:
                self._bind_pattern(inner, param)
        elif kind == "for_in_statement":
            declaration_kind = node.child_by_field_name("kind")
            left = node.child_by_field_name("left")
            if declaration_kind is not None and left is not None:
                target = inner.function_scope() if node_text(declaration_kind) == "var" else inner
                self._bind_pattern(target, left)
        return inner

    def _declare_import(self, node, scope: _Scope) -> None:
        source = _string_value(node.child_by_field_name("source"))
        if source is None:
            return
        names: dict[str, str] = {}
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type == "identifier":
                    self._declare_imported(scope, source, "default", part, [part])
                    names["default"] = node_text(part)
                elif part.type == "namespace_import":
                    for ident in part.named_children:
                        if ident.type == "identifier":
                            self._declare_imported(scope, source, "*", ident, [ident])
                            names["*"] = node_text(ident)
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type != "import_specifier":
                            continue
                        remote = spec.child_by_field_name("name")
                        alias = spec.child_by_field_name("alias")
                        if remote is None:
                            continue
                        local = alias or remote
                        nodes = [remote] if alias is None else [remote, alias]
                        self._declare_imported(scope, source, node_text(remote), local, nodes)
                        names[node_text(remote)] = node_text(local)
        self.imports.append(ImportSpec(source, node.start_point[0] + 1, names))

    def _declare_imported(self, scope: _Scope, source: str, imported: str, local_node, nodes) -> None:
        binding = Binding.imported(self.unit.path, source, imported)
        scope.names.setdefault(node_text(local_node), binding)
        for n in nodes:
            self.import_names[_key(n)] = binding

    # ------------------------------------------------------------------
    # Imports and exports
    # ------------------------------------------------------------------

    def _collect_exports(self, root) -> None:
        for node in walk_nodes(root):
            if node.type == "export_statement":
                self._visit_export(node)
            elif node.type == "call_expression":
                self._visit_call(node)

    def _visit_call(self, node) -> None:
        function = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if function is None or arguments is None or not arguments.named_children:
            return
        if function.type == "import" or (
            function.type == "identifier" and node_text(function) == "require"
        ):
            specifier = _string_value(arguments.named_children[0])
            if specifier is not None:
                self.imports.append(ImportSpec(specifier, node.start_point[0] + 1, {}))

    def _visit_export(self, node) -> None:
        source = _string_value(node.child_by_field_name("source"))
        is_default = any(child.type == "default" for child in node.children)

        if source is not None:
            names: dict[str, str] = {}
            clause = _first_child_of_type(node, "export_clause")
            if clause is None:
                namespace = _first_child_of_type(node, "namespace_export")
                if namespace is None:
                    self.star_exports.append(source)
                elif namespace.named_children:
                    alias = namespace.named_children[-1]
                    self.exports[node_text(alias)] = Binding.imported(self.unit.path, source, "*")
            else:
                for spec in clause.named_children:
                    remote = spec.child_by_field_name("name")
                    if remote is None:
                        continue
                    alias = spec.child_by_field_name("alias")
                    exported = node_text(alias or remote)
                    binding = Binding.imported(self.unit.path, source, node_text(remote))
                    self.exports[exported] = binding
                    names[node_text(remote)] = exported
            self.imports.append(ImportSpec(source, node.start_point[0] + 1, names))
            return

        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            for name_node in _declared_names(declaration):
                binding = self.definitions.get(_key(name_node))
                if binding is None:
                    continue
                if is_default:
                    self.exports["default"] = binding
                    break
                self.exports[node_text(name_node)] = binding
            if is_default:
                self.exports.setdefault("default", Binding.local(self.unit.path, PROGRAM_SCOPE, "default"))
            return

        value = node.child_by_field_name("value")
        if is_default and value is not None:
            binding = None
            if value.type == "identifier":
                binding = self.program.lookup(node_text(value))
            self.exports["default"] = binding or Binding.local(self.unit.path, PROGRAM_SCOPE, "default")
            return

        clause = _first_child_of_type(node, "export_clause")
        if clause is not None:
            for spec in clause.named_children:
                local = spec.child_by_field_name("name")
                if local is None:
                    continue
                alias = spec.child_by_field_name("alias")
                binding = self.program.lookup(node_text(local))
                if binding is None:
                    binding = Binding.global_(node_text(local))
                self.exports[node_text(alias or local)] = binding


def _first_child_of_type(node, kind: str):
    for child in node.children:
        if child.type == kind:
            return child
    return None


def _pattern_names(pattern) -> Iterator:
    """Identifier nodes bound by a (possibly destructuring) pattern."""
    kind = pattern.type
    if kind in ("identifier", "shorthand_property_identifier_pattern"):
        yield pattern
    elif kind in ("object_pattern", "array_pattern", "rest_pattern"):
        for child in pattern.named_children:
            yield from _pattern_names(child)
    elif kind == "pair_pattern":
        value = pattern.child_by_field_name("value")
        if value is not None:
            yield from _pattern_names(value)
    elif kind in ("assignment_pattern", "object_assignment_pattern"):
        left = pattern.child_by_field_name("left")
        if left is not None:
            yield from _pattern_names(left)


def _declared_names(declaration) -> Iterator:
    if declaration.type in _NAMED_DECLARATIONS:
        name = declaration.child_by_field_name("name")
        if name is not None:
            yield name
    elif declaration.type in ("lexical_declaration", "variable_declaration"):
        for declarator in declaration.named_children:
            if declarator.type == "variable_declarator":
                name = declarator.child_by_field_name("name")
                if name is not None:
                    yield from _pattern_names(name)


class TypeScriptExtractor(BaseExtractor):

    supports_bindings = True

    def _analysis(self, unit: ParsedUnit) -> _ScriptAnalysis:
        return self._memo(unit, "script", lambda: _ScopeBuilder(unit).build())

    # ------------------------------------------------------------------
    # Symbols
    # ------------------------------------------------------------------

    def extract_symbols(self, unit: ParsedUnit) -> list[Symbol]:
        if unit.tree is None:
            return []
        symbols: list[Symbol] = []
        for node in walk_nodes(unit.tree.root_node):
            kind = _SYMBOL_KINDS.get(node.type)
            if node.type == "variable_declarator":
                name = node.child_by_field_name("name")
                if name is None or name.type != "identifier":
                    continue
                value = node.child_by_field_name("value")
                is_function = value is not None and value.type in _FUNCTION_VALUE_TYPES
                kind = SymbolKind.FUNCTION if is_function else SymbolKind.VARIABLE
            elif kind is not None:
                name = node.child_by_field_name("name")
                if name is None:
                    continue
            else:
                continue
            symbols.append(self._symbol(unit, node, name, kind))
        return symbols

    def _symbol(self, unit: ParsedUnit, node, name_node, kind: SymbolKind) -> Symbol:
        row, byte_col = name_node.start_point
        return Symbol(
            name=node_text(name_node),
            kind=kind,
            file_path=unit.path,
            line=row + 1,
            column=unit.char_column(row + 1, byte_col),
            preview=self._truncate(node_text(node)),
        )

    # ------------------------------------------------------------------
    # Occurrences
    # ------------------------------------------------------------------

    def extract_occurrences(self, unit: ParsedUnit, name: str) -> list[Occurrence]:
        if unit.tree is None or name not in unit.text:
            return []
        analysis = self._analysis(unit)
        occurrences: list[Occurrence] = []

        stack = [(unit.tree.root_node, analysis.program)]
        while stack:
            node, scope = stack.pop()
            if _opens_scope(node):
                scope = analysis.scopes.get(_scope_key(node), scope)
            if node.type in _IDENTIFIER_TYPES:
                if node_text(node) == name:
                    occurrences.append(self._occurrence(unit, analysis, node, scope, name))
                continue
            for child in reversed(node.children):
                stack.append((child, scope))
        return occurrences

    def _occurrence(self, unit: ParsedUnit, analysis: _ScriptAnalysis, node, scope: _Scope, name: str) -> Occurrence:
        key = _key(node)
        role = ReferenceRole.USAGE
        parent = node.parent
        parent_type = parent.type if parent is not None else ""

        if key in analysis.definitions:
            role = ReferenceRole.DEFINITION
            binding = analysis.definitions[key]
        elif key in analysis.import_names:
            binding = analysis.import_names[key]
        elif node.type in ("property_identifier", "private_property_identifier"):
            binding = Binding.member(name)
            if parent_type in _MEMBER_DECLARATIONS and _is_field(parent, node, ("name", "key")):
                role = ReferenceRole.DEFINITION
        elif parent_type == "export_specifier":
            local = parent.child_by_field_name("name")
            local_name = node_text(local) if local is not None else name
            source = _reexport_source(parent)
            if source is not None:
                binding = Binding.imported(unit.path, source, local_name)
            else:
                binding = scope.lookup(local_name) or Binding.global_(local_name)
        else:
            binding = scope.lookup(name) or Binding.global_(name)

        row, byte_col = node.start_point
        return Occurrence(
            name=name,
            line=row + 1,
            column=unit.char_column(row + 1, byte_col),
            role=role,
            text=self._statement_text(unit, row + 1),
            binding=binding,
        )

    # ------------------------------------------------------------------
    # Imports and exports
    # ------------------------------------------------------------------

    def extract_imports(self, unit: ParsedUnit) -> list[ImportSpec]:
        if unit.tree is None:
            return []
        return sorted(self._analysis(unit).imports, key=lambda spec: spec.line)

    def extract_exports(self, unit: ParsedUnit) -> list[str]:
        if unit.tree is None:
            return []
        return list(self._analysis(unit).exports)

    def export_binding(self, unit: ParsedUnit, name: str) -> Optional[Binding]:
        if unit.tree is None:
            return None
        analysis = self._analysis(unit)
        binding = analysis.exports.get(name)
        if binding is None and not analysis.star_exports and not analysis.exports:
            # scripts share the global scope
            binding = analysis.program.names.get(name)
        return binding

    def star_exports(self, unit: ParsedUnit) -> list[str]:
        if unit.tree is None:
            return []
        return list(self._analysis(unit).star_exports)

    def resolve_import(
        self,
        importer: str,
        specifier: str,
        known_files: Collection[str],
        default_extension: str = ".ts",
    ) -> list[ResolvedImport]:
        if is_relative_specifier(specifier):
            joined = join_relative(importer, specifier)
            if joined is None:
                return []
            target = first_existing(script_candidates(joined, default_extension), known_files)
            if target is None:
                logger.debug("Unresolved import %r in %s", specifier, importer)
                return []
            return [ResolvedImport(specifier, target=target)]
        if specifier.startswith("/"):
            return []
        match = _PACKAGE_NAME.match(specifier)
        if match is None:
            return []
        return [ResolvedImport(specifier, external=match.group(1))]


def _is_field(parent, node, fields: tuple[str, ...]) -> bool:
    for field_name in fields:
        child = parent.child_by_field_name(field_name)
        if child is not None and _key(child) == _key(node):
            return True
    return False


def _reexport_source(specifier_node) -> Optional[str]:
    clause = specifier_node.parent
    statement = clause.parent if clause is not None else None
    if statement is None or statement.type != "export_statement":
        return None
    return _string_value(statement.child_by_field_name("source"))
