"""Python symbol extractor using the ast module."""

import ast
import logging
import re
from dataclasses import dataclass, field
from typing import Collection, Optional, Union

from code_intel.indexing.extractors.base import PREVIEW_MAX_LEN, BaseExtractor, ResolvedImport
from code_intel.indexing.models import (
    Binding,
    ImportSpec,
    Occurrence,
    ReferenceRole,
    Symbol,
    SymbolKind,
)
from code_intel.source.models import ParsedUnit

logger = logging.getLogger(__name__)

MODULE_SCOPE = "<module>"

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]


@dataclass
class _Scope:
    key: str
    kind: str  # module | function | class | comprehension
    parent: Optional["_Scope"]
    names: dict[str, Binding] = field(default_factory=dict)
    globals: set[str] = field(default_factory=set)
    nonlocals: set[str] = field(default_factory=set)


@dataclass
class _Event:
    name: str
    line: int
    column: int  # byte offset, as reported by ast
    role: ReferenceRole
    scope: _Scope
    binding: Optional[Binding] = None  # preset for imports and members


@dataclass
class _ModuleAnalysis:
    module: _Scope
    events: list[_Event]
    imports: list[ImportSpec]


def _name_column(line_text: str, name: str, start: int) -> int:
    """Byte column of ``name`` as a whole word at or after ``start``."""
    encoded = line_text.encode("utf8")
    tail = encoded[start:].decode("utf8", errors="ignore")
    match = re.search(rf"\b{re.escape(name)}\b", tail)
    if match is None:
        return start
    return start + len(tail[: match.start()].encode("utf8"))


class _ScopeVisitor(ast.NodeVisitor):
    """Single pass recording bindings per scope and every name event."""

    def __init__(self, unit: ParsedUnit) -> None:
        self.unit = unit
        self.module = _Scope(MODULE_SCOPE, "module", None)
        self.scope = self.module
        self.events: list[_Event] = []
        self.imports: list[ImportSpec] = []

    def _declare(self, name: str, scope: Optional[_Scope] = None, binding: Optional[Binding] = None) -> None:
        scope = scope or self.scope
        if binding is None:
            binding = Binding.local(self.unit.path, scope.key, name)
        scope.names.setdefault(name, binding)

    def _event(self, name: str, line: int, column: int, role: ReferenceRole, binding: Optional[Binding] = None) -> None:
        self.events.append(_Event(name, line, column, role, self.scope, binding))

    def _push(self, node: ast.AST, kind: str) -> _Scope:
        scope = _Scope(f"{kind}@{node.lineno}:{node.col_offset}", kind, self.scope)
        self.scope = scope
        return scope

    def _pop(self, scope: _Scope) -> None:
        self.scope = scope.parent

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def _visit_function(self, node: FunctionNode) -> None:
        for decorator in node.decorator_list:
            self.visit(decorator)
        self._visit_arguments_outer(node.args)
        if node.returns is not None:
            self.visit(node.returns)

        line_text = self.unit.line_text(node.lineno)
        self._declare(node.name)
        self._event(
            node.name, node.lineno,
            _name_column(line_text, node.name, node.col_offset + len("def")),
            ReferenceRole.DEFINITION,
        )

        scope = self._push(node, "function")
        self._visit_parameters(node.args)
        for statement in node.body:
            self.visit(statement)
        self._pop(scope)

    visit_FunctionDef = _visit_function
    visit_AsyncFunctionDef = _visit_function

    def visit_Lambda(self, node: ast.Lambda) -> None:
        self._visit_arguments_outer(node.args)
        scope = self._push(node, "function")
        self._visit_parameters(node.args)
        self.visit(node.body)
        self._pop(scope)

    def _visit_arguments_outer(self, args: ast.arguments) -> None:
        # defaults and annotations evaluate in the enclosing scope
        for default in list(args.defaults) + [d for d in args.kw_defaults if d is not None]:
            self.visit(default)
        for arg in self._all_args(args):
            if arg.annotation is not None:
                self.visit(arg.annotation)

    def _visit_parameters(self, args: ast.arguments) -> None:
        for arg in self._all_args(args):
            self._declare(arg.arg)
            self._event(arg.arg, arg.lineno, arg.col_offset, ReferenceRole.DEFINITION)

    @staticmethod
    def _all_args(args: ast.arguments) -> list[ast.arg]:
        result = list(args.posonlyargs) + list(args.args)
        if args.vararg is not None:
            result.append(args.vararg)
        result.extend(args.kwonlyargs)
        if args.kwarg is not None:
            result.append(args.kwarg)
        return result

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        for decorator in node.decorator_list:
            self.visit(decorator)
        for base in node.bases:
            self.visit(base)
        for keyword in node.keywords:
            self.visit(keyword.value)

        line_text = self.unit.line_text(node.lineno)
        self._declare(node.name)
        self._event(
            node.name, node.lineno,
            _name_column(line_text, node.name, node.col_offset + len("class")),
            ReferenceRole.DEFINITION,
        )

        scope = self._push(node, "class")
        for statement in node.body:
            self.visit(statement)
        self._pop(scope)

    def _visit_comprehension(self, node) -> None:
        scope = self._push(node, "comprehension")
        for generator in node.generators:
            self.visit(generator.iter)
            self.visit(generator.target)
            for condition in generator.ifs:
                self.visit(condition)
        if isinstance(node, ast.DictComp):
            self.visit(node.key)
            self.visit(node.value)
        else:
            self.visit(node.elt)
        self._pop(scope)

    visit_ListComp = _visit_comprehension
    visit_SetComp = _visit_comprehension
    visit_DictComp = _visit_comprehension
    visit_GeneratorExp = _visit_comprehension

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, ast.Store):
            if node.id not in self.scope.globals and node.id not in self.scope.nonlocals:
                self._declare(node.id)
            self._event(node.id, node.lineno, node.col_offset, ReferenceRole.DEFINITION)
        else:
            self._event(node.id, node.lineno, node.col_offset, ReferenceRole.USAGE)

    def visit_NamedExpr(self, node: ast.NamedExpr) -> None:
        self.visit(node.value)
        scope = self.scope
        while scope.kind == "comprehension" and scope.parent is not None:
            scope = scope.parent
        self._declare(node.target.id, scope)
        # resolved in the comprehension's enclosing scope
        self.events.append(_Event(
            node.target.id, node.target.lineno, node.target.col_offset,
            ReferenceRole.DEFINITION, scope,
        ))

    def visit_Attribute(self, node: ast.Attribute) -> None:
        self.visit(node.value)
        end_line = node.end_lineno or node.lineno
        end_col = node.end_col_offset or 0
        column = max(end_col - len(node.attr.encode("utf8")), 0)
        role = ReferenceRole.DEFINITION if isinstance(node.ctx, ast.Store) else ReferenceRole.USAGE
        self._event(node.attr, end_line, column, role, Binding.member(node.attr))

    def visit_Global(self, node: ast.Global) -> None:
        self.scope.globals.update(node.names)

    def visit_Nonlocal(self, node: ast.Nonlocal) -> None:
        self.scope.nonlocals.update(node.names)

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.type is not None:
            self.visit(node.type)
        if node.name:
            self._declare(node.name)
            line_text = self.unit.line_text(node.lineno)
            as_index = line_text.encode("utf8").find(b" as ", node.col_offset)
            start = as_index + 4 if as_index >= 0 else node.col_offset
            self._event(node.name, node.lineno, _name_column(line_text, node.name, start), ReferenceRole.DEFINITION)
        for statement in node.body:
            self.visit(statement)

    def visit_MatchAs(self, node) -> None:
        if node.pattern is not None:
            self.visit(node.pattern)
        if node.name:
            self._declare(node.name)

    def visit_MatchStar(self, node) -> None:
        if node.name:
            self._declare(node.name)

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            local = alias.asname or alias.name.split(".")[0]
            imported = alias.name if alias.asname else local
            binding = Binding.imported(self.unit.path, imported, "*")
            self._declare(local, binding=binding)
            self._alias_events(alias, node, binding)
            self.imports.append(ImportSpec(alias.name, node.lineno, {"*": local}))

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        specifier = "." * node.level + (node.module or "")
        names: dict[str, str] = {}
        for alias in node.names:
            if alias.name == "*":
                names["*"] = "*"
                continue
            local = alias.asname or alias.name
            binding = Binding.imported(self.unit.path, specifier, alias.name)
            self._declare(local, binding=binding)
            self._alias_events(alias, node, binding)
            names[alias.name] = local
        self.imports.append(ImportSpec(specifier, node.lineno, names))

    def _alias_events(self, alias: ast.alias, statement: ast.stmt, binding: Binding) -> None:
        line = getattr(alias, "lineno", statement.lineno)
        line_text = self.unit.line_text(line)
        start = getattr(alias, "col_offset", statement.col_offset)
        first = alias.name.split(".")[0]
        self._event(first, line, _name_column(line_text, first, start), ReferenceRole.USAGE, binding)
        if alias.asname:
            as_index = line_text.encode("utf8").find(b" as ", start)
            as_start = as_index + 4 if as_index >= 0 else start
            self._event(alias.asname, line, _name_column(line_text, alias.asname, as_start),
                        ReferenceRole.USAGE, binding)


def _resolve(scope: _Scope, name: str, module: _Scope) -> Binding:
    if name in scope.globals:
        return module.names.get(name) or Binding.global_(name)
    if name in scope.nonlocals:
        current = scope.parent
        while current is not None and current.kind != "module":
            if current.kind == "function" and name in current.names:
                return current.names[name]
            current = current.parent
        return Binding.global_(name)
    if name in scope.names:
        return scope.names[name]
    current = scope.parent
    while current is not None:
        # class bodies are not visible to nested scopes
        if current.kind != "class" and name in current.names:
            if name in current.globals:
                return module.names.get(name) or Binding.global_(name)
            return current.names[name]
        current = current.parent
    return Binding.global_(name)


def _module_candidates(parts: list[str], base: str) -> list[str]:
    stem = "/".join(p for p in [base] + parts if p)
    if not stem:
        return ["__init__.py"]
    return [f"{stem}.py", f"{stem}/__init__.py"]


class PythonExtractor(BaseExtractor):

    supports_bindings = True

    def _analysis(self, unit: ParsedUnit) -> _ModuleAnalysis:
        def build() -> _ModuleAnalysis:
            visitor = _ScopeVisitor(unit)
            visitor.visit(unit.tree)
            return _ModuleAnalysis(visitor.module, visitor.events, visitor.imports)
        return self._memo(unit, "python", build)

    # ------------------------------------------------------------------
    # Symbols
    # ------------------------------------------------------------------

    def extract_symbols(self, unit: ParsedUnit) -> list[Symbol]:
        if unit.tree is None:
            return []
        symbols: list[Symbol] = []
        self._walk(unit, unit.tree, symbols, in_class=False)
        symbols.sort(key=lambda s: (s.line, s.column))
        return symbols

    def _walk(self, unit: ParsedUnit, node: ast.AST, symbols: list[Symbol], in_class: bool) -> None:
        for child in ast.iter_child_nodes(node):
            if isinstance(child, ast.ClassDef):
                symbols.append(self._definition_symbol(unit, child, SymbolKind.CLASS, "class"))
                self._walk(unit, child, symbols, in_class=True)
            elif isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
                kind = SymbolKind.METHOD if in_class else SymbolKind.FUNCTION
                symbols.append(self._definition_symbol(unit, child, kind, "def"))
                self._walk(unit, child, symbols, in_class=False)
            elif isinstance(child, (ast.Assign, ast.AnnAssign)):
                targets = child.targets if isinstance(child, ast.Assign) else [child.target]
                for target in targets:
                    if isinstance(target, ast.Name):
                        is_lambda = isinstance(child.value, ast.Lambda)
                        kind = SymbolKind.FUNCTION if is_lambda else SymbolKind.VARIABLE
                        symbols.append(Symbol(
                            name=target.id,
                            kind=kind,
                            file_path=unit.path,
                            line=target.lineno,
                            column=unit.char_column(target.lineno, target.col_offset),
                            preview=f"{kind.value} {target.id}",
                        ))
                self._walk(unit, child, symbols, in_class=False)
            else:
                self._walk(unit, child, symbols, in_class=in_class and isinstance(child, ast.stmt))

    def _definition_symbol(self, unit: ParsedUnit, node, kind: SymbolKind, keyword: str) -> Symbol:
        line_text = unit.line_text(node.lineno)
        byte_col = _name_column(line_text, node.name, node.col_offset + len(keyword))
        docstring = ast.get_docstring(node)
        preview = docstring[:PREVIEW_MAX_LEN] if docstring else f"{kind.value} {node.name}"
        return Symbol(
            name=node.name,
            kind=kind,
            file_path=unit.path,
            line=node.lineno,
            column=unit.char_column(node.lineno, byte_col),
            preview=preview,
        )

    # ------------------------------------------------------------------
    # Occurrences
    # ------------------------------------------------------------------

    def extract_occurrences(self, unit: ParsedUnit, name: str) -> list[Occurrence]:
        if unit.tree is None or name not in unit.text:
            return []
        analysis = self._analysis(unit)
        occurrences = []
        for event in analysis.events:
            if event.name != name:
                continue
            binding = event.binding or _resolve(event.scope, name, analysis.module)
            occurrences.append(Occurrence(
                name=name,
                line=event.line,
                column=unit.char_column(event.line, event.column),
                role=event.role,
                text=self._statement_text(unit, event.line),
                binding=binding,
            ))
        occurrences.sort(key=lambda o: (o.line, o.column))
        return occurrences

    # ------------------------------------------------------------------
    # Imports and exports
    # ------------------------------------------------------------------

    def extract_imports(self, unit: ParsedUnit) -> list[ImportSpec]:
        if unit.tree is None:
            return []
        return list(self._analysis(unit).imports)

    def extract_exports(self, unit: ParsedUnit) -> list[str]:
        if unit.tree is None:
            return []
        declared = self._dunder_all(unit.tree)
        if declared is not None:
            return declared
        names: list[str] = []
        for statement in unit.tree.body:
            if isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
                candidates = [statement.name]
            elif isinstance(statement, ast.Assign):
                candidates = [t.id for t in statement.targets if isinstance(t, ast.Name)]
            elif isinstance(statement, ast.AnnAssign) and isinstance(statement.target, ast.Name):
                candidates = [statement.target.id]
            else:
                continue
            for candidate in candidates:
                if not candidate.startswith("_") and candidate not in names:
                    names.append(candidate)
        return names

    @staticmethod
    def _dunder_all(tree: ast.Module) -> Optional[list[str]]:
        for statement in tree.body:
            if not isinstance(statement, ast.Assign):
                continue
            if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in statement.targets):
                continue
            if isinstance(statement.value, (ast.List, ast.Tuple)):
                return [
                    element.value for element in statement.value.elts
                    if isinstance(element, ast.Constant) and isinstance(element.value, str)
                ]
        return None

    def export_binding(self, unit: ParsedUnit, name: str) -> Optional[Binding]:
        if unit.tree is None:
            return None
        return self._analysis(unit).module.names.get(name)

    def resolve_import(
        self,
        importer: str,
        specifier: str,
        known_files: Collection[str],
        default_extension: str = ".ts",
    ) -> list[ResolvedImport]:
        level = len(specifier) - len(specifier.lstrip("."))
        module = specifier[level:]
        parts = module.split(".") if module else []

        if level:
            base_parts = importer.split("/")[:-1]
            if level - 1 > len(base_parts):
                return []
            base = "/".join(base_parts[: len(base_parts) - (level - 1)])
            roots = [base]
        else:
            roots = ["", "src"]

        for root in roots:
            for candidate in _module_candidates(parts, root):
                if candidate in known_files:
                    return [ResolvedImport(specifier, target=candidate)]

        if level:
            logger.debug("Unresolved import %r in %s", specifier, importer)
            return []
        return [ResolvedImport(specifier, external=parts[0])] if parts else []

    def resolve_submodules(
        self,
        importer: str,
        spec: ImportSpec,
        known_files: Collection[str],
    ) -> list[ResolvedImport]:
        """Targets for ``from pkg import mod`` where ``mod`` is itself a module."""
        resolved = []
        base = spec.specifier if spec.specifier.endswith(".") else spec.specifier + "."
        for name in spec.names:
            if name == "*":
                continue
            for target in self.resolve_import(importer, base + name, known_files):
                if target.target is not None:
                    resolved.append(target)
        return resolved
