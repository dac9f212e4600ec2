"""Python complexity via the ``ast`` module."""

import ast
import logging
import re
from typing import List, Optional, Tuple

from code_intel.complexity import metrics
from code_intel.complexity.calculators.base import ComplexityCalculator, CyclomaticCount
from code_intel.complexity.models import CyclomaticMethod, FunctionComplexity
from code_intel.core.language import Language
from code_intel.source.parsers import ParseError

logger = logging.getLogger(__name__)

_FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda)
_BRANCH_NODES = (ast.If, ast.For, ast.AsyncFor, ast.While, ast.ExceptHandler, ast.IfExp)
_MATCH_CASE = getattr(ast, "match_case", None)

MAX_LINE_LENGTH = 79
LONG_LINE_RATIO = 0.2
MAX_AVG_FUNCTION_LENGTH = 50

_EVAL_EXEC = re.compile(r"\b(?:eval|exec)\s*\(")
_BARE_EXCEPT = re.compile(r"^\s*except\s*:", re.MULTILINE)
_STAR_IMPORT = re.compile(r"^\s*from\s+\S+\s+import\s+\*", re.MULTILINE)


def _decisions(node: ast.AST) -> int:
    if isinstance(node, _BRANCH_NODES):
        return 1
    if isinstance(node, ast.BoolOp):
        return len(node.values) - 1
    if isinstance(node, ast.comprehension):
        return 1 + len(node.ifs)
    if _MATCH_CASE is not None and isinstance(node, _MATCH_CASE):
        return 1
    return 0


class _CyclomaticVisitor(ast.NodeVisitor):
    """Counts decision points overall and per enclosing function."""

    def __init__(self) -> None:
        self.total = 1
        self.functions: List[FunctionComplexity] = []
        self._current: Optional[FunctionComplexity] = None

    def generic_visit(self, node: ast.AST) -> None:
        count = _decisions(node)
        self.total += count
        if self._current is not None:
            self._current.cyclomatic += count

        if isinstance(node, _FUNCTION_NODES):
            name = getattr(node, "name", "<lambda>")
            entry = FunctionComplexity(name=name, line=node.lineno, cyclomatic=1)
            self.functions.append(entry)
            outer, self._current = self._current, entry
            super().generic_visit(node)
            self._current = outer
        else:
            super().generic_visit(node)


class PythonCalculator(ComplexityCalculator):
    language = Language.PYTHON

    def cyclomatic(self, code: str) -> CyclomaticCount:
        try:
            tree = self.registry.parse_python(code)
        except ParseError as e:
            logger.debug("AST unavailable, counting tokens instead: %s", e)
            return self.regex_cyclomatic(code)

        visitor = _CyclomaticVisitor()
        try:
            visitor.visit(tree)
        except RecursionError:
            logger.debug("Syntax tree too deep to walk, counting tokens instead")
            return self.regex_cyclomatic(code)
        return CyclomaticCount(visitor.total, CyclomaticMethod.AST, visitor.functions)

    def cognitive(self, code: str) -> int:
        return metrics.indent_cognitive(code)

    def quality_checks(self, code: str) -> Tuple[List[str], List[str]]:
        issues: List[str] = []
        recommendations: List[str] = []
        cleaned = metrics.clean_source(code, self.language)

        if _EVAL_EXEC.search(cleaned):
            issues.append("Use of eval() or exec() detected")
            recommendations.append("Avoid eval() and exec(); parse input explicitly instead")
        if _BARE_EXCEPT.search(cleaned):
            issues.append("Bare except clause detected")
            recommendations.append("Catch specific exception types instead of using a bare except")
        if _STAR_IMPORT.search(cleaned):
            issues.append("Wildcard import detected")
            recommendations.append("Import names explicitly instead of using 'from module import *'")

        additional = self.additional(code)
        if additional.average_function_length > MAX_AVG_FUNCTION_LENGTH:
            issues.append("Functions are too long on average")
            recommendations.append("Split long functions into smaller, focused helpers")

        lines = [line for line in code.split("\n") if line.strip()]
        long_lines = sum(1 for line in lines if len(line) > MAX_LINE_LENGTH)
        if lines and long_lines / len(lines) > LONG_LINE_RATIO:
            issues.append(f"Many lines exceed {MAX_LINE_LENGTH} characters")
            recommendations.append("Wrap long lines to follow PEP 8 line length")

        return issues, recommendations
