"""TypeScript/JavaScript complexity via tree-sitter."""

import logging
from typing import List

from code_intel.complexity import metrics
from code_intel.complexity.calculators.base import ComplexityCalculator, CyclomaticCount
from code_intel.complexity.models import CyclomaticMethod, FunctionComplexity
from code_intel.core.language import Language
from code_intel.source.parsers import ParseError, node_text

logger = logging.getLogger(__name__)

DECISION_TYPES = frozenset({
    "if_statement",
    "for_statement",
    "for_in_statement",
    "while_statement",
    "do_statement",
    "switch_case",
    "catch_clause",
    "ternary_expression",
})
LOGICAL_OPERATORS = frozenset({"&&", "||"})

FUNCTION_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
})


def _is_decision(node) -> bool:
    if node.type in DECISION_TYPES:
        return True
    if node.type == "binary_expression":
        operator = node.child_by_field_name("operator")
        return operator is not None and operator.type in LOGICAL_OPERATORS
    return False


def _function_name(node) -> str:
    name = node.child_by_field_name("name")
    if name is not None:
        return node_text(name)
    parent = node.parent
    if parent is not None and parent.type in ("variable_declarator", "public_field_definition", "pair"):
        target = parent.child_by_field_name("name") or parent.child_by_field_name("key")
        if target is not None:
            return node_text(target)
    if parent is not None and parent.type == "assignment_expression":
        left = parent.child_by_field_name("left")
        if left is not None:
            return node_text(left)
    return "<anonymous>"


class TypeScriptCalculator(ComplexityCalculator):
    """Counts decision nodes in the syntax tree; falls back to tokens when parsing fails."""

    language = Language.TYPESCRIPT

    def _parse(self, code: str):
        grammar = self.registry.grammar_for(language=self.language)
        try:
            return self.registry.parse_script(code, grammar)
        except ParseError as e:
            logger.debug("AST unavailable, counting tokens instead: %s", e)
            return None

    def cyclomatic(self, code: str) -> CyclomaticCount:
        tree = self._parse(code)
        if tree is None:
            return self.regex_cyclomatic(code)

        functions: List[FunctionComplexity] = []
        total = 1
        # (node, owning function entry or None)
        stack = [(tree.root_node, None)]
        while stack:
            node, owner = stack.pop()
            if _is_decision(node):
                total += 1
                if owner is not None:
                    owner.cyclomatic += 1
            if node.is_named and node.type in FUNCTION_TYPES:
                owner = FunctionComplexity(
                    name=_function_name(node),
                    line=node.start_point[0] + 1,
                    cyclomatic=1,
                )
                functions.append(owner)
            stack.extend((child, owner) for child in reversed(node.children))

        functions.sort(key=lambda f: f.line)
        return CyclomaticCount(total, CyclomaticMethod.AST, functions)

    def cognitive(self, code: str) -> int:
        return metrics.brace_cognitive(code, self.language)


class JavaScriptCalculator(TypeScriptCalculator):
    language = Language.JAVASCRIPT


class GenericCalculator(ComplexityCalculator):
    """Token counting with curly-brace rules for unrecognized source."""

    language = Language.UNKNOWN

    def cyclomatic(self, code: str) -> CyclomaticCount:
        return self.regex_cyclomatic(code)

    def cognitive(self, code: str) -> int:
        return metrics.brace_cognitive(code, self.language)
