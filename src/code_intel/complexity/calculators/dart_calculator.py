"""Dart complexity by token counting, plus Flutter-oriented checks."""

import re
from typing import List, Tuple

from code_intel.complexity import metrics
from code_intel.complexity.calculators.base import ComplexityCalculator, CyclomaticCount
from code_intel.core.language import Language

MAX_SET_STATE = 5
MAX_CHILD_NESTING = 5
MIN_CONST_RATIO = 0.3
MIN_CONSTRUCTORS_FOR_CONST_CHECK = 10
MAX_BUILD_LINES = 50

_SET_STATE = re.compile(r"\bsetState\s*\(")
_CHILD_WIDGET = re.compile(r"child:\s*\w+\(")
_CONSTRUCTOR_CALL = re.compile(r"\b(?:const\s+)?[A-Z]\w*\(")
_CONST_CONSTRUCTOR = re.compile(r"\bconst\s+[A-Z]\w*\(")
_BUILDER_LIST = re.compile(r"\b(?:ListView|GridView)\.builder\s*\(")
_NULL_SAFETY = re.compile(r"\w\?\s|\w!\.|\blate\b|\brequired\b")
_BUILD_METHOD = re.compile(r"Widget\s+build\s*\(\s*BuildContext\s+\w+\s*\)\s*\{")


def _block_length(code: str, open_brace: int) -> int:
    """Lines spanned from the brace at ``open_brace`` to its match."""
    depth = 0
    for index in range(open_brace, len(code)):
        char = code[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return code.count("\n", open_brace, index) + 1
    return code.count("\n", open_brace) + 1


class DartCalculator(ComplexityCalculator):
    language = Language.DART

    def cyclomatic(self, code: str) -> CyclomaticCount:
        return self.regex_cyclomatic(code)

    def cognitive(self, code: str) -> int:
        return metrics.brace_cognitive(code, self.language)

    def quality_checks(self, code: str) -> Tuple[List[str], List[str]]:
        issues: List[str] = []
        recommendations: List[str] = []
        cleaned = metrics.clean_source(code, self.language)

        if len(_SET_STATE.findall(cleaned)) > MAX_SET_STATE:
            issues.append("Too many setState calls - consider state management solution")
            recommendations.append("Use Provider, Riverpod, or Bloc for complex state")

        if len(_CHILD_WIDGET.findall(cleaned)) > MAX_CHILD_NESTING:
            issues.append("Deep widget nesting detected")
            recommendations.append("Extract nested widgets into separate widget classes")

        constructors = len(_CONSTRUCTOR_CALL.findall(cleaned))
        if constructors > MIN_CONSTRUCTORS_FOR_CONST_CHECK:
            const_ratio = len(_CONST_CONSTRUCTOR.findall(cleaned)) / constructors
            if const_ratio < MIN_CONST_RATIO:
                issues.append("Low usage of const constructors")
                recommendations.append("Mark immutable widgets const to avoid unnecessary rebuilds")

        if _BUILDER_LIST.search(cleaned) and "key:" not in cleaned:
            issues.append("List builder without keys")
            recommendations.append("Give list items a Key so Flutter can track them across rebuilds")

        if not _NULL_SAFETY.search(cleaned):
            recommendations.append("Adopt sound null safety with nullable types and the late/required modifiers")

        for match in _BUILD_METHOD.finditer(cleaned):
            if _block_length(cleaned, match.end() - 1) > MAX_BUILD_LINES:
                issues.append("Build method is too long")
                recommendations.append("Split large build methods into smaller widgets")
                break

        return issues, recommendations
