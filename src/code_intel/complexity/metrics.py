"""Text-level metric algorithms shared by every language calculator."""

import math
import re
from collections import Counter
from typing import List, Tuple

from code_intel.complexity.models import AdditionalMetrics, HalsteadMetrics
from code_intel.core.language import Language

# Strings and comments in one alternation so "//" inside a string is not a comment
_CURLY_LEXEMES = re.compile(
    r'(?P<string>"(?:\\.|[^"\\\n])*"|\'(?:\\.|[^\'\\\n])*\'|`(?:\\.|[^`\\])*`)'
    r'|(?P<block>/\*.*?\*/)'
    r'|(?P<line>//[^\n]*)',
    re.DOTALL,
)
_PYTHON_LEXEMES = re.compile(
    r'(?P<string>"""(?:\\.|[^\\])*?"""|\'\'\'(?:\\.|[^\\])*?\'\'\''
    r'|"(?:\\.|[^"\\\n])*"|\'(?:\\.|[^\'\\\n])*\')'
    r'|(?P<line>#[^\n]*)',
    re.DOTALL,
)

HALSTEAD_OPERATOR = re.compile(r"[+\-*/=<>!&|%^~?:]")
HALSTEAD_OPERAND = re.compile(r"\b[a-zA-Z_]\w*\b")

_SCRIPT_DECISIONS = [
    re.compile(r"\b(?:if|for|while|case|catch)\b"),
    re.compile(r"&&"),
    re.compile(r"\|\|"),
    # ternary only: not ?. ?? ?: or the second half of ??
    re.compile(r"(?<!\?)\?(?![.?:=])"),
]
_PYTHON_DECISIONS = [
    re.compile(r"\b(?:if|elif|for|while|except|and|or)\b"),
    re.compile(r"^\s*case\b", re.MULTILINE),
]
_DART_DECISIONS = [
    re.compile(r"\b(?:if|for|while|case|catch)\b"),
    re.compile(r"&&"),
    re.compile(r"\|\|"),
    re.compile(r"\?\?(?!=)"),
]

_BRACE_CONTROL = re.compile(r"\b(?:if|for|while|catch|switch)\s*\(")
_PYTHON_CONTROL = re.compile(r"^(?:if|elif|for|while|except|async\s+for|async\s+with\s+)\b")

_FUNCTION_PATTERNS = {
    Language.PYTHON: re.compile(r"^\s*(?:async\s+)?def\s+\w+", re.MULTILINE),
    Language.DART: re.compile(
        r"^\s*(?:[\w<>?,\[\]]+\s+)?(?!(?:if|for|while|switch|catch)\b)\w+\s*\([^;{]*\)\s*(?:async\s*)?(?:\{|=>)",
        re.MULTILINE,
    ),
}
_SCRIPT_FUNCTION_PATTERN = re.compile(r"function\s+\w+|\w+\s*=\s*\(")
_CLASS_PATTERN = re.compile(r"\bclass\s+\w+")


def _lexemes_for(language: Language) -> re.Pattern:
    return _PYTHON_LEXEMES if language == Language.PYTHON else _CURLY_LEXEMES


def clean_source(code: str, language: Language, strip_strings: bool = True) -> str:
    """Blank out comments (and optionally string contents), keeping line breaks."""
    pattern = _lexemes_for(language)

    def replace(match: re.Match) -> str:
        text = match.group(0)
        if match.group("string") is not None:
            if not strip_strings:
                return text
            quote = text[:3] if text[:3] in ('"""', "'''") else text[0]
            return quote + "\n" * text.count("\n") + quote
        return "\n" * text.count("\n")

    return pattern.sub(replace, code)


def count_comments(code: str, language: Language) -> int:
    pattern = _lexemes_for(language)
    return sum(1 for m in pattern.finditer(code) if m.group("string") is None)


def regex_cyclomatic(code: str, language: Language) -> int:
    """1 + decision keyword/operator tokens outside comments and strings."""
    if language == Language.PYTHON:
        patterns = _PYTHON_DECISIONS
    elif language == Language.DART:
        patterns = _DART_DECISIONS
    else:
        patterns = _SCRIPT_DECISIONS
    cleaned = clean_source(code, language)
    return 1 + sum(len(p.findall(cleaned)) for p in patterns)


def brace_cognitive(code: str, language: Language) -> int:
    """Per line: control structures add 1 + nesting; braces move nesting."""
    complexity = 0
    nesting = 0
    for line in clean_source(code, language).split("\n"):
        if _BRACE_CONTROL.search(line):
            complexity += 1 + nesting
        nesting = max(0, nesting + line.count("{") - line.count("}"))
    return complexity


def indent_cognitive(code: str) -> int:
    """Python variant: nesting is the depth of the open indentation blocks."""
    complexity = 0
    blocks: List[int] = []
    for line in clean_source(code, Language.PYTHON).split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        indent = len(line) - len(line.lstrip())
        while blocks and blocks[-1] >= indent:
            blocks.pop()
        if _PYTHON_CONTROL.match(stripped):
            complexity += 1 + len(blocks)
        if stripped.endswith(":"):
            blocks.append(indent)
    return complexity


def halstead_tokens(code: str, language: Language) -> Tuple[List[str], List[str]]:
    cleaned = clean_source(code, language, strip_strings=False)
    return HALSTEAD_OPERATOR.findall(cleaned), HALSTEAD_OPERAND.findall(cleaned)


def halstead(code: str, language: Language) -> HalsteadMetrics:
    operators, operands = halstead_tokens(code, language)
    n1 = len(Counter(operators))
    n2 = len(Counter(operands))
    total_operators = len(operators)
    total_operands = len(operands)

    vocabulary = n1 + n2
    length = total_operators + total_operands
    calculated_length = (n1 * math.log2(n1) if n1 else 0.0) + (n2 * math.log2(n2) if n2 else 0.0)
    volume = length * math.log2(vocabulary) if vocabulary > 0 else 0.0
    difficulty = (n1 / 2) * (total_operands / n2) if n2 > 0 else 0.0
    effort = difficulty * volume

    return HalsteadMetrics(
        distinct_operators=n1,
        distinct_operands=n2,
        total_operators=total_operators,
        total_operands=total_operands,
        vocabulary=vocabulary,
        length=length,
        calculated_length=calculated_length,
        volume=volume,
        difficulty=difficulty,
        effort=effort,
        time_to_program=effort / 18,
        estimated_defects=volume / 3000,
    )


def additional_metrics(code: str, language: Language) -> AdditionalMetrics:
    lines_of_code = sum(1 for line in code.split("\n") if line.strip())
    comments = count_comments(code, language)
    cleaned = clean_source(code, language)
    function_pattern = _FUNCTION_PATTERNS.get(language, _SCRIPT_FUNCTION_PATTERN)
    functions = len(function_pattern.findall(cleaned))
    classes = len(_CLASS_PATTERN.findall(cleaned))
    return AdditionalMetrics(
        lines_of_code=lines_of_code,
        comment_lines=comments,
        comment_ratio=comments / lines_of_code if lines_of_code else 0.0,
        function_count=functions,
        class_count=classes,
        average_function_length=lines_of_code / functions if functions else 0.0,
    )
