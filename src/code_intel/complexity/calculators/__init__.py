"""Per-language complexity calculators."""

from typing import Optional, Union

from code_intel.complexity.calculators.base import ComplexityCalculator, CyclomaticCount
from code_intel.complexity.calculators.dart_calculator import DartCalculator
from code_intel.complexity.calculators.python_calculator import PythonCalculator
from code_intel.complexity.calculators.typescript_calculator import (
    GenericCalculator,
    JavaScriptCalculator,
    TypeScriptCalculator,
)
from code_intel.core.language import Language
from code_intel.source.parsers import ParserRegistry

_CALCULATOR_MAP = {
    Language.TYPESCRIPT: TypeScriptCalculator,
    Language.JAVASCRIPT: JavaScriptCalculator,
    Language.PYTHON: PythonCalculator,
    Language.DART: DartCalculator,
}


def get_calculator_for_language(
    language: Union[Language, str],
    registry: Optional[ParserRegistry] = None,
) -> ComplexityCalculator:
    """Return the calculator for ``language``; unknown source gets token counting."""
    try:
        language = Language(language)
    except ValueError:
        language = Language.UNKNOWN
    cls = _CALCULATOR_MAP.get(language, GenericCalculator)
    return cls(registry)


__all__ = [
    "ComplexityCalculator",
    "CyclomaticCount",
    "DartCalculator",
    "GenericCalculator",
    "JavaScriptCalculator",
    "PythonCalculator",
    "TypeScriptCalculator",
    "get_calculator_for_language",
]
