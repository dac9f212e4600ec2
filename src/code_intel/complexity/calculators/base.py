"""Base class for per-language complexity calculators."""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from code_intel.complexity import metrics
from code_intel.complexity.models import (
    AdditionalMetrics,
    CyclomaticMethod,
    FunctionComplexity,
    HalsteadMetrics,
)
from code_intel.core.language import Language
from code_intel.source.parsers import ParserRegistry


class CyclomaticCount:
    """Cyclomatic value plus how it was obtained."""

    def __init__(
        self,
        value: int,
        method: CyclomaticMethod,
        functions: Optional[List[FunctionComplexity]] = None,
    ):
        self.value = value
        self.method = method
        self.functions = functions or []


class ComplexityCalculator(ABC):
    """Computes the metric set for one language.

    Subclasses decide how cyclomatic and cognitive complexity are counted;
    Halstead and size metrics are shared text algorithms.
    """

    language: Language = Language.UNKNOWN

    def __init__(self, registry: Optional[ParserRegistry] = None):
        self.registry = registry or ParserRegistry()

    @abstractmethod
    def cyclomatic(self, code: str) -> CyclomaticCount:
        """Return 1 + the number of decision points in ``code``."""

    @abstractmethod
    def cognitive(self, code: str) -> int:
        """Return the nesting-weighted control-flow count."""

    def regex_cyclomatic(self, code: str) -> CyclomaticCount:
        return CyclomaticCount(metrics.regex_cyclomatic(code, self.language), CyclomaticMethod.REGEX)

    def halstead(self, code: str) -> HalsteadMetrics:
        return metrics.halstead(code, self.language)

    def additional(self, code: str) -> AdditionalMetrics:
        return metrics.additional_metrics(code, self.language)

    def quality_checks(self, code: str) -> Tuple[List[str], List[str]]:
        """Language-specific (issues, recommendations); none by default."""
        return [], []
