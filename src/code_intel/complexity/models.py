"""Result types for complexity analysis."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class MetricStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"


class CyclomaticMethod(str, Enum):
    AST = "ast"        # counted over a syntax tree
    REGEX = "regex"    # counted over keyword/operator tokens


@dataclass
class MetricResult:
    """A metric value checked against its threshold."""
    value: int
    threshold: float
    status: MetricStatus
    description: str = ""
    method: Optional[CyclomaticMethod] = None

    @classmethod
    def evaluate(
        cls,
        value: int,
        threshold: float,
        description: str = "",
        method: Optional[CyclomaticMethod] = None,
    ) -> "MetricResult":
        status = MetricStatus.PASS if value <= threshold else MetricStatus.FAIL
        return cls(value, threshold, status, description, method)

    @property
    def passed(self) -> bool:
        return self.status == MetricStatus.PASS


@dataclass
class HalsteadMetrics:
    """Software-science counts and derived estimates, stored unrounded."""
    distinct_operators: int
    distinct_operands: int
    total_operators: int
    total_operands: int
    vocabulary: int
    length: int
    calculated_length: float
    volume: float
    difficulty: float
    effort: float
    time_to_program: float
    estimated_defects: float


@dataclass
class AdditionalMetrics:
    lines_of_code: int
    comment_lines: int
    comment_ratio: float
    function_count: int
    class_count: int
    average_function_length: float


@dataclass
class FunctionComplexity:
    name: str
    line: int
    cyclomatic: int


@dataclass
class ComplexityReport:
    """Metrics for one source snippet."""
    language: str
    metrics: str = "all"
    cyclomatic_complexity: Optional[MetricResult] = None
    cognitive_complexity: Optional[MetricResult] = None
    halstead_metrics: Optional[HalsteadMetrics] = None
    additional_metrics: Optional[AdditionalMetrics] = None
    functions: List[FunctionComplexity] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    overall_score: int = 100

    @property
    def summary(self) -> str:
        """Human-readable summary."""
        parts = []
        if self.cyclomatic_complexity is not None:
            parts.append(f"Complexity: {self.cyclomatic_complexity.value}")
        parts.append(f"Score: {self.overall_score}")
        if self.issues:
            parts.append(f"Issues: {', '.join(self.issues)}")
        return "\n".join(parts)


@dataclass
class FileComplexity:
    file: str
    language: str
    complexity: int
    score: int


@dataclass
class PathComplexityReport:
    """Per-file cyclomatic complexity for a directory scan."""
    target_path: str
    threshold: int
    files: List[FileComplexity] = field(default_factory=list)

    @property
    def average_complexity(self) -> float:
        if not self.files:
            return 0.0
        return sum(f.complexity for f in self.files) / len(self.files)

    @property
    def average_score(self) -> float:
        if not self.files:
            return 0.0
        return sum(f.score for f in self.files) / len(self.files)

    @property
    def high_complexity_files(self) -> List[FileComplexity]:
        return [f for f in self.files if f.complexity > self.threshold]

    @property
    def summary(self) -> str:
        if not self.files:
            return f"No supported files found in {self.target_path}"
        text = (
            f"Files: {len(self.files)} | Avg Complexity: {round(self.average_complexity, 1)} "
            f"| Avg Score: {round(self.average_score)}/100"
        )
        high = self.high_complexity_files
        if high:
            text += f" | High complexity: {len(high)} files"
        return text
