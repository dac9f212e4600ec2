"""Complexity analysis of snippets and source trees."""

import logging
import os
from pathlib import Path
from typing import Optional

from code_intel.complexity.calculators import get_calculator_for_language
from code_intel.complexity.models import (
    ComplexityReport,
    FileComplexity,
    MetricResult,
    PathComplexityReport,
)
from code_intel.core.config import ComplexityConfig, ThresholdConfig
from code_intel.core.language import Language, detect_language, detect_language_from_path
from code_intel.source.parsers import ParserRegistry
from code_intel.utils.error_handling import ErrorContext

logger = logging.getLogger(__name__)

METRIC_CHOICES = ("all", "cyclomatic", "cognitive", "halstead")

CYCLOMATIC_PENALTY = 20
COGNITIVE_PENALTY = 25
HALSTEAD_PENALTY = 15
FILE_SCORE_STEP = 5


def file_score(complexity: int, threshold: int) -> int:
    """100 up to the threshold, then minus 5 per point above it."""
    if complexity <= threshold:
        return 100
    return max(0, 100 - (complexity - threshold) * FILE_SCORE_STEP)


class ComplexityAnalyzer:
    """Scores source text with the calculator for its language."""

    def __init__(
        self,
        thresholds: Optional[ThresholdConfig] = None,
        config: Optional[ComplexityConfig] = None,
        registry: Optional[ParserRegistry] = None,
    ):
        self.thresholds = thresholds or ThresholdConfig()
        self.config = config or ComplexityConfig()
        self.registry = registry or ParserRegistry()

    def analyze(
        self,
        source: str,
        metrics: str = "all",
        language: Optional[Language] = None,
    ) -> ComplexityReport:
        if metrics not in METRIC_CHOICES:
            raise ValueError(f"metrics must be one of {', '.join(METRIC_CHOICES)}, got '{metrics}'")

        if language is None:
            language = detect_language(source)
        calculator = get_calculator_for_language(language, self.registry)
        report = ComplexityReport(language=Language(language).value, metrics=metrics)
        score = 100

        if metrics in ("all", "cyclomatic"):
            count = calculator.cyclomatic(source)
            report.cyclomatic_complexity = MetricResult.evaluate(
                count.value,
                self.thresholds.max_cyclomatic,
                "Number of linearly independent paths through the code",
                method=count.method,
            )
            report.functions = count.functions
            if not report.cyclomatic_complexity.passed:
                score -= CYCLOMATIC_PENALTY
                report.issues.append("High cyclomatic complexity detected")
                report.recommendations.append(
                    f"Extract helper functions to reduce branching "
                    f"(cyclomatic {count.value} > {self.thresholds.max_cyclomatic})"
                )

        if metrics in ("all", "cognitive"):
            value = calculator.cognitive(source)
            report.cognitive_complexity = MetricResult.evaluate(
                value,
                self.thresholds.max_cognitive,
                "Control flow weighted by nesting depth",
            )
            if not report.cognitive_complexity.passed:
                score -= COGNITIVE_PENALTY
                report.issues.append("High cognitive complexity detected")
                report.recommendations.append("Reduce nesting with early returns and guard clauses")

        if metrics in ("all", "halstead"):
            report.halstead_metrics = calculator.halstead(source)
            if report.halstead_metrics.difficulty > self.thresholds.max_halstead_difficulty:
                score -= HALSTEAD_PENALTY
                report.issues.append("High Halstead difficulty detected")
                report.recommendations.append(
                    "Simplify expressions and reuse named values to lower operator/operand density"
                )

        if metrics == "all":
            report.additional_metrics = calculator.additional(source)
            issues, recommendations = calculator.quality_checks(source)
            report.issues.extend(issues)
            report.recommendations.extend(recommendations)

        report.overall_score = max(0, score)
        return report

    def analyze_path(self, target_path: str, project_path: Optional[str] = None) -> PathComplexityReport:
        """Cyclomatic complexity for up to ``max_path_files`` files under a path."""
        base = Path(project_path) / target_path if project_path else Path(target_path)
        threshold = self.thresholds.max_cyclomatic
        report = PathComplexityReport(target_path=target_path, threshold=threshold)

        for path in self._collect_files(base):
            rel = path.name if base.is_file() else path.relative_to(base).as_posix()
            with ErrorContext(
                f"measuring complexity of {rel}",
                raise_on_error=False,
                logger_instance=logger,
                log_level=logging.WARNING,
            ):
                language = detect_language_from_path(path) or Language.UNKNOWN
                text = path.read_text(encoding="utf-8", errors="replace")
                count = get_calculator_for_language(language, self.registry).cyclomatic(text)
                report.files.append(FileComplexity(
                    file=rel,
                    language=language.value,
                    complexity=count.value,
                    score=file_score(count.value, threshold),
                ))
        return report

    def _collect_files(self, base: Path) -> list:
        if base.is_file():
            return [base] if detect_language_from_path(base) else []
        if not base.is_dir():
            logger.warning("Complexity target does not exist: %s", base)
            return []

        limit = self.config.max_path_files
        skip = set(self.config.skip_dirs)
        found = []
        for dirpath, dirnames, filenames in os.walk(base):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in skip)
            for filename in sorted(filenames):
                if filename.startswith("."):
                    continue
                path = Path(dirpath) / filename
                if detect_language_from_path(path) is None:
                    continue
                found.append(path)
                if len(found) >= limit:
                    return found
        return found


def format_complexity_report(report: ComplexityReport) -> str:
    """Render a snippet report as markdown."""
    lines = [
        "## Complexity Analysis",
        "",
        f"**Language:** {Language(report.language).display_name}",
        f"**Score:** {report.overall_score}/100",
        "",
        "### Metrics",
        "",
    ]
    cyclomatic = report.cyclomatic_complexity
    if cyclomatic is not None:
        method = cyclomatic.method.value if cyclomatic.method else "n/a"
        lines.append(
            f"- **Cyclomatic:** {cyclomatic.value} "
            f"(threshold {cyclomatic.threshold}, {cyclomatic.status.value}, {method})"
        )
    cognitive = report.cognitive_complexity
    if cognitive is not None:
        lines.append(
            f"- **Cognitive:** {cognitive.value} "
            f"(threshold {cognitive.threshold}, {cognitive.status.value})"
        )
    halstead = report.halstead_metrics
    if halstead is not None:
        lines.append(
            f"- **Halstead:** volume {halstead.volume:.2f}, difficulty {halstead.difficulty:.2f}, "
            f"effort {halstead.effort:.2f}, time {halstead.time_to_program:.2f}s, "
            f"estimated bugs {halstead.estimated_defects:.3f}"
        )
    extra = report.additional_metrics
    if extra is not None:
        lines.append(
            f"- **Size:** {extra.lines_of_code} lines, {extra.comment_lines} comments "
            f"({extra.comment_ratio:.0%}), {extra.function_count} functions, "
            f"{extra.class_count} classes, avg function length {round(extra.average_function_length)}"
        )
    lines.append("")

    if report.functions:
        lines.append("### Functions")
        lines.append("")
        for func in report.functions:
            lines.append(f"- `{func.name}` (line {func.line}): {func.cyclomatic}")
        lines.append("")

    if report.issues:
        lines.append("### Issues")
        lines.append("")
        lines.extend(f"- {issue}" for issue in report.issues)
        lines.append("")

    if report.recommendations:
        lines.append("### Recommendations")
        lines.append("")
        lines.extend(f"- {rec}" for rec in report.recommendations)
        lines.append("")

    return "\n".join(lines)


def format_path_report(report: PathComplexityReport) -> str:
    lines = ["## Complexity Analysis", "", report.summary]
    if report.files:
        lines.append("")
        for entry in report.files:
            marker = " ⚠️" if entry.complexity > report.threshold else ""
            lines.append(f"- {entry.file}: complexity {entry.complexity}, score {entry.score}/100{marker}")
    return "\n".join(lines) + "\n"
