"""Complexity metrics: cyclomatic, cognitive, Halstead and size."""

from .analyzer import ComplexityAnalyzer, format_complexity_report
from .models import ComplexityReport, MetricResult, MetricStatus, PathComplexityReport

__all__ = [
    "ComplexityAnalyzer",
    "format_complexity_report",
    "ComplexityReport",
    "MetricResult",
    "MetricStatus",
    "PathComplexityReport",
]
