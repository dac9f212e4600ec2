"""Request and result models for the engine's public operations."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from code_intel.complexity.analyzer import format_complexity_report, format_path_report
from code_intel.complexity.models import ComplexityReport, PathComplexityReport
from code_intel.core.language import Language
from code_intel.graph.models import DependencyGraph
from code_intel.indexing.models import Reference, Symbol, SymbolKind
from code_intel.source.models import Diagnostic

MetricsSelection = Literal["all", "cyclomatic", "cognitive", "halstead"]


def no_files_message(project_path: str) -> str:
    return f"No source files found in project: {project_path}"


def validation_message(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one readable line."""
    parts = []
    for err in error.errors():
        location = ".".join(str(part) for part in err.get("loc", ()))
        message = err.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "Invalid request: " + "; ".join(parts)


# ----------------------------------------------------------------------
# Requests
# ----------------------------------------------------------------------


class _ProjectRequest(BaseModel):
    project_path: str = Field(min_length=1)

    class Config:
        use_enum_values = True
        extra = "forbid"


class FindSymbolRequest(_ProjectRequest):
    symbol_name: str = Field(min_length=1)
    kind: Optional[SymbolKind] = None


class FindReferencesRequest(_ProjectRequest):
    symbol_name: str = Field(min_length=1)
    file_path: Optional[str] = None
    line: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_anchor(self):
        if self.line is not None and not self.file_path:
            raise ValueError("line requires file_path")
        return self


class DependencyGraphRequest(_ProjectRequest):
    target_file: Optional[str] = None
    max_depth: int = Field(default=3, ge=1)
    include_external: bool = False
    detect_circular: bool = True


class ComplexityRequest(BaseModel):
    """Either ``source_text`` (a snippet) or ``target_path`` (a file or directory)."""
    source_text: Optional[str] = None
    metrics: MetricsSelection = "all"
    language: Optional[Language] = None
    target_path: Optional[str] = None
    project_path: Optional[str] = None

    class Config:
        use_enum_values = True
        extra = "forbid"

    @field_validator("metrics", mode="before")
    @classmethod
    def normalize_metrics(cls, v):
        return v.lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_input(self):
        if self.source_text is None and not self.target_path:
            raise ValueError("either source_text or target_path is required")
        if self.source_text is not None and self.target_path:
            raise ValueError("source_text and target_path are mutually exclusive")
        return self


# ----------------------------------------------------------------------
# Results
# ----------------------------------------------------------------------


class EngineResult(BaseModel):
    success: bool = True
    error: Optional[str] = None
    diagnostics: List[Diagnostic] = Field(default_factory=list)

    def _error_report(self) -> str:
        return f"✗ {self.error}"


class FindSymbolResult(EngineResult):
    symbol_name: str = ""
    symbols: List[Symbol] = Field(default_factory=list)
    count: int = 0
    files_analyzed: int = 0
    summary: str = ""

    def format_report(self, max_results: int = 20) -> str:
        if not self.success:
            return self._error_report()
        if self.files_analyzed == 0:
            return self.summary
        if not self.symbols:
            return f"No symbols found matching '{self.symbol_name}'"
        lines = [f"Found {self.count} symbols:"]
        for symbol in self.symbols[:max_results]:
            lines.append(f"{symbol.name} ({symbol.kind}) - {symbol.file_path}:{symbol.line}")
        if self.count > max_results:
            lines.append(f"... and {self.count - max_results} more")
        return "\n".join(lines)


class FindReferencesResult(EngineResult):
    symbol_name: str = ""
    mode: str = ""
    references: List[Reference] = Field(default_factory=list)
    definitions: List[Reference] = Field(default_factory=list)
    usages: List[Reference] = Field(default_factory=list)
    files_analyzed: int = 0
    summary: str = ""

    def format_report(self, max_results: int = 20) -> str:
        if not self.success:
            return self._error_report()
        if self.files_analyzed == 0:
            return self.summary
        if not self.references:
            return f"No references found for '{self.symbol_name}'"

        lines = [self.summary, ""]
        grouped: Dict[str, List[Reference]] = {}
        for reference in self.references[:max_results]:
            grouped.setdefault(reference.file_path, []).append(reference)
        for file_path, refs in grouped.items():
            lines.append(f"**{file_path}**")
            for ref in refs:
                lines.append(f"- {ref.line}:{ref.column} ({ref.role}) {ref.text}")
            lines.append("")
        if len(self.references) > max_results:
            lines.append(f"... and {len(self.references) - max_results} more")
        return "\n".join(lines).rstrip() + "\n"


class DependencyGraphResult(EngineResult):
    graph: Optional[DependencyGraph] = None
    diagram: str = ""
    statistics: Dict[str, Any] = Field(default_factory=dict)
    files_analyzed: int = 0
    report: str = ""

    def format_report(self) -> str:
        if not self.success:
            return self._error_report()
        return self.report


class ComplexityResult(EngineResult):
    report: Optional[ComplexityReport] = None
    path_report: Optional[PathComplexityReport] = None

    @property
    def summary(self) -> str:
        if self.report is not None:
            return self.report.summary
        if self.path_report is not None:
            return self.path_report.summary
        return self.error or ""

    def format_report(self) -> str:
        if not self.success:
            return self._error_report()
        if self.report is not None:
            return format_complexity_report(self.report)
        if self.path_report is not None:
            return format_path_report(self.path_report)
        return ""
