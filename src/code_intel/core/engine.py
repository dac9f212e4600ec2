"""Engine facade: validates requests, runs analyses, never raises."""

import logging
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from code_intel.complexity.analyzer import ComplexityAnalyzer
from code_intel.core.config import EngineConfig
from code_intel.core.requests import (
    ComplexityRequest,
    ComplexityResult,
    DependencyGraphRequest,
    DependencyGraphResult,
    FindReferencesRequest,
    FindReferencesResult,
    FindSymbolRequest,
    FindSymbolResult,
    no_files_message,
    validation_message,
)
from code_intel.graph.builder import DependencyGraphBuilder
from code_intel.graph.report import format_graph_report, graph_statistics, mermaid_diagram
from code_intel.indexing.finder import find_symbol, summarize_symbols
from code_intel.indexing.references import ReferenceResolver
from code_intel.source.cache import SourceCache
from code_intel.utils.error_handling import format_exception
from code_intel.utils.rich_logging import get_context_logger

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)


def _coerce(model_cls: Type[RequestT], request: Any, kwargs: dict) -> RequestT:
    """Accept a model instance, a dict, or keyword arguments (which override)."""
    if request is None:
        data: Any = dict(kwargs)
    elif isinstance(request, model_cls) and not kwargs:
        return request
    elif isinstance(request, BaseModel):
        data = {**request.model_dump(), **kwargs}
    elif isinstance(request, dict):
        data = {**request, **kwargs}
    else:
        data = request
    return model_cls.model_validate(data)


class CodeIntelligenceEngine:
    """Symbol search, reference lookup, dependency graphs and complexity.

    Every operation accepts a request model, a dict, or keyword arguments,
    and returns a result with ``success``/``error`` instead of raising.
    Projects are loaded once and served from the shared ``SourceCache``.
    """

    def __init__(self, config: Optional[EngineConfig] = None, cache: Optional[SourceCache] = None):
        self.config = config or EngineConfig()
        self.cache = cache or SourceCache(scan=self.config.scan)
        self.complexity = ComplexityAnalyzer(
            thresholds=self.config.thresholds,
            config=self.config.complexity,
            registry=self.cache.registry,
        )
        self.logger = get_context_logger(__name__)

    # ------------------------------------------------------------------
    # Symbols
    # ------------------------------------------------------------------

    def find_symbol(self, request: Any = None, **kwargs) -> FindSymbolResult:
        try:
            req = _coerce(FindSymbolRequest, request, kwargs)
        except ValidationError as e:
            return FindSymbolResult(success=False, error=validation_message(e))

        self.logger.set_context(project=req.project_path, operation="find_symbol")
        try:
            project = self.cache.get_or_create(req.project_path)
            if project.file_count == 0:
                return FindSymbolResult(
                    symbol_name=req.symbol_name,
                    summary=no_files_message(req.project_path),
                    diagnostics=project.diagnostics,
                )

            symbols = find_symbol(project, req.symbol_name, req.kind)
            self.logger.info(f"Found {len(symbols)} symbols matching '{req.symbol_name}'")
            return FindSymbolResult(
                symbol_name=req.symbol_name,
                symbols=symbols,
                count=len(symbols),
                files_analyzed=project.file_count,
                summary=summarize_symbols(symbols),
                diagnostics=project.diagnostics,
            )
        except Exception as e:
            self.logger.exception(f"Symbol search failed: {e}")
            return FindSymbolResult(success=False, error=f"Symbol search error: {format_exception(e)}")
        finally:
            self.logger.clear_context()

    def find_references(self, request: Any = None, **kwargs) -> FindReferencesResult:
        try:
            req = _coerce(FindReferencesRequest, request, kwargs)
        except ValidationError as e:
            return FindReferencesResult(success=False, error=validation_message(e))

        self.logger.set_context(project=req.project_path, operation="find_references")
        try:
            project = self.cache.get_or_create(req.project_path)
            if project.file_count == 0:
                return FindReferencesResult(
                    symbol_name=req.symbol_name,
                    summary=no_files_message(req.project_path),
                    diagnostics=project.diagnostics,
                )

            resolver = ReferenceResolver(project, self.config.graph.default_extension)
            search = resolver.find(req.symbol_name, req.file_path, req.line)
            definitions, usages = search.definitions, search.usages
            summary = (
                f"Found {len(search.references)} references to '{req.symbol_name}' "
                f"({len(definitions)} definitions, {len(usages)} usages, {search.mode} mode)"
            )
            self.logger.info(summary)
            return FindReferencesResult(
                symbol_name=req.symbol_name,
                mode=search.mode,
                references=search.references,
                definitions=definitions,
                usages=usages,
                files_analyzed=project.file_count,
                summary=summary,
                diagnostics=project.diagnostics,
            )
        except Exception as e:
            self.logger.exception(f"Reference search failed: {e}")
            return FindReferencesResult(success=False, error=f"Reference search error: {format_exception(e)}")
        finally:
            self.logger.clear_context()

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def analyze_dependency_graph(self, request: Any = None, **kwargs) -> DependencyGraphResult:
        try:
            req = _coerce(DependencyGraphRequest, request, kwargs)
        except ValidationError as e:
            return DependencyGraphResult(success=False, error=validation_message(e))

        self.logger.set_context(project=req.project_path, operation="dependency_graph")
        try:
            project = self.cache.get_or_create(req.project_path)
            if project.file_count == 0:
                return DependencyGraphResult(
                    report=f"✗ {no_files_message(req.project_path)}",
                    diagnostics=project.diagnostics,
                )

            builder = DependencyGraphBuilder(project, self.config.graph)
            graph = builder.build(
                target_file=req.target_file,
                max_depth=req.max_depth,
                include_external=req.include_external,
                detect_circular=req.detect_circular,
            )
            if graph.circular_dependencies:
                self.logger.warning(f"{len(graph.circular_dependencies)} circular dependencies detected")
            return DependencyGraphResult(
                graph=graph,
                diagram=mermaid_diagram(graph),
                statistics=graph_statistics(graph),
                files_analyzed=len(graph.nodes),
                report=format_graph_report(graph, req.project_path, req.target_file, self.config.graph),
                diagnostics=project.diagnostics,
            )
        except Exception as e:
            self.logger.exception(f"Dependency analysis failed: {e}")
            return DependencyGraphResult(success=False, error=f"Dependency analysis error: {format_exception(e)}")
        finally:
            self.logger.clear_context()

    # ------------------------------------------------------------------
    # Complexity
    # ------------------------------------------------------------------

    def analyze_complexity(self, request: Any = None, **kwargs) -> ComplexityResult:
        try:
            req = _coerce(ComplexityRequest, request, kwargs)
        except ValidationError as e:
            return ComplexityResult(success=False, error=validation_message(e))

        self.logger.set_context(project=req.project_path, operation="complexity")
        try:
            if req.target_path:
                path_report = self.complexity.analyze_path(req.target_path, req.project_path)
                self.logger.info(path_report.summary)
                return ComplexityResult(path_report=path_report)

            report = self.complexity.analyze(req.source_text, req.metrics, req.language)
            self.logger.debug(f"Complexity score {report.overall_score} for {report.language} snippet")
            return ComplexityResult(report=report)
        except Exception as e:
            self.logger.exception(f"Complexity analysis failed: {e}")
            return ComplexityResult(success=False, error=f"Complexity analysis error: {format_exception(e)}")
        finally:
            self.logger.clear_context()

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def cache_stats(self) -> dict:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Source cache cleared")
