"""Builds the import dependency graph of a project."""

import logging
import posixpath
from typing import Optional

from code_intel.core.config import GraphConfig
from code_intel.graph.algorithms import find_clusters, find_cycles
from code_intel.graph.models import DependencyEdge, DependencyGraph, DependencyNode
from code_intel.indexing.extractors import get_extractor_for_language
from code_intel.indexing.imports import resolve_unit_imports
from code_intel.source.cache import SourceProject
from code_intel.source.paths import directory_depth
from code_intel.utils.error_handling import ErrorContext

logger = logging.getLogger(__name__)


class DependencyGraphBuilder:
    """Derives file-level import edges, cycles and clusters."""

    def __init__(self, project: SourceProject, config: Optional[GraphConfig] = None) -> None:
        self.project = project
        self.config = config or GraphConfig()

    def build(
        self,
        target_file: Optional[str] = None,
        max_depth: Optional[int] = None,
        include_external: bool = False,
        detect_circular: bool = True,
    ) -> DependencyGraph:
        if max_depth is None:
            max_depth = self.config.default_max_depth
        if target_file:
            target_file = self.project.relative_path(target_file)
        graph = DependencyGraph()

        for rel, unit in self.project.units.items():
            if target_file and not self._is_near_target(rel, target_file, max_depth):
                continue

            node = DependencyNode(file=rel)
            with ErrorContext(
                f"collecting dependencies of {rel}",
                raise_on_error=False,
                logger_instance=logger,
                log_level=logging.WARNING,
            ):
                self._collect(unit, node, graph, include_external)
            graph.nodes.append(node)

        if detect_circular:
            graph.circular_dependencies = find_cycles(graph.adjacency())
        graph.clusters = find_clusters((e.source, e.target) for e in graph.edges)

        if target_file:
            graph.target = next((n for n in graph.nodes if target_file in n.file), None)

        logger.debug(
            "Graph for %s: %d nodes, %d edges, %d cycles",
            self.project.root, len(graph.nodes), len(graph.edges), len(graph.circular_dependencies),
        )
        return graph

    def _collect(self, unit, node: DependencyNode, graph: DependencyGraph, include_external: bool) -> None:
        extractor = get_extractor_for_language(unit.language)
        if extractor is None:
            return

        for resolved in resolve_unit_imports(self.project, unit, self.config.default_extension):
            if resolved.target is not None:
                target, external = resolved.target, False
            elif resolved.external is not None and include_external:
                target, external = resolved.external, True
            else:
                continue
            # a file importing itself contributes no edge
            if target == node.file or target in node.imports:
                continue
            node.imports.append(target)
            graph.edges.append(DependencyEdge(source=node.file, target=target, external=external))

        node.exports = extractor.extract_exports(unit)

    @staticmethod
    def _is_near_target(rel: str, target_file: str, max_depth: int) -> bool:
        if target_file in rel:
            return True
        target_dir = posixpath.dirname(target_file.replace("\\", "/"))
        depth = directory_depth(rel, target_dir)
        return depth is not None and depth < max_depth
