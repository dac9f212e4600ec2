"""Import dependency graphs."""

from .algorithms import UnionFind, find_clusters, find_cycles
from .builder import DependencyGraphBuilder
from .models import DependencyEdge, DependencyGraph, DependencyNode
from .report import format_graph_report, graph_statistics, mermaid_diagram

__all__ = [
    "UnionFind",
    "find_clusters",
    "find_cycles",
    "DependencyGraphBuilder",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyNode",
    "format_graph_report",
    "graph_statistics",
    "mermaid_diagram",
]
