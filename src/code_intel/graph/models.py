"""Data models for the import dependency graph."""

from typing import Optional

from pydantic import BaseModel, Field


class DependencyNode(BaseModel):
    file: str
    imports: list[str] = Field(default_factory=list)
    exports: list[str] = Field(default_factory=list)


class DependencyEdge(BaseModel):
    source: str
    target: str
    relation: str = "import"
    external: bool = False


class DependencyGraph(BaseModel):
    nodes: list[DependencyNode] = Field(default_factory=list)
    edges: list[DependencyEdge] = Field(default_factory=list)
    circular_dependencies: list[list[str]] = Field(default_factory=list)
    clusters: list[list[str]] = Field(default_factory=list)
    target: Optional[DependencyNode] = None

    def adjacency(self) -> dict[str, list[str]]:
        """Source file -> targets, keyed in node order."""
        adjacency: dict[str, list[str]] = {}
        for edge in self.edges:
            adjacency.setdefault(edge.source, []).append(edge.target)
        return adjacency
