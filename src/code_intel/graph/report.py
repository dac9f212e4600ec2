"""Markdown rendering of dependency graphs."""

import re
from collections import Counter

from code_intel.core.config import GraphConfig
from code_intel.graph.models import DependencyGraph

_NON_ID = re.compile(r"[^a-zA-Z0-9]")
TOP_N = 5


def mermaid_diagram(graph: DependencyGraph) -> str:
    lines = ["```mermaid", "graph TD"]
    for node in graph.nodes:
        label = node.file.rsplit("/", 1)[-1]
        lines.append(f'  {_NON_ID.sub("_", node.file)}["{label}"]')
    for edge in graph.edges:
        lines.append(f"  {_NON_ID.sub('_', edge.source)} --> {_NON_ID.sub('_', edge.target)}")
    lines.append("```")
    return "\n".join(lines) + "\n"


def graph_statistics(graph: DependencyGraph) -> dict:
    referenced = Counter(edge.target for edge in graph.edges)
    most_referenced = sorted(referenced.items(), key=lambda item: -item[1])[:TOP_N]
    most_dependencies = sorted(
        ((node.file, len(node.imports)) for node in graph.nodes),
        key=lambda item: -item[1],
    )[:TOP_N]
    return {
        "total_files": len(graph.nodes),
        "total_dependencies": len(graph.edges),
        "circular_dependencies": len(graph.circular_dependencies),
        "clusters": len(graph.clusters),
        "most_referenced": most_referenced,
        "most_dependencies": most_dependencies,
    }


def format_statistics(stats: dict) -> str:
    lines = [
        f"- **Total files**: {stats['total_files']}",
        f"- **Total dependencies**: {stats['total_dependencies']}",
        f"- **Circular dependencies**: {stats['circular_dependencies']}",
        f"- **Clusters**: {stats['clusters']}",
        "",
    ]
    if stats["most_referenced"]:
        lines.append("**Most referenced files**:")
        lines.extend(f"- {file}: {count} times" for file, count in stats["most_referenced"])
        lines.append("")
    if stats["most_dependencies"]:
        lines.append("**Files with most dependencies**:")
        lines.extend(f"- {file}: {count} imports" for file, count in stats["most_dependencies"])
    return "\n".join(lines) + "\n"


def format_graph_report(
    graph: DependencyGraph,
    project_path: str,
    target_file: str | None = None,
    config: GraphConfig | None = None,
) -> str:
    config = config or GraphConfig()
    out = [
        "## Dependency Graph Analysis",
        "",
        f"**Project**: {project_path}",
        f"**Files analyzed**: {len(graph.nodes)}",
        f"**Dependencies**: {len(graph.edges)}",
        "",
    ]

    if target_file and graph.target is not None:
        target = graph.target
        out.append(f"### {target_file} Dependencies")
        out.append("")
        out.append(f"**Imports** ({len(target.imports)}):")
        out.extend(f"- ← {imp}" for imp in target.imports)
        out.append("")
        out.append(f"**Exports** ({len(target.exports)}):")
        out.extend(f"- → {exp}" for exp in target.exports)
        out.append("")

    if graph.circular_dependencies:
        out.append("### ⚠️ Circular Dependencies Detected")
        out.append("")
        for cycle in graph.circular_dependencies:
            out.append(f"- {' → '.join(cycle)} → {cycle[0]}")
        out.append("")

    if graph.clusters:
        preview = config.cluster_preview_files
        out.append("### Module Clusters")
        out.append("")
        for index, cluster in enumerate(graph.clusters, start=1):
            out.append(f"**Cluster {index}** ({len(cluster)} files):")
            out.extend(f"  - {file}" for file in cluster[:preview])
            if len(cluster) > preview:
                out.append(f"  - ... and {len(cluster) - preview} more")
            out.append("")

    if len(graph.nodes) <= config.mermaid_max_nodes:
        out.append("### Dependency Diagram")
        out.append("")
        out.append(mermaid_diagram(graph))

    out.append("### Statistics")
    out.append("")
    out.append(format_statistics(graph_statistics(graph)))
    return "\n".join(out)
