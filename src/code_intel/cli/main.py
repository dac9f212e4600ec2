"""Command line interface for the code intelligence engine."""

import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.config import CONFIG_PATH, load_config
from ..core.engine import CodeIntelligenceEngine
from ..core.language import detect_language_from_path
from ..core.requests import EngineResult
from ..indexing.models import SymbolKind
from ..utils.rich_logging import setup_logging

console = Console()

EXIT_FAILURE = 1
EXIT_INVALID_REQUEST = 2


def _finish(ctx, result: EngineResult, as_json: bool) -> bool:
    """Print failures and JSON output; return True when the caller should render text."""
    if as_json:
        click.echo(result.model_dump_json(indent=2))
    elif not result.success:
        console.print(f"[red]✗ {escape(result.error or '')}[/]", highlight=False)

    if not result.success:
        invalid = (result.error or "").startswith("Invalid request")
        ctx.exit(EXIT_INVALID_REQUEST if invalid else EXIT_FAILURE)
    return not as_json


def _print_diagnostics(result: EngineResult) -> None:
    for diagnostic in result.diagnostics:
        console.print(
            f"[yellow]⚠ {diagnostic.file_path}: {diagnostic.kind} ({diagnostic.message})[/]",
            highlight=False,
        )


@click.group()
@click.option("--config", "-c", "config_path", default=str(CONFIG_PATH), help="Config file (YAML)")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def cli(ctx, config_path, log_level):
    """Code Intelligence - symbols, references, dependencies and complexity."""
    ctx.ensure_object(dict)
    config = load_config(Path(config_path))
    setup_logging(log_level or config.log_level, stream=sys.stderr)
    ctx.obj["engine"] = CodeIntelligenceEngine(config)


@cli.command()
@click.argument("name")
@click.option("--project", "-p", default=".", help="Project root")
@click.option("--kind", "-k", type=click.Choice([k.value for k in SymbolKind]), help="Only this symbol kind")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def symbol(ctx, name, project, kind, as_json):
    """Find declarations whose name contains NAME."""
    engine: CodeIntelligenceEngine = ctx.obj["engine"]
    result = engine.find_symbol(symbol_name=name, project_path=project, kind=kind)
    if not _finish(ctx, result, as_json):
        return

    _print_diagnostics(result)
    if not result.symbols:
        console.print(result.format_report(), markup=False, highlight=False)
        return

    max_results = engine.config.report.max_results
    table = Table(title=result.summary)
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Location")
    table.add_column("Preview", overflow="fold")
    for sym in result.symbols[:max_results]:
        table.add_row(sym.name, sym.kind, f"{sym.file_path}:{sym.line}", sym.preview)
    console.print(table)
    if result.count > max_results:
        console.print(f"[dim]... and {result.count - max_results} more[/]")


@cli.command()
@click.argument("name")
@click.option("--project", "-p", default=".", help="Project root")
@click.option("--file", "-f", "file_path", help="File containing the occurrence to resolve")
@click.option("--line", "-l", type=int, help="Line of the occurrence to resolve (1-based)")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def references(ctx, name, project, file_path, line, as_json):
    """Find definitions and usages of NAME."""
    engine: CodeIntelligenceEngine = ctx.obj["engine"]
    result = engine.find_references(
        symbol_name=name, project_path=project, file_path=file_path, line=line,
    )
    if not _finish(ctx, result, as_json):
        return

    _print_diagnostics(result)
    if not result.references:
        console.print(result.format_report(), markup=False, highlight=False)
        return

    table = Table(title=result.summary)
    table.add_column("Location")
    table.add_column("Role")
    table.add_column("Text", overflow="fold")
    for ref in result.references[: engine.config.report.max_results]:
        style = "bold" if ref.role == "definition" else ""
        table.add_row(f"{ref.file_path}:{ref.line}:{ref.column}", ref.role, ref.text, style=style)
    console.print(table)


@cli.command()
@click.option("--project", "-p", default=".", help="Project root")
@click.option("--target", "-t", "target_file", help="Focus on files near this one")
@click.option("--max-depth", "-d", default=3, show_default=True, help="Directory depth around the target")
@click.option("--include-external", is_flag=True, help="Add edges to external packages")
@click.option("--no-circular", is_flag=True, help="Skip cycle detection")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def deps(ctx, project, target_file, max_depth, include_external, no_circular, as_json):
    """Analyze the import dependency graph of a project."""
    engine: CodeIntelligenceEngine = ctx.obj["engine"]
    result = engine.analyze_dependency_graph(
        project_path=project,
        target_file=target_file,
        max_depth=max_depth,
        include_external=include_external,
        detect_circular=not no_circular,
    )
    if not _finish(ctx, result, as_json):
        return

    _print_diagnostics(result)
    console.print(result.format_report(), markup=False, highlight=False)


@cli.command()
@click.option("--code", help="Source text to analyze")
@click.option("--file", "-f", "source_file", type=click.Path(exists=True, dir_okay=False),
              help="Analyze the contents of one file")
@click.option("--path", "target_path", help="Scan a file or directory (per-file cyclomatic)")
@click.option("--project", "-p", "project_path", help="Resolve --path relative to this root")
@click.option("--metrics", "-m", default="all",
              type=click.Choice(["all", "cyclomatic", "cognitive", "halstead"]), show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def complexity(ctx, code, source_file, target_path, project_path, metrics, as_json):
    """Compute complexity metrics for a snippet, a file or a directory."""
    engine: CodeIntelligenceEngine = ctx.obj["engine"]
    language = None
    if source_file:
        code = Path(source_file).read_text(encoding="utf-8", errors="replace")
        detected = detect_language_from_path(source_file)
        language = detected.value if detected else None

    result = engine.analyze_complexity(
        source_text=code,
        target_path=target_path,
        project_path=project_path,
        metrics=metrics,
        language=language,
    )
    if not _finish(ctx, result, as_json):
        return

    report = result.report
    if report is not None and report.cyclomatic_complexity is not None:
        color = "green" if report.overall_score >= 80 else "yellow" if report.overall_score >= 50 else "red"
        console.print(f"[bold {color}]Score: {report.overall_score}/100[/]")
    console.print(result.format_report(), markup=False, highlight=False)


@cli.command("cache-stats")
@click.option("--project", "-p", "projects", multiple=True, help="Load these projects first")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def cache_stats(ctx, projects, as_json):
    """Show which projects the source cache holds."""
    engine: CodeIntelligenceEngine = ctx.obj["engine"]
    for project in projects:
        count = engine.cache.get_or_create(project).file_count
        if not as_json:
            console.print(f"[dim]Loaded {escape(project)}: {count} files[/]")

    stats = engine.cache_stats()
    if as_json:
        click.echo(json.dumps(stats, indent=2))
        return

    table = Table(title=f"Cached projects: {stats['cached_projects']}")
    table.add_column("Project")
    table.add_column("Files", justify="right")
    table.add_column("Loaded")
    for entry in stats["projects"]:
        table.add_row(entry["path"], str(entry["files"]), "✓" if entry["loaded"] else "")
    console.print(table)


if __name__ == "__main__":
    cli()
