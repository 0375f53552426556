"""Analyze a scanned project: module graph, patterns, stack and signature."""

from __future__ import annotations

import click

from ruleforge.commands.common import (
    analysis_options,
    check_strict,
    echo_diagnostics,
    json_mode,
    run_analysis,
)
from ruleforge.output.formatter import format_table, json_envelope, pct, section, to_json, truncate_lines


def _naming_rows(naming: dict) -> list[list[str]]:
    rows = []
    for category in sorted(naming):
        profile = naming[category]
        if not profile["total"]:
            continue
        rows.append([category, profile["dominant"] or "-", pct(profile["confidence"]), str(profile["total"])])
    return rows


@click.command()
@analysis_options
@click.pass_context
def analyze(ctx, model_file, source_root, stack_file, max_files, sample_size, min_confidence):
    """Analyze a project model (scanner JSON)."""
    result = run_analysis(ctx, model_file, source_root, stack_file, max_files, sample_size, min_confidence)
    graph, report, signature = result.graph, result.patterns, result.signature

    if json_mode(ctx):
        click.echo(to_json(json_envelope(
            "analyze",
            summary={
                "files": graph.stats.get("files_total", 0),
                "files_parsed": graph.stats.get("files_parsed", 0),
                "edges": graph.stats.get("edges", 0),
                "cycles": len(graph.cycles),
                "layers": graph.layer_count,
                "primary_pattern": report.primary_pattern,
                "diagnostics": result.diagnostic_counts(),
            },
            **result.to_dict(),
        )))
        check_strict(ctx, result.diagnostics)
        return

    s = graph.stats
    click.echo(f"Project: {signature.project_name or '(unnamed)'}")
    click.echo(
        f"Files: {s.get('files_total', 0)} ({s.get('files_parsed', 0)} parsed, "
        f"{s.get('files_skipped', 0)} skipped)  Edges: {s.get('edges', 0)}  "
        f"Cycles: {len(graph.cycles)}  Layers: {graph.layer_count}"
    )
    click.echo(f"Size: {signature.project_size}  Complexity: {signature.complexity} "
               f"({signature.complexity_score})")

    click.echo("")
    click.echo(section("Stack:", [
        f"  languages:  {', '.join(signature.languages) or '-'}",
        f"  frameworks: {', '.join(signature.frameworks) or '-'}",
        f"  testing:    {', '.join(signature.testing_frameworks) or '-'}",
        f"  build:      {', '.join(signature.build_tools) or '-'}",
    ]))

    click.echo("\nArchitecture:")
    rows = [[p.name, pct(p.confidence), "; ".join(p.evidence[:2])] for p in report.architectural_patterns]
    click.echo(format_table(["Pattern", "Conf", "Evidence"], rows, budget=10))

    click.echo("\nNaming:")
    click.echo(format_table(["Category", "Dominant", "Conf", "Names"], _naming_rows(report.naming_conventions)))

    if graph.centrality_rank:
        click.echo("")
        click.echo(section("Key modules:", truncate_lines(
            [f"  {p}  (degree {graph.degrees.get(p, 0)})" for p in graph.centrality_rank], 5,
        )))
    if graph.cycles:
        click.echo("")
        click.echo(section("Cycles:", [f"  {' -> '.join(c)}" for c in graph.cycles], budget=10))

    echo_diagnostics(result.diagnostics)
    check_strict(ctx, result.diagnostics)
