"""Print the compact project signature used to select and adapt rules."""

from __future__ import annotations

import click

from ruleforge.commands.common import analysis_options, check_strict, json_mode, run_analysis
from ruleforge.output.formatter import json_envelope, to_json


@click.command()
@analysis_options
@click.option("--raw", is_flag=True, help="Print the bare signature object (no envelope)")
@click.pass_context
def signature(ctx, model_file, source_root, stack_file, max_files, sample_size, min_confidence, raw):
    """Compute the ProjectSignature of a project model."""
    result = run_analysis(ctx, model_file, source_root, stack_file, max_files, sample_size, min_confidence)
    sig = result.signature

    if raw:
        click.echo(to_json(sig.to_dict()))
    elif json_mode(ctx):
        click.echo(to_json(json_envelope(
            "signature",
            summary={
                "primary_language": sig.primary_language,
                "primary_pattern": sig.primary_pattern,
                "project_size": sig.project_size,
                "complexity": sig.complexity,
            },
            signature=sig.to_dict(),
        )))
    else:
        for key, value in sig.to_dict().items():
            if isinstance(value, (list, tuple)):
                value = ", ".join(str(v) for v in value) or "-"
            elif isinstance(value, dict):
                value = ", ".join(f"{k}={v}" for k, v in sorted(value.items())) or "-"
            click.echo(f"{key:20s} {value}")
    check_strict(ctx, result.diagnostics)
