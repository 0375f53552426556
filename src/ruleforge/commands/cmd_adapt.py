"""Adapt a directory of rules to one AI assistant platform."""

from __future__ import annotations

import click

from ruleforge.commands.common import (
    check_strict,
    echo_diagnostics,
    json_mode,
    load_model,
    read_json,
    settings,
)
from ruleforge.diagnostics import count_by_kind
from ruleforge.exit_codes import MalformedInputError
from ruleforge.output.formatter import format_table, json_envelope, to_json

_PROJECT_SCOPES = ("project", "workspace")


def _load_signature(ctx, signature_file, model_file):
    from ruleforge.signature import ProjectSignature

    if signature_file is not None and model_file is not None:
        raise click.UsageError("use either --signature or --model, not both", ctx=ctx)
    if signature_file is not None:
        data = read_json(signature_file, "signature")
        if isinstance(data, dict) and isinstance(data.get("signature"), dict):
            data = data["signature"]
        try:
            return ProjectSignature.from_dict(data), []
        except ValueError as exc:
            raise MalformedInputError("signature", str(exc)) from exc
    if model_file is not None:
        from ruleforge.pipeline import analyze_project

        analysis = analyze_project(load_model(model_file))
        return analysis.signature, analysis.diagnostics
    return None, []


@click.command()
@click.argument("rules_dir", type=click.Path(exists=True, file_okay=False))
@click.option("-p", "--platform", "platform_id", default=None,
              help="Target platform id or alias (see `ruleforge platforms`)")
@click.option("--signature", "signature_file", type=click.File("r", encoding="utf-8"),
              help="ProjectSignature JSON (from `ruleforge signature`)")
@click.option("--model", "model_file", type=click.File("r", encoding="utf-8"),
              help="Scanner model JSON; the signature is computed from it")
@click.option("--project-name", default=None, help="Project name used in memory files")
@click.option("-o", "--output", "output_dir", type=click.Path(file_okay=False),
              help="Write artifacts under this directory")
@click.option("--home", "home_dir", type=click.Path(file_okay=False),
              help="Directory that ~/ artifact paths expand to (default: your home)")
@click.option("--project-only", is_flag=True, help="Only write project and workspace artifacts")
@click.pass_context
def adapt(ctx, rules_dir, platform_id, signature_file, model_file, project_name,
          output_dir, home_dir, project_only):
    """Render the rules in RULES_DIR for a target platform."""
    from ruleforge.adapt.engine import adapt_rules
    from ruleforge.adapt.loader import load_rules
    from ruleforge.adapt.platforms import get_platform
    from ruleforge.adapt.writer import write_artifacts

    cfg = settings(ctx, platform=platform_id)
    if not cfg.get("platform"):
        raise click.UsageError("no platform given (use --platform or set it in .ruleforge.json)", ctx=ctx)
    try:
        platform = get_platform(cfg["platform"])
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--platform") from exc

    sig, analysis_diagnostics = _load_signature(ctx, signature_file, model_file)
    rules, load_diagnostics = load_rules(rules_dir)
    result = adapt_rules(rules, platform, sig, project_name=project_name)
    diagnostics = [*analysis_diagnostics, *load_diagnostics, *result.diagnostics]

    written = []
    if output_dir:
        scopes = _PROJECT_SCOPES if project_only else None
        try:
            written = write_artifacts(result.files, output_dir, home_dir, scopes=scopes)
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc

    if json_mode(ctx):
        payload = result.to_dict()
        payload.pop("platform")
        payload.pop("summary")
        payload["diagnostics"] = [d.to_dict() for d in diagnostics]
        payload["diagnostic_counts"] = count_by_kind(diagnostics)
        payload["written"] = [str(p) for p in written]
        click.echo(to_json(json_envelope(
            "adapt",
            summary={**result.summary, "skipped": result.summary["skipped"] + len(load_diagnostics)},
            **payload,
        )))
        check_strict(ctx, diagnostics)
        return

    summary = result.summary
    click.echo(
        f"Platform: {platform.name} ({platform.id})  Rules: {len(rules)}  "
        f"Files: {summary['total_files']}  Characters: {summary['total_characters']}"
    )
    rows = [[f.path, f.type, f.scope, str(len(f.content)),
             "yes" if f.metadata.get("truncated") else ""] for f in result.files]
    click.echo(format_table(["Path", "Type", "Scope", "Chars", "Truncated"], rows))
    click.echo(
        f"\ntruncated={summary['truncated']}  dropped={summary['dropped']}  "
        f"skipped={summary['skipped'] + len(load_diagnostics)}"
    )
    if output_dir:
        click.echo(f"Wrote {len(written)} file(s) under {output_dir}")
    echo_diagnostics(diagnostics)
    check_strict(ctx, diagnostics)
