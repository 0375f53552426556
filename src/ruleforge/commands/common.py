"""Shared helpers for ruleforge commands: inputs, settings, logging."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from ruleforge.config import resolve_settings
from ruleforge.exit_codes import MalformedInputError, PartialResultError

log = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """stderr handler at DEBUG with ``--verbose``, WARNING otherwise."""
    root = logging.getLogger("ruleforge")
    level = logging.DEBUG if verbose else logging.WARNING
    root.setLevel(level)
    # replace rather than reuse: sys.stderr may have been swapped since
    for h in [h for h in root.handlers if getattr(h, "_ruleforge", False)]:
        root.removeHandler(h)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    handler.setLevel(level)
    handler._ruleforge = True
    root.addHandler(handler)


def read_json(stream, stage: str):
    """Parse JSON from an open click.File; bad JSON is malformed input."""
    try:
        return json.load(stream)
    except json.JSONDecodeError as exc:
        raise MalformedInputError(stage, f"{getattr(stream, 'name', 'input')}: invalid JSON: {exc}") from exc


def load_model(stream, source_root: str | None = None):
    """Read a scanner model, extracting symbols from *source_root* when given."""
    from ruleforge.model import coerce_model

    model = coerce_model(read_json(stream, "model"), "model")
    if source_root:
        from ruleforge.extract import attach_symbols

        root = Path(source_root)
        model = attach_symbols(model, lambda p: (root / p).read_text(encoding="utf-8"))
    return model


def settings(ctx, **cli_values) -> dict:
    """Config file + environment + CLI flags, as one dict."""
    try:
        return resolve_settings(**cli_values)
    except ValueError as exc:
        raise click.UsageError(str(exc), ctx=ctx) from exc


def json_mode(ctx) -> bool:
    return bool(ctx.obj.get("json")) if ctx.obj else False


def check_strict(ctx, diagnostics) -> None:
    """Raise PartialResultError under ``--strict`` when there were diagnostics."""
    strict = bool(ctx.obj.get("strict")) if ctx.obj else False
    if strict and diagnostics:
        raise PartialResultError(f"Completed with {len(diagnostics)} diagnostic(s).")


def echo_diagnostics(diagnostics, limit: int = 10) -> None:
    if not diagnostics:
        return
    click.echo(f"\nDiagnostics ({len(diagnostics)}):")
    for d in diagnostics[:limit]:
        click.echo(f"  [{d.kind}] {d.message}")
    if len(diagnostics) > limit:
        click.echo(f"  (+{len(diagnostics) - limit} more)")


def analysis_options(f):
    """Options shared by ``analyze`` and ``signature``."""
    decorators = [
        click.argument("model_file", type=click.File("r", encoding="utf-8")),
        click.option("--source-root", type=click.Path(exists=True, file_okay=False),
                     help="Extract symbols from files under this directory when the model has none"),
        click.option("--stack", "stack_file", type=click.File("r", encoding="utf-8"),
                     help="Declared tech stack JSON merged ahead of the inferred one"),
        click.option("--max-files", type=int, default=None, help="Parse at most N files (default 500)"),
        click.option("--sample-size", type=int, default=None, help="Files sampled for code idioms (default 50)"),
        click.option("--min-confidence", type=float, default=None,
                     help="Architecture pattern threshold (default 0.3)"),
    ]
    for decorator in reversed(decorators):
        f = decorator(f)
    return f


def run_analysis(ctx, model_file, source_root, stack_file, max_files, sample_size, min_confidence):
    """Resolve settings and run the full analysis pipeline."""
    from ruleforge.graph.builder import DEFAULT_MAX_FILES, GraphOptions
    from ruleforge.graph.resolver import DEFAULT_ALIASES
    from ruleforge.patterns.architecture import DEFAULT_MIN_CONFIDENCE
    from ruleforge.patterns.detector import DEFAULT_SAMPLE_SIZE, DetectOptions
    from ruleforge.pipeline import analyze_project

    cfg = settings(
        ctx,
        max_files_to_parse=max_files,
        sample_size=sample_size,
        min_confidence=min_confidence,
    )
    aliases = dict(DEFAULT_ALIASES)
    aliases.update(cfg.get("aliases") or {})
    verbose = bool(ctx.obj.get("verbose")) if ctx.obj else False
    try:
        graph_options = GraphOptions(
            max_files_to_parse=cfg.get("max_files_to_parse", DEFAULT_MAX_FILES), verbose=verbose, aliases=aliases,
        )
        detect_options = DetectOptions(
            sample_size=cfg.get("sample_size", DEFAULT_SAMPLE_SIZE),
            min_confidence=cfg.get("min_confidence", DEFAULT_MIN_CONFIDENCE),
            aliases=aliases,
        )
    except ValueError as exc:
        raise click.UsageError(str(exc), ctx=ctx) from exc

    declared = None
    if stack_file is not None:
        declared = read_json(stack_file, "stack")
        if not isinstance(declared, dict):
            raise MalformedInputError("stack", "declared stack must be a JSON object")

    model = load_model(model_file, source_root)
    return analyze_project(
        model,
        declared_stack=declared,
        graph_options=graph_options,
        detect_options=detect_options,
    )
