"""Pattern detection entry point: naming, architecture, idioms, consistency."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from ruleforge.diagnostics import Diagnostic, SkippedFileWarning
from ruleforge.exit_codes import MalformedInputError
from ruleforge.graph.resolver import DEFAULT_ALIASES, ImportResolver
from ruleforge.model import ProjectModel, coerce_model
from ruleforge.patterns.architecture import (
    DEFAULT_MIN_CONFIDENCE,
    ArchitecturalPatternScore,
    detect_architecture,
    pattern_registry,
)
from ruleforge.patterns.code import detect_code_patterns
from ruleforge.patterns.consistency import consistency_metrics
from ruleforge.patterns.naming import detect_naming_conventions

log = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 50


@dataclass
class DetectOptions:
    sample_size: int = DEFAULT_SAMPLE_SIZE
    min_confidence: float = DEFAULT_MIN_CONFIDENCE
    aliases: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIASES))

    def __post_init__(self):
        if (not isinstance(self.sample_size, int) or isinstance(self.sample_size, bool)
                or self.sample_size < 0):
            raise ValueError(f"sample_size must be a non-negative integer, got {self.sample_size!r}")
        if not 0.0 <= float(self.min_confidence) <= 1.0:
            raise ValueError(f"min_confidence must be within [0, 1], got {self.min_confidence!r}")


@dataclass
class PatternReport:
    naming_conventions: dict[str, dict] = field(default_factory=dict)
    architectural_patterns: list[ArchitecturalPatternScore] = field(default_factory=list)
    code_patterns: dict[str, Any] = field(default_factory=dict)
    consistency_metrics: dict[str, Any] = field(default_factory=dict)
    naming_outliers: dict[str, list[dict]] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def primary_pattern(self) -> str | None:
        if not self.architectural_patterns:
            return None
        return self.architectural_patterns[0].name

    def dominant_naming(self) -> dict[str, str]:
        """``{category: dominant}`` for categories that have one."""
        return {
            category: profile["dominant"]
            for category, profile in self.naming_conventions.items()
            if profile.get("dominant")
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "naming_conventions": self.naming_conventions,
            "architectural_patterns": [p.to_dict() for p in self.architectural_patterns],
            "code_patterns": self.code_patterns,
            "consistency_metrics": self.consistency_metrics,
            "naming_outliers": self.naming_outliers,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def _coerce_options(options: DetectOptions | Mapping[str, Any] | None) -> DetectOptions:
    if options is None:
        return DetectOptions()
    if isinstance(options, DetectOptions):
        return options
    aliases = dict(DEFAULT_ALIASES)
    aliases.update(options.get("aliases") or {})
    return DetectOptions(
        sample_size=options.get("sample_size", DEFAULT_SAMPLE_SIZE),
        min_confidence=options.get("min_confidence", DEFAULT_MIN_CONFIDENCE),
        aliases=aliases,
    )


def detect_patterns(model, graph=None,
                    options: DetectOptions | Mapping[str, Any] | None = None) -> PatternReport:
    """Run every detector over *model*.

    Never raises for bad input: a model that is not an object yields an
    empty report carrying one diagnostic.  *graph* (a ModuleGraph) is
    optional and only sharpens the Layered pattern and external imports.
    """
    opts = _coerce_options(options)
    try:
        model = coerce_model(model, "patterns")
    except MalformedInputError as exc:
        log.warning("pattern detection skipped: %s", exc.message)
        model = ProjectModel()
        report = _empty_report(model)
        report.diagnostics.append(SkippedFileWarning(
            "project model is malformed; pattern detection skipped",
            reason=exc.detail,
        ))
        return report

    from ruleforge.plugins import get_plugin_patterns

    naming = detect_naming_conventions(model)
    patterns, arch_diagnostics = detect_architecture(
        model, graph, opts.min_confidence, pattern_registry(get_plugin_patterns()),
    )
    sample = model.sorted_files()[: opts.sample_size]
    resolver = ImportResolver(model.file_paths(), opts.aliases)

    return PatternReport(
        naming_conventions=naming.profiles,
        architectural_patterns=patterns,
        code_patterns=detect_code_patterns(sample),
        consistency_metrics=consistency_metrics(model, naming, resolver),
        naming_outliers=naming.outliers,
        diagnostics=list(arch_diagnostics),
    )


def _empty_report(model: ProjectModel) -> PatternReport:
    naming = detect_naming_conventions(model)
    return PatternReport(
        naming_conventions=naming.profiles,
        architectural_patterns=[],
        code_patterns=detect_code_patterns([]),
        consistency_metrics=consistency_metrics(model, naming, ImportResolver(())),
        naming_outliers={},
    )
