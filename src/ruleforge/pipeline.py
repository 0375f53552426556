"""One-call analysis: graph, patterns, stack and signature."""

from __future__ import annotations

import copy
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from ruleforge.cache import AnalysisCache, fingerprint
from ruleforge.diagnostics import Diagnostic, count_by_kind
from ruleforge.graph.builder import GraphOptions, ModuleGraph, build_module_graph
from ruleforge.model import coerce_model
from ruleforge.patterns.detector import DetectOptions, PatternReport, detect_patterns
from ruleforge.signature import ProjectSignature, compose_signature
from ruleforge.stack import TechStack, infer_tech_stack, merge_tech_stack

log = logging.getLogger(__name__)


@dataclass
class ProjectAnalysis:
    graph: ModuleGraph
    patterns: PatternReport
    tech_stack: TechStack
    signature: ProjectSignature
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def diagnostic_counts(self) -> dict[str, int]:
        return count_by_kind(self.diagnostics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature": self.signature.to_dict(),
            "tech_stack": self.tech_stack.to_dict(),
            "graph": self.graph.to_dict(),
            "patterns": self.patterns.to_dict(),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "diagnostic_counts": self.diagnostic_counts(),
        }


def analyze_project(
    model,
    *,
    declared_stack: TechStack | Mapping[str, Any] | None = None,
    graph_options: GraphOptions | None = None,
    detect_options: DetectOptions | None = None,
    cache: AnalysisCache | None = None,
) -> ProjectAnalysis:
    """Build the module graph, detect patterns, infer the stack, compose the signature.

    Raises :class:`MalformedInputError` only when *model* is not a project
    model at all.  With a *cache*, an identical model and option set
    returns a copy of the previously computed analysis; mutating a
    returned analysis never changes what the cache holds.
    """
    model = coerce_model(model, "model")
    graph_options = graph_options or GraphOptions()
    detect_options = detect_options or DetectOptions()

    key = None
    if cache is not None:
        declared = declared_stack.to_dict() if isinstance(declared_stack, TechStack) else declared_stack
        key = fingerprint(model.to_dict(), {
            "graph": asdict(graph_options),
            "detect": asdict(detect_options),
            "declared_stack": declared or {},
        })
        hit = cache.get(key)
        if hit is not None:
            log.debug("analysis cache hit %s", key[:12])
            return copy.deepcopy(hit)

    graph = build_module_graph(model, graph_options)
    report = detect_patterns(model, graph, detect_options)
    stack = merge_tech_stack(declared_stack, infer_tech_stack(model, graph))
    signature = compose_signature(
        graph, report, stack, file_count=model.file_count, project_name=model.root_name,
    )

    diagnostics = [*model.diagnostics, *graph.diagnostics, *report.diagnostics]
    analysis = ProjectAnalysis(graph, report, stack, signature, diagnostics)
    if cache is not None:
        cache.put(key, copy.deepcopy(analysis))
    return analysis
