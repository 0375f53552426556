"""Build the module dependency graph from a ProjectModel."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Mapping

import networkx as nx

from ruleforge.diagnostics import Diagnostic, SkippedFileWarning
from ruleforge.extract.registry import SOURCE_EXTENSIONS
from ruleforge.graph.centrality import centrality_rank, degree_centrality
from ruleforge.graph.cycles import find_cycles
from ruleforge.graph.layers import detect_layers, find_violations
from ruleforge.graph.resolver import DEFAULT_ALIASES, ImportResolver
from ruleforge.model import coerce_model

log = logging.getLogger(__name__)

DEFAULT_MAX_FILES = 500


@dataclass
class GraphOptions:
    max_files_to_parse: int = DEFAULT_MAX_FILES
    verbose: bool = False
    aliases: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIASES))

    def __post_init__(self):
        if (not isinstance(self.max_files_to_parse, int)
                or isinstance(self.max_files_to_parse, bool)
                or self.max_files_to_parse < 1):
            raise ValueError(
                f"max_files_to_parse must be a positive integer, got {self.max_files_to_parse!r}"
            )


@dataclass
class ModuleGraph:
    """Directed file-level import graph plus derived metrics.

    ``graph`` is the networkx view (edge attribute ``weight`` = number of
    import references); every other field is a plain, sorted snapshot so
    the whole object serializes deterministically via :meth:`to_dict`.
    """

    graph: nx.DiGraph
    nodes: list[str] = field(default_factory=list)
    edges: list[tuple[str, str, int]] = field(default_factory=list)
    inverse: dict[str, list[str]] = field(default_factory=dict)
    degrees: dict[str, int] = field(default_factory=dict)
    centrality_rank: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    layers: list[list[str]] = field(default_factory=list)
    layer_of: dict[str, int] = field(default_factory=dict)
    broken_edges: list[tuple[str, str]] = field(default_factory=list)
    layer_violations: list[dict] = field(default_factory=list)
    external_imports: dict[str, list[str]] = field(default_factory=dict)
    unresolved_imports: dict[str, list[str]] = field(default_factory=dict)
    skipped_files: list[dict] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)

    @property
    def acyclic_nodes(self) -> list[str]:
        cyclic = {n for c in self.cycles for n in c}
        return [n for n in self.nodes if n not in cyclic]

    @property
    def layer_count(self) -> int:
        return len(set(self.layer_of.values()))

    def external_packages(self) -> list[str]:
        """Every external package root imported anywhere, sorted."""
        return sorted({p for pkgs in self.external_imports.values() for p in pkgs})

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": list(self.nodes),
            "edges": [{"source": s, "target": t, "weight": w} for s, t, w in self.edges],
            "inverse": {k: list(v) for k, v in self.inverse.items()},
            "centrality_rank": list(self.centrality_rank),
            "degrees": dict(self.degrees),
            "cycles": [list(c) for c in self.cycles],
            "layers": [list(layer) for layer in self.layers],
            "layer_of": dict(self.layer_of),
            "broken_edges": [{"source": s, "target": t} for s, t in self.broken_edges],
            "layer_violations": list(self.layer_violations),
            "external_imports": {k: list(v) for k, v in self.external_imports.items()},
            "unresolved_imports": {k: list(v) for k, v in self.unresolved_imports.items()},
            "skipped_files": list(self.skipped_files),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "stats": dict(self.stats),
        }


def _coerce_options(options: GraphOptions | Mapping[str, Any] | None) -> GraphOptions:
    if options is None:
        return GraphOptions()
    if isinstance(options, GraphOptions):
        return options
    aliases = dict(DEFAULT_ALIASES)
    aliases.update(options.get("aliases") or {})
    return GraphOptions(
        max_files_to_parse=options.get("max_files_to_parse", DEFAULT_MAX_FILES),
        verbose=bool(options.get("verbose", False)),
        aliases=aliases,
    )


def build_module_graph(model, options: GraphOptions | Mapping[str, Any] | None = None) -> ModuleGraph:
    """Resolve every parsed file's imports and build the ModuleGraph.

    Files are parsed in path order up to ``max_files_to_parse``; the rest
    are reported as skipped (reason ``over-limit``) but can still be import
    targets.  Files without extracted symbols contribute no edges.  Only a
    model that is not an object at all raises (:class:`MalformedInputError`).
    """
    model = coerce_model(model, "graph")
    opts = _coerce_options(options)
    diagnostics: list[Diagnostic] = []
    skipped: list[dict] = []

    files = model.sorted_files()
    parsed = files[: opts.max_files_to_parse]
    over_limit = files[opts.max_files_to_parse:]

    resolver = ImportResolver((f.path for f in files), opts.aliases)
    weights: dict[tuple[str, str], int] = defaultdict(int)
    externals: dict[str, set[str]] = defaultdict(set)
    unresolved: dict[str, set[str]] = defaultdict(set)

    for file in parsed:
        symbols = file.extracted_symbols
        if symbols is None:
            if file.extension in SOURCE_EXTENSIONS:
                log.debug("no extracted symbols for %s, skipping", file.path)
                skipped.append({"path": file.path, "reason": "no-symbols"})
                diagnostics.append(SkippedFileWarning(
                    f"no extracted symbols for {file.path}", path=file.path, reason="no-symbols",
                ))
            continue

        for ref in symbols.imports:
            res = resolver.resolve(file.path, ref)
            if res.kind == "internal":
                if res.target == file.path:
                    continue
                weights[(file.path, res.target)] += 1
                if opts.verbose:
                    log.info("%s -> %s (%s)", file.path, res.target, ref)
            elif res.kind == "external":
                externals[file.path].add(res.target)
            else:
                unresolved[file.path].add(ref)
                if opts.verbose:
                    log.info("%s: unresolved import %r", file.path, ref)

    if over_limit:
        for file in over_limit:
            skipped.append({"path": file.path, "reason": "over-limit"})
        log.warning(
            "%d files beyond max_files_to_parse=%d were not parsed",
            len(over_limit), opts.max_files_to_parse,
        )
        diagnostics.append(SkippedFileWarning(
            f"{len(over_limit)} files beyond max_files_to_parse="
            f"{opts.max_files_to_parse} were not parsed",
            path=over_limit[0].path, reason="over-limit",
        ))

    G = nx.DiGraph()
    edge_list = sorted((s, t, w) for (s, t), w in weights.items())
    G.add_nodes_from(sorted({n for s, t, _ in edge_list for n in (s, t)}))
    G.add_edges_from((s, t, {"weight": w}) for s, t, w in edge_list)

    degrees = degree_centrality(G)
    rank = centrality_rank(G, degrees)
    cycles = find_cycles(G)
    layers, layer_of, cut = detect_layers(G, degrees, cycles)
    violations = find_violations(G, layer_of)

    inverse = {
        n: sorted(G.predecessors(n)) for n in sorted(G.nodes) if G.in_degree(n)
    }

    if cycles:
        log.debug("found %d import cycles", len(cycles))

    stats = {
        "files_total": len(files),
        "files_parsed": len(parsed),
        "files_skipped": len(skipped),
        "nodes": G.number_of_nodes(),
        "edges": G.number_of_edges(),
        "import_references": sum(weights.values()),
        "external_packages": len({p for pkgs in externals.values() for p in pkgs}),
        "unresolved_imports": sum(len(v) for v in unresolved.values()),
        "cycles": len(cycles),
        "layers": len(set(layer_of.values())),
    }

    return ModuleGraph(
        graph=G,
        nodes=sorted(G.nodes),
        edges=edge_list,
        inverse=inverse,
        degrees={n: degrees[n] for n in sorted(degrees)},
        centrality_rank=rank,
        cycles=cycles,
        layers=layers,
        layer_of=layer_of,
        broken_edges=cut,
        layer_violations=violations,
        external_imports={k: sorted(v) for k, v in sorted(externals.items())},
        unresolved_imports={k: sorted(v) for k, v in sorted(unresolved.items())},
        skipped_files=sorted(skipped, key=lambda s: s["path"]),
        diagnostics=diagnostics,
        stats=stats,
    )
