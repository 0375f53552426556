"""Topological layering of the module graph.

Cycles are broken before layering: for every strongly connected component
the edges *into* its entry node (the member reached from outside the
cycle) are cut.  When several members are reached from outside, or none
is, the one with the lowest degree centrality wins, ties by path.  Cutting
repeats until the reduced graph is a DAG; layers are then longest-path
depths from the sources.
"""

from __future__ import annotations

import networkx as nx

from ruleforge.graph.cycles import cycle_membership, find_cycles


def _entry_node(H: nx.DiGraph, members: list[str], degrees: dict[str, int]) -> str:
    member_set = set(members)
    entries = [
        m for m in members
        if any(p not in member_set for p in H.predecessors(m))
    ]
    pool = entries or members
    return min(pool, key=lambda n: (degrees.get(n, 0), n))


def break_cycles(
    G: nx.DiGraph, degrees: dict[str, int]
) -> tuple[nx.DiGraph, list[tuple[str, str]]]:
    """Return ``(reduced_dag, cut_edges)``.

    *degrees* is the centrality of the original graph; it is used as the
    tie-break so the cut is stable across runs.
    """
    H = G.copy()
    cut: list[tuple[str, str]] = []
    while True:
        sccs = find_cycles(H)
        if not sccs:
            break
        for members in sccs:
            entry = _entry_node(H, members, degrees)
            member_set = set(members)
            for pred in sorted(H.predecessors(entry)):
                if pred in member_set:
                    H.remove_edge(pred, entry)
                    cut.append((pred, entry))
    return H, sorted(cut)


def longest_path_depths(H: nx.DiGraph) -> dict[str, int]:
    """Depth of every node in the DAG *H*: sources are 0, others max(pred) + 1."""
    depth: dict[str, int] = {}
    for node in nx.lexicographical_topological_sort(H):
        preds = list(H.predecessors(node))
        depth[node] = max((depth[p] + 1 for p in preds), default=0)
    return depth


def detect_layers(
    G: nx.DiGraph,
    degrees: dict[str, int],
    cycles: list[list[str]] | None = None,
) -> tuple[list[list[str]], dict[str, int], list[tuple[str, str]]]:
    """Assign layers to every node of *G*.

    Returns ``(layers, layer_of, cut_edges)``:

    * ``layers[i]`` is the sorted list of acyclic nodes at depth ``i``
      (a depth occupied only by cycle members is an empty list);
    * ``layer_of`` maps every node to its layer; members of a cycle all
      take the depth of their shallowest member;
    * ``cut_edges`` are the edges removed to make the graph acyclic.
    """
    if len(G) == 0:
        return [], {}, []

    if cycles is None:
        cycles = find_cycles(G)
    H, cut = break_cycles(G, degrees)
    depth = longest_path_depths(H)

    layer_of = dict(depth)
    for cycle in cycles:
        shallowest = min(depth[n] for n in cycle)
        for n in cycle:
            layer_of[n] = shallowest

    cyclic = cycle_membership(cycles)
    max_layer = max(layer_of.values())
    layers: list[list[str]] = [[] for _ in range(max_layer + 1)]
    for node in sorted(layer_of):
        if node not in cyclic:
            layers[layer_of[node]].append(node)
    return layers, {n: layer_of[n] for n in sorted(layer_of)}, cut


def find_violations(G: nx.DiGraph, layer_of: dict[str, int]) -> list[dict]:
    """Edges that point from a deeper layer back to a shallower one.

    Members of one cycle share a layer, so edges inside a cycle never
    count; edges between a cycle and the rest of the graph can.
    """
    violations = []
    for src, tgt in sorted(G.edges):
        s, t = layer_of.get(src), layer_of.get(tgt)
        if s is None or t is None:
            continue
        if s > t:
            violations.append({
                "source": src,
                "target": tgt,
                "source_layer": s,
                "target_layer": t,
            })
    return violations
