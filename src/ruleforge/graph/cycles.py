"""Strongly connected components / cycle detection for the module graph."""

from __future__ import annotations

import networkx as nx


def find_cycles(G: nx.DiGraph, min_size: int = 2) -> list[list[str]]:
    """Return strongly connected components with at least *min_size* members.

    Each component's node list is sorted; components are sorted by size
    descending, then by first path, so the output does not depend on
    insertion order.
    """
    if len(G) == 0:
        return []

    sccs = [
        sorted(c)
        for c in nx.strongly_connected_components(G)
        if len(c) >= min_size
    ]
    sccs.sort(key=lambda c: (-len(c), c[0]))
    return sccs


def cycle_membership(cycles: list[list[str]]) -> dict[str, int]:
    """Map each cyclic node to the index of its cycle in *cycles*."""
    return {node: i for i, cycle in enumerate(cycles) for node in cycle}


def is_closed_cycle(G: nx.DiGraph, cycle: list[str]) -> bool:
    """True when every member can reach itself through edges inside *cycle*."""
    sub = G.subgraph(cycle)
    return all(
        any(nx.has_path(sub, succ, node) for succ in sub.successors(node))
        for node in cycle
    )
