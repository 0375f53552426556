"""Degree centrality ranking for the module graph."""

from __future__ import annotations

import networkx as nx


def degree_centrality(G: nx.DiGraph) -> dict[str, int]:
    """Return ``{node: in_degree + out_degree}`` (edge count, not weight)."""
    return {n: G.in_degree(n) + G.out_degree(n) for n in G.nodes}


def centrality_rank(G: nx.DiGraph, degrees: dict[str, int] | None = None) -> list[str]:
    """Nodes ordered by combined degree descending, ties by path."""
    if degrees is None:
        degrees = degree_centrality(G)
    return sorted(G.nodes, key=lambda n: (-degrees[n], n))
