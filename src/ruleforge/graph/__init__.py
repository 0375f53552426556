"""Module dependency graph: import resolution, cycles, centrality, layers."""

from ruleforge.graph.builder import GraphOptions, ModuleGraph, build_module_graph
from ruleforge.graph.resolver import DEFAULT_ALIASES, ImportResolver

__all__ = [
    "GraphOptions",
    "ModuleGraph",
    "build_module_graph",
    "ImportResolver",
    "DEFAULT_ALIASES",
]
