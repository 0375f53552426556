"""ProjectSignature: the compact summary used to rank candidate rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ruleforge.stack import TechStack

_MAX_LIBRARIES = 10
_KEY_MODULES = 5

# (upper bound exclusive, label); the last label has no bound
_SIZE_BUCKETS = ((50, "small"), (200, "medium"), (1000, "large"))
_COMPLEXITY_BUCKETS = ((10, "simple"), (25, "moderate"), (50, "complex"))


def categorize_project_size(file_count: int) -> str:
    for bound, label in _SIZE_BUCKETS:
        if file_count < bound:
            return label
    return "enterprise"


def complexity_score(languages: int, frameworks: int, libraries: int) -> float:
    """``languages*2 + frameworks*3 + min(libraries*0.5, 20)``."""
    return languages * 2 + frameworks * 3 + min(libraries * 0.5, 20)


def categorize_complexity(score: float) -> str:
    for bound, label in _COMPLEXITY_BUCKETS:
        if score < bound:
            return label
    return "highly-complex"


def _strings(value: Any, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ValueError(f"{key} must be a list of strings, got {type(value).__name__}")
    if not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must be a list of strings")
    return tuple(value)


def _text(value: Any, key: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _count(value: Any, key: str, real: bool = False):
    if value is None:
        return 0
    types = (int, float) if real else (int,)
    if isinstance(value, bool) or not isinstance(value, types) or value < 0:
        raise ValueError(f"{key} must be a non-negative number, got {value!r}")
    return value


@dataclass(frozen=True)
class ProjectSignature:
    languages: tuple[str, ...] = ()
    frameworks: tuple[str, ...] = ()
    libraries: tuple[str, ...] = ()
    testing_frameworks: tuple[str, ...] = ()
    build_tools: tuple[str, ...] = ()
    patterns: tuple[str, ...] = ()
    naming: dict[str, str] = field(default_factory=dict, hash=False)
    project_size: str = "small"
    complexity: str = "simple"
    complexity_score: float = 0.0
    file_count: int = 0
    key_modules: tuple[str, ...] = ()
    cycle_count: int = 0
    layer_count: int = 0
    project_name: str = ""

    @property
    def primary_language(self) -> str | None:
        return self.languages[0] if self.languages else None

    @property
    def primary_pattern(self) -> str | None:
        return self.patterns[0] if self.patterns else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_name": self.project_name,
            "languages": list(self.languages),
            "frameworks": list(self.frameworks),
            "libraries": list(self.libraries),
            "testing_frameworks": list(self.testing_frameworks),
            "build_tools": list(self.build_tools),
            "patterns": list(self.patterns),
            "naming": dict(self.naming),
            "project_size": self.project_size,
            "complexity": self.complexity,
            "complexity_score": self.complexity_score,
            "file_count": self.file_count,
            "key_modules": list(self.key_modules),
            "cycle_count": self.cycle_count,
            "layer_count": self.layer_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProjectSignature":
        """Rebuild a signature from :meth:`to_dict` output (camelCase accepted).

        Raises ValueError when a field has the wrong type.
        """
        if not isinstance(data, Mapping):
            raise ValueError("signature must be an object")

        def _get(name, camel=None, default=None):
            if name in data:
                return data[name]
            if camel and camel in data:
                return data[camel]
            return default

        naming = _get("naming", default={}) or {}
        if not isinstance(naming, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in naming.items()
        ):
            raise ValueError("naming must map categories to style names")

        return cls(
            languages=_strings(_get("languages"), "languages"),
            frameworks=_strings(_get("frameworks"), "frameworks"),
            libraries=_strings(_get("libraries"), "libraries"),
            testing_frameworks=_strings(_get("testing_frameworks", "testingFrameworks"), "testing_frameworks"),
            build_tools=_strings(_get("build_tools", "buildTools"), "build_tools"),
            patterns=_strings(_get("patterns"), "patterns"),
            naming=dict(naming),
            project_size=_text(_get("project_size", "projectSize"), "project_size", "small"),
            complexity=_text(_get("complexity"), "complexity", "simple"),
            complexity_score=float(
                _count(_get("complexity_score", "complexityScore"), "complexity_score", real=True)
            ),
            file_count=_count(_get("file_count", "fileCount"), "file_count"),
            key_modules=_strings(_get("key_modules", "keyModules"), "key_modules"),
            cycle_count=_count(_get("cycle_count", "cycleCount"), "cycle_count"),
            layer_count=_count(_get("layer_count", "layerCount"), "layer_count"),
            project_name=_text(_get("project_name", "projectName"), "project_name", ""),
        )


def compose_signature(graph, report, tech_stack: TechStack,
                      file_count: int | None = None,
                      project_name: str = "") -> ProjectSignature:
    """Combine graph metrics, detected patterns and the tech stack.

    Pure: nothing here reads the project again.  *file_count* defaults to
    the number of files the graph builder saw.
    """
    if file_count is None:
        file_count = graph.stats.get("files_total", 0) if graph is not None else 0

    score = complexity_score(
        len(tech_stack.languages), len(tech_stack.frameworks), len(tech_stack.libraries),
    )

    patterns: tuple[str, ...] = ()
    naming: dict[str, str] = {}
    if report is not None:
        patterns = tuple(p.name for p in report.architectural_patterns)
        naming = report.dominant_naming()

    key_modules: tuple[str, ...] = ()
    cycle_count = layer_count = 0
    if graph is not None:
        key_modules = tuple(graph.centrality_rank[:_KEY_MODULES])
        cycle_count = len(graph.cycles)
        layer_count = graph.layer_count

    return ProjectSignature(
        languages=tuple(tech_stack.languages),
        frameworks=tuple(tech_stack.frameworks),
        libraries=tuple(tech_stack.libraries[:_MAX_LIBRARIES]),
        testing_frameworks=tuple(tech_stack.testing_frameworks),
        build_tools=tuple(tech_stack.build_tools),
        patterns=patterns,
        naming=naming,
        project_size=categorize_project_size(file_count),
        complexity=categorize_complexity(score),
        complexity_score=round(score, 2),
        file_count=file_count,
        key_modules=key_modules,
        cycle_count=cycle_count,
        layer_count=layer_count,
        project_name=project_name,
    )
