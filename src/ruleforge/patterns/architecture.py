"""Architectural-pattern detection from directory/file signals.

Each pattern is a fixed list of signals; its confidence is the fraction of
signals the project matches.  Patterns are evaluated in declaration order
and that order is the tie-break when two patterns score the same.
"""

from __future__ import annotations

import logging
import posixpath
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ruleforge.diagnostics import Diagnostic, UnresolvedPatternWarning
from ruleforge.graph.resolver import package_root
from ruleforge.model import ProjectModel, derive_directories

log = logging.getLogger(__name__)

DEFAULT_MIN_CONFIDENCE = 0.3

MANIFEST_FILES = frozenset({
    "package.json", "pyproject.toml", "setup.py", "requirements.txt",
    "go.mod", "cargo.toml", "pom.xml", "build.gradle", "build.gradle.kts",
    "composer.json", "gemfile", "mix.exs", "pubspec.yaml", "dockerfile",
})

_WORKSPACE_FILES = frozenset({
    "pnpm-workspace.yaml", "lerna.json", "nx.json", "turbo.json",
    "rush.json", "go.work",
})

_SERVERLESS_FILES = frozenset({
    "serverless.yml", "serverless.yaml", "serverless.ts", "template.yaml",
    "netlify.toml", "vercel.json", "host.json",
})

_STATE_LIBRARIES = frozenset({
    "redux", "@reduxjs/toolkit", "react-redux", "vuex", "pinia", "zustand",
    "mobx", "flux", "@ngrx/store", "recoil", "jotai",
})

_EVENT_LIBRARIES = frozenset({
    "kafkajs", "amqplib", "eventemitter3", "bull", "bullmq", "rxjs",
    "celery", "pika", "kombu", "aiokafka", "confluent_kafka", "nats",
    "@nestjs/microservices", "socket.io",
})

_COMPONENT_EXTENSIONS = (".jsx", ".tsx", ".vue", ".svelte")
_PASCAL_STEM = re.compile(r'^[A-Z][A-Za-z0-9]+$')


# ---------------------------------------------------------------------------
# Project layout facts
# ---------------------------------------------------------------------------

@dataclass
class Layout:
    """Precomputed directory/file facts the signals test against."""

    dir_names: set[str] = field(default_factory=set)
    top_dirs: set[str] = field(default_factory=set)
    file_names: set[str] = field(default_factory=set)
    paths: list[str] = field(default_factory=list)
    manifests_by_dir: dict[str, set[str]] = field(default_factory=dict)
    packages: set[str] = field(default_factory=set)
    layer_count: int = 0
    has_cycles: bool = False
    has_graph: bool = False

    @classmethod
    def from_model(cls, model: ProjectModel, graph=None) -> "Layout":
        paths = model.file_paths()
        dirs = list(model.directories) or derive_directories(paths)
        layout = cls(paths=paths)
        for d in dirs:
            name = d.name.lower()
            layout.dir_names.add(name)
            if d.depth == 0:
                layout.top_dirs.add(name)
        for path in paths:
            name = posixpath.basename(path).lower()
            layout.file_names.add(name)
            if name in MANIFEST_FILES:
                layout.manifests_by_dir.setdefault(posixpath.dirname(path), set()).add(name)

        if graph is not None:
            layout.packages = set(graph.external_packages())
            layout.layer_count = graph.layer_count
            layout.has_cycles = bool(graph.cycles)
            layout.has_graph = graph.stats.get("nodes", 0) > 0
        else:
            for file in model.files:
                if file.extracted_symbols is None:
                    continue
                for ref in file.extracted_symbols.imports:
                    if ref.startswith((".", "/", "@/", "~/")):
                        continue
                    layout.packages.add(package_root(ref))
        return layout

    def has_dir(self, *names: str) -> bool:
        return any(n in self.dir_names for n in names)

    def has_file(self, *names: str) -> bool:
        return any(n in self.file_names for n in names)

    def files_matching(self, predicate: Callable[[str], bool]) -> list[str]:
        return [p for p in self.paths if predicate(p)]

    def service_dirs(self) -> list[str]:
        """Directories below the root (or under services/apps/packages) with their own manifest."""
        found = []
        for d in sorted(self.manifests_by_dir):
            if not d:
                continue
            parts = d.split("/")
            if len(parts) == 1 or (len(parts) == 2 and parts[0] in ("services", "apps", "packages")):
                found.append(d)
        return found


# ---------------------------------------------------------------------------
# Pattern definitions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Signal:
    description: str
    test: Callable[[Layout], bool]


@dataclass(frozen=True)
class ArchitecturePattern:
    name: str
    signals: tuple[Signal, ...]

    def evaluate(self, layout: Layout) -> "ArchitecturalPatternScore":
        evidence = [s.description for s in self.signals if s.test(layout)]
        total = len(self.signals)
        confidence = len(evidence) / total if total else 0.0
        return ArchitecturalPatternScore(
            self.name, round(min(1.0, max(0.0, confidence)), 4), evidence,
        )


@dataclass
class ArchitecturalPatternScore:
    name: str
    confidence: float
    evidence: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"name": self.name, "confidence": self.confidence, "evidence": list(self.evidence)}


def _dir(description: str, *names: str) -> Signal:
    return Signal(description, lambda lo: lo.has_dir(*names))


def _file(description: str, *names: str) -> Signal:
    return Signal(description, lambda lo: lo.has_file(*names))


def _uses(description: str, libraries: Iterable[str]) -> Signal:
    libs = frozenset(libraries)
    return Signal(description, lambda lo: bool(lo.packages & libs))


def _component_files(lo: Layout) -> list[str]:
    def is_component(path: str) -> bool:
        stem, ext = posixpath.splitext(posixpath.basename(path))
        return ext in _COMPONENT_EXTENSIONS and bool(_PASCAL_STEM.match(stem.split(".")[0]))
    return lo.files_matching(is_component)


def _viewmodel_files(lo: Layout) -> bool:
    return any("viewmodel" in posixpath.basename(p).lower() for p in lo.paths)


def _handler_files(lo: Layout) -> bool:
    return any(
        posixpath.splitext(posixpath.basename(p))[0].lower() in ("handler", "handlers", "lambda")
        for p in lo.paths
    )


def _reducer_files(lo: Layout) -> bool:
    return any(
        re.search(r'(reducer|slice|store)\.[jt]sx?$', p, re.IGNORECASE) for p in lo.paths
    )


def _multiple_package_manifests(lo: Layout) -> bool:
    return sum(1 for names in lo.manifests_by_dir.values() if "package.json" in names) >= 2


BUILTIN_PATTERNS: tuple[ArchitecturePattern, ...] = (
    ArchitecturePattern("MVC", (
        _dir("models/ directory", "models", "model"),
        _dir("views/ directory", "views", "view", "templates"),
        _dir("controllers/ directory", "controllers", "controller"),
    )),
    ArchitecturePattern("MVVM", (
        _dir("viewmodels/ directory", "viewmodels", "viewmodel", "view-models", "view_models"),
        Signal("*ViewModel files", _viewmodel_files),
        _dir("views/ directory", "views", "view"),
        _dir("models/ directory", "models", "model"),
    )),
    ArchitecturePattern("Layered", (
        _dir("presentation layer directory", "presentation", "ui", "web", "api"),
        _dir("business layer directory", "business", "services", "service", "logic", "bll"),
        _dir("data layer directory", "data", "dal", "persistence", "repositories", "db"),
        Signal(
            "dependency graph has at least 3 acyclic layers",
            lambda lo: lo.has_graph and lo.layer_count >= 3 and not lo.has_cycles,
        ),
    )),
    ArchitecturePattern("Clean Architecture", (
        _dir("entities/ or domain/ directory", "entities", "domain"),
        _dir("use cases directory", "usecases", "use-cases", "use_cases", "interactors"),
        _dir("interface adapters directory", "adapters", "presenters", "gateways", "interface-adapters"),
        _dir("frameworks/infrastructure directory", "infrastructure", "frameworks", "drivers"),
    )),
    ArchitecturePattern("Hexagonal", (
        _dir("ports/ directory", "ports"),
        _dir("adapters/ directory", "adapters"),
        _dir("domain/ or core/ directory", "domain", "core"),
        _dir("application/ directory", "application"),
    )),
    ArchitecturePattern("Microservices", (
        Signal("multiple services with their own manifest", lambda lo: len(lo.service_dirs()) >= 2),
        _dir("services/ directory", "services", "microservices"),
        _file("docker-compose file", "docker-compose.yml", "docker-compose.yaml",
              "compose.yml", "compose.yaml"),
        _dir("gateway directory", "gateway", "api-gateway"),
    )),
    ArchitecturePattern("Monorepo", (
        _dir("packages/, apps/ or libs/ directory", "packages", "apps", "libs"),
        Signal("workspace configuration file", lambda lo: bool(lo.file_names & _WORKSPACE_FILES)),
        Signal("multiple package.json manifests", _multiple_package_manifests),
    )),
    ArchitecturePattern("Component-Based", (
        _dir("components/ directory", "components"),
        Signal("at least 3 component files", lambda lo: len(_component_files(lo)) >= 3),
        Signal(
            "component styles or stories",
            lambda lo: any(re.search(r'\.(module\.(css|scss)|stories\.[jt]sx?)$', p) for p in lo.paths),
        ),
    )),
    ArchitecturePattern("Feature-Sliced", (
        _dir("features/ directory", "features"),
        _dir("entities/ directory", "entities"),
        _dir("shared/ directory", "shared"),
        _dir("widgets/ directory", "widgets"),
        _dir("pages/ or processes/ directory", "pages", "processes"),
    )),
    ArchitecturePattern("Redux/Flux", (
        _dir("store/ directory", "store", "stores"),
        _dir("reducers/, slices/ or actions/ directory", "reducers", "slices", "actions"),
        Signal("reducer/slice/store files", _reducer_files),
        _uses("state-management library import", _STATE_LIBRARIES),
    )),
    ArchitecturePattern("Serverless", (
        Signal("serverless configuration file", lambda lo: bool(lo.file_names & _SERVERLESS_FILES)),
        _dir("functions/ or lambda/ directory", "functions", "lambda", "lambdas"),
        Signal("handler files", _handler_files),
    )),
    ArchitecturePattern("Event-Driven", (
        _dir("events/ directory", "events", "event"),
        _dir("handlers/listeners/subscribers directory",
             "handlers", "listeners", "subscribers", "consumers"),
        _dir("publishers/producers/bus directory",
             "publishers", "producers", "emitters", "bus", "queues", "messaging"),
        _uses("messaging or event library import", _EVENT_LIBRARIES),
    )),
)


def pattern_registry(extra: Iterable[ArchitecturePattern] | None = None) -> list[ArchitecturePattern]:
    """Built-in patterns followed by *extra* (plugin) patterns, in order."""
    patterns = list(BUILTIN_PATTERNS)
    names = {p.name for p in patterns}
    for p in extra or ():
        if p.name in names:
            log.warning("ignoring duplicate architecture pattern %s", p.name)
            continue
        names.add(p.name)
        patterns.append(p)
    return patterns


def detect_architecture(
    model: ProjectModel,
    graph=None,
    min_confidence: float = DEFAULT_MIN_CONFIDENCE,
    patterns: Iterable[ArchitecturePattern] | None = None,
) -> tuple[list[ArchitecturalPatternScore], list[Diagnostic]]:
    """Score every pattern; keep those strictly above *min_confidence*.

    Returns ``(scores, diagnostics)``.  The scores are sorted by confidence
    descending, then declaration order.  When nothing clears the threshold
    the list is empty and an :class:`UnresolvedPatternWarning` names the
    best candidate.
    """
    layout = Layout.from_model(model, graph)
    ordered = list(patterns) if patterns is not None else pattern_registry()
    scored = [(i, p.evaluate(layout)) for i, p in enumerate(ordered)]

    kept = [(i, s) for i, s in scored if s.confidence > min_confidence]
    kept.sort(key=lambda item: (-item[1].confidence, item[0]))
    diagnostics: list[Diagnostic] = []
    if not kept:
        best = min(scored, key=lambda item: (-item[1].confidence, item[0]), default=None)
        best_name = best[1].name if best and best[1].confidence > 0 else None
        best_conf = best[1].confidence if best else 0.0
        log.debug("no architectural pattern above %.2f (best: %s)", min_confidence, best_name)
        diagnostics.append(UnresolvedPatternWarning(
            f"no architectural pattern above confidence {min_confidence}",
            threshold=min_confidence,
            best_candidate=best_name,
            best_confidence=best_conf,
        ))
    return [s for _, s in kept], diagnostics
