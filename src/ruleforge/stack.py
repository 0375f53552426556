"""Technology-stack inference from file extensions, imports and manifests."""

from __future__ import annotations

import fnmatch
import posixpath
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Mapping

from ruleforge.extract.registry import EXTENSION_MAP
from ruleforge.graph.resolver import DOTTED_EXTENSIONS, package_root
from ruleforge.model import ProjectModel


# ---------------------------------------------------------------------------
# Lookup tables: name -> (import prefixes, file globs)
# ---------------------------------------------------------------------------

_FRAMEWORK_PATTERNS = {
    # JS/TS frameworks
    "react": (["react", "react-dom"], []),
    "vue": (["vue", "@vue"], ["*.vue"]),
    "angular": (["@angular/core", "@angular"], ["angular.json"]),
    "svelte": (["svelte", "@sveltejs"], ["*.svelte"]),
    "next.js": (["next"], ["next.config.*"]),
    "nuxt": (["nuxt", "@nuxt"], ["nuxt.config.*"]),
    "astro": (["astro"], ["astro.config.*"]),
    "express": (["express"], []),
    "nestjs": (["@nestjs/core", "@nestjs/common"], ["nest-cli.json"]),
    "fastify": (["fastify"], []),
    "react-native": (["react-native"], []),
    "electron": (["electron"], []),
    # Python
    "django": (["django"], ["manage.py"]),
    "flask": (["flask"], []),
    "fastapi": (["fastapi"], []),
    # Go
    "gin": (["github.com/gin-gonic/gin"], []),
    "fiber": (["github.com/gofiber/fiber"], []),
    "echo": (["github.com/labstack/echo"], []),
    # Rust
    "actix": (["actix-web", "actix_web"], []),
    "axum": (["axum"], []),
    # JVM
    "spring": (["org.springframework"], []),
    # Ruby / PHP
    "rails": (["rails"], ["config/routes.rb"]),
    "laravel": (["illuminate"], ["artisan"]),
    # .NET
    "asp.net": (["microsoft.aspnetcore"], []),
    # Mobile
    "flutter": (["package:flutter", "flutter"], []),
}

_TESTING_PATTERNS = {
    "jest": (["jest", "@jest"], ["jest.config.*"]),
    "vitest": (["vitest"], ["vitest.config.*"]),
    "mocha": (["mocha"], [".mocharc*"]),
    "cypress": (["cypress"], ["cypress.config.*", "cypress.json"]),
    "playwright": (["@playwright/test", "playwright"], ["playwright.config.*"]),
    "testing-library": (["@testing-library"], []),
    "pytest": (["pytest"], ["pytest.ini", "conftest.py"]),
    "unittest": (["unittest"], []),
    "junit": (["org.junit"], []),
    "rspec": (["rspec"], [".rspec"]),
    "phpunit": (["phpunit"], ["phpunit.xml*"]),
}

_BUILD_PATTERNS = {
    "vite": ["vite.config.*"],
    "webpack": ["webpack.config.*"],
    "rollup": ["rollup.config.*"],
    "esbuild": ["esbuild.*"],
    "turbo": ["turbo.json"],
    "npm": ["package.json"],
    "cargo": ["cargo.toml"],
    "go": ["go.mod"],
    "maven": ["pom.xml"],
    "gradle": ["build.gradle*"],
    "pip": ["pyproject.toml", "setup.py", "setup.cfg", "requirements*.txt"],
    "composer": ["composer.json"],
    "bundler": ["gemfile"],
    "dotnet": ["*.csproj", "*.sln", "*.fsproj"],
    "make": ["makefile"],
    "docker": ["dockerfile", "docker-compose.y*ml"],
}

# Standard-library modules never count as third-party libraries.
_BUILTIN_MODULES = frozenset({
    # Python
    "__future__", "abc", "argparse", "ast", "asyncio", "base64", "collections",
    "contextlib", "copy", "csv", "dataclasses", "datetime", "decimal", "enum",
    "functools", "glob", "hashlib", "heapq", "importlib", "inspect", "io",
    "itertools", "json", "logging", "math", "os", "pathlib", "pickle",
    "platform", "queue", "random", "re", "shutil", "signal", "socket",
    "sqlite3", "string", "struct", "subprocess", "sys", "tempfile",
    "textwrap", "threading", "time", "traceback", "types", "typing",
    "unittest", "urllib", "uuid", "warnings", "weakref", "zipfile",
    # Node
    "assert", "buffer", "child_process", "crypto", "events", "fs", "http",
    "https", "net", "path", "process", "stream", "url", "util", "zlib",
    "worker_threads",
    # Go / Rust
    "fmt", "strings", "errors", "context", "sync", "std", "core", "alloc",
})


def _matches_import_pattern(pattern: str, targets: set[str]) -> bool:
    """Check if *pattern* matches any target as a prefix or path segment.

    ``next`` matches ``next`` and ``next/router`` but not ``nextra``;
    ``react`` matches ``react-dom``; ``microsoft.aspnetcore`` matches
    ``microsoft.aspnetcore.mvc``.
    """
    for target in targets:
        if target == pattern:
            return True
        if target.startswith(pattern) and len(target) > len(pattern):
            if target[len(pattern)] in (".", "/", "-", "@"):
                return True
    return False


def _match_table(table: dict, targets: set[str], file_names: set[str],
                 paths: set[str]) -> list[str]:
    detected = []
    for name, (import_pats, file_pats) in table.items():
        found = any(_matches_import_pattern(p.lower(), targets) for p in import_pats)
        if not found:
            for pat in file_pats:
                pat = pat.lower()
                pool = paths if "/" in pat else file_names
                if any(fnmatch.fnmatch(fn, pat) for fn in pool):
                    found = True
                    break
        if found:
            detected.append(name)
    return detected


# ---------------------------------------------------------------------------
# Tech stack record
# ---------------------------------------------------------------------------

_FIELDS = ("languages", "frameworks", "libraries", "testing_frameworks", "build_tools")


@dataclass
class TechStack:
    languages: list[str] = field(default_factory=list)
    frameworks: list[str] = field(default_factory=list)
    libraries: list[str] = field(default_factory=list)
    testing_frameworks: list[str] = field(default_factory=list)
    build_tools: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "TechStack":
        """Accept a declared stack in snake_case or camelCase keys."""
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("tech stack must be an object")
        aliases = {
            "testing_frameworks": ("testingFrameworks", "testing"),
            "build_tools": ("buildTools",),
        }
        values = {}
        for name in _FIELDS:
            raw = data.get(name)
            for alt in aliases.get(name, ()):
                if raw is None:
                    raw = data.get(alt)
            if raw is None:
                raw = []
            if isinstance(raw, str):
                raw = [raw]
            if not isinstance(raw, (list, tuple)):
                raise ValueError(f"{name} must be a list of strings")
            values[name] = [str(v) for v in raw if str(v).strip()]
        return cls(**values)

    def to_dict(self) -> dict[str, list[str]]:
        return {name: list(getattr(self, name)) for name in _FIELDS}


def _collect_import_targets(model: ProjectModel, graph=None) -> tuple[set[str], set[str]]:
    """Return ``(targets, package_roots)``, lowercased."""
    if graph is not None:
        roots = {p.lower() for p in graph.external_packages()}
        return set(roots), roots
    targets: set[str] = set()
    roots: set[str] = set()
    for file in model.files:
        if file.extracted_symbols is None:
            continue
        for ref in file.extracted_symbols.imports:
            if ref.startswith((".", "/", "@/", "~/")):
                continue
            dotted = file.extension in DOTTED_EXTENSIONS
            root = package_root(ref, dotted).lower()
            targets.add(ref.lower())
            targets.add(root)
            roots.add(root)
    return targets, roots


def infer_tech_stack(model: ProjectModel, graph=None) -> TechStack:
    """Infer languages, frameworks, libraries, testing and build tools.

    When a ModuleGraph is given its resolved external imports are used;
    otherwise every non-relative import reference counts as external.
    """
    lang_counts: Counter = Counter()
    for file in model.files:
        lang = EXTENSION_MAP.get(file.extension)
        if lang:
            lang_counts[lang] += 1
    languages = [lang for lang, _ in sorted(lang_counts.items(), key=lambda kv: (-kv[1], kv[0]))]

    paths = {p.lower() for p in model.file_paths()}
    file_names = {posixpath.basename(p) for p in paths}
    targets, roots = _collect_import_targets(model, graph)

    frameworks = _match_table(_FRAMEWORK_PATTERNS, targets, file_names, paths)
    testing = _match_table(_TESTING_PATTERNS, targets, file_names, paths)

    build_tools = []
    for tool, patterns in _BUILD_PATTERNS.items():
        if any(fnmatch.fnmatch(fn, pat) for pat in patterns for fn in file_names):
            build_tools.append(tool)

    claimed = [
        p.lower()
        for table in (_FRAMEWORK_PATTERNS, _TESTING_PATTERNS)
        for pats, _ in table.values()
        for p in pats
    ]
    libraries = [
        r for r in sorted(roots)
        if r not in _BUILTIN_MODULES
        and not any(_matches_import_pattern(c, {r}) for c in claimed)
    ]

    return TechStack(languages, frameworks, libraries, testing, build_tools)


def merge_tech_stack(declared: TechStack | Mapping[str, Any] | None,
                     inferred: TechStack) -> TechStack:
    """Declared entries first, in their given order, then new inferred ones."""
    if not isinstance(declared, TechStack):
        declared = TechStack.from_dict(declared)
    merged = {}
    for name in _FIELDS:
        values = list(getattr(declared, name))
        seen = {v.lower() for v in values}
        for v in getattr(inferred, name):
            if v.lower() not in seen:
                seen.add(v.lower())
                values.append(v)
        merged[name] = values
    return TechStack(**merged)
