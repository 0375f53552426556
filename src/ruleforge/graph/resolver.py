"""Resolve raw import references to in-project file paths.

Handles:
- ``./`` and ``../`` relative paths (with or without extension)
- index files: ``index.*``, ``__init__.py``, ``mod.rs``
- Python relative imports: ``.models``, ``..pkg.utils``
- alias prefixes: ``@/`` and ``~/`` -> ``src/`` plus caller-supplied ones
- bare module names (``app.models.user``, ``utils/format``) that match a
  known in-project module key, with or without a leading ``src/``,
  ``lib/`` or ``app/`` root

Anything else is an external package.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Iterable, Mapping

from ruleforge.extract.registry import SOURCE_EXTENSIONS

DEFAULT_ALIASES: dict[str, str] = {
    "@/": "src/",
    "~/": "src/",
}

_INDEX_STEMS = ("index", "__init__", "mod")
_SOURCE_ROOTS = ("src/", "lib/", "app/")
DOTTED_EXTENSIONS = (".py", ".pyi", ".java", ".kt", ".scala", ".cs")


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one import reference.

    ``kind`` is ``"internal"`` (``target`` is a project path),
    ``"external"`` (``target`` is the package root) or ``"unresolved"``
    (a relative or aliased reference that points at no known file).
    """

    kind: str
    target: str


def _strip_extension(path: str) -> str:
    root, ext = posixpath.splitext(path)
    if ext.lower() in SOURCE_EXTENSIONS:
        return root
    return path


def module_key(path: str) -> str:
    """Path without extension; index files collapse to their directory."""
    key = _strip_extension(path)
    parent, stem = posixpath.split(key)
    if stem in _INDEX_STEMS and parent:
        return parent
    return key


def package_root(ref: str, dotted: bool = False) -> str:
    """Reduce an external reference to the package that provides it.

    *dotted* references (Python, Java) are split on ``.``; others keep
    dots so names like ``socket.io`` or ``chart.js`` survive.
    """
    ref = ref.strip()
    if ref.startswith("node:"):
        ref = ref[5:]
    if ref.startswith("@") and "/" in ref:
        return "/".join(ref.split("/")[:2])
    if "/" in ref:
        parts = ref.split("/")
        # github.com/org/repo style module paths
        if "." in parts[0] and len(parts) >= 3:
            return "/".join(parts[:3])
        return parts[0]
    if "::" in ref:
        return ref.split("::")[0]
    if dotted:
        return ref.split(".")[0] or ref
    return ref


class ImportResolver:
    """Lookup tables for one project's file paths."""

    def __init__(self, paths: Iterable[str], aliases: Mapping[str, str] | None = None):
        self._paths: set[str] = set(paths)
        self._by_key: dict[str, str] = {}
        self._by_short_key: dict[str, str] = {}
        for path in sorted(self._paths):
            if posixpath.splitext(path)[1].lower() not in SOURCE_EXTENSIONS:
                continue
            key = module_key(path)
            self._by_key.setdefault(key, path)
            for root in _SOURCE_ROOTS:
                if key.startswith(root):
                    self._by_short_key.setdefault(key[len(root):], path)
                    break
        merged = dict(DEFAULT_ALIASES)
        merged.update(aliases or {})
        # Longest prefix first so "@app/" wins over "@/"
        self._aliases = sorted(
            ((k, v) for k, v in merged.items() if k),
            key=lambda kv: (-len(kv[0]), kv[0]),
        )

    def is_alias(self, ref: str) -> bool:
        return any(ref.startswith(prefix) for prefix, _ in self._aliases)

    def _lookup(self, candidate: str) -> str | None:
        candidate = posixpath.normpath(candidate) if candidate else candidate
        if not candidate or candidate == "." or candidate.startswith("../"):
            return None
        if candidate in self._paths:
            return candidate
        return self._by_key.get(_strip_extension(candidate)) or self._by_key.get(candidate)

    def _resolve_python_relative(self, importer: str, ref: str) -> str | None:
        dots = len(ref) - len(ref.lstrip("."))
        rest = ref[dots:].replace(".", "/")
        base = posixpath.dirname(importer)
        for _ in range(dots - 1):
            if not base:
                return None
            base = posixpath.dirname(base)
        candidate = posixpath.join(base, rest) if rest else base
        target = self._lookup(candidate)
        if target is None and rest and "/" not in rest:
            # ``from . import name`` where name lives in the package itself
            target = self._lookup(base)
        return target

    def resolve(self, importer: str, ref: str) -> Resolution:
        ref = ref.strip().replace("\\", "/")
        if not ref:
            return Resolution("unresolved", ref)

        if ref in (".", "..") or ref.startswith("./") or ref.startswith("../"):
            target = self._lookup(posixpath.join(posixpath.dirname(importer), ref))
            return Resolution("internal", target) if target else Resolution("unresolved", ref)

        if ref.startswith("."):
            target = self._resolve_python_relative(importer, ref)
            return Resolution("internal", target) if target else Resolution("unresolved", ref)

        for prefix, replacement in self._aliases:
            if ref.startswith(prefix):
                target = self._lookup(replacement + ref[len(prefix):])
                return Resolution("internal", target) if target else Resolution("unresolved", ref)

        if ref.startswith("/"):
            target = self._lookup(ref.lstrip("/"))
            return Resolution("internal", target) if target else Resolution("unresolved", ref)

        key = ref
        if "/" not in key and "::" not in key:
            key = key.replace(".", "/")
        elif "::" in key:
            key = key.replace("::", "/")
        key = _strip_extension(key)
        target = self._by_key.get(key) or self._by_short_key.get(key)
        if target:
            return Resolution("internal", target)
        dotted = posixpath.splitext(importer)[1].lower() in DOTTED_EXTENSIONS
        return Resolution("external", package_root(ref, dotted))
