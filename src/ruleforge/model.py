"""Normalized project model supplied by the external scanner.

The scanner walks the file system, honours ignore rules and (optionally)
extracts symbols.  ruleforge only reads the normalized result: a list of
files with their extracted imports/declared names, and a list of
directories.  Everything here is immutable once built.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from typing import Any, Mapping

from ruleforge.diagnostics import Diagnostic, SkippedFileWarning
from ruleforge.exit_codes import MalformedInputError

log = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Forward slashes, no leading ``./``, no trailing slash."""
    p = str(path).replace("\\", "/").strip()
    while p.startswith("./"):
        p = p[2:]
    p = posixpath.normpath(p) if p else p
    if p == ".":
        return ""
    return p.rstrip("/")


@dataclass(frozen=True)
class DeclaredName:
    name: str
    kind: str


@dataclass(frozen=True)
class ExtractedSymbols:
    """What a language scanner found in one file."""

    imports: tuple[str, ...] = ()
    declared_names: tuple[DeclaredName, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExtractedSymbols":
        """Validate a raw ``extractedSymbols`` payload.

        Raises ValueError when the payload has the wrong shape; callers
        decide whether that is fatal.
        """
        if not isinstance(data, Mapping):
            raise ValueError("extractedSymbols must be an object")
        imports = data.get("imports", [])
        if imports is None:
            imports = []
        if not isinstance(imports, (list, tuple)):
            raise ValueError("imports must be a list")
        clean_imports = []
        for ref in imports:
            if isinstance(ref, Mapping):
                # Some scanners emit {"source": "./x"} / {"module": "x"}
                ref = ref.get("source") or ref.get("module") or ref.get("path")
            if not isinstance(ref, str):
                raise ValueError(f"import reference must be a string, got {type(ref).__name__}")
            ref = ref.strip()
            if ref:
                clean_imports.append(ref)

        raw_names = data.get("declaredNames", data.get("declared_names", []))
        if raw_names is None:
            raw_names = []
        if not isinstance(raw_names, (list, tuple)):
            raise ValueError("declaredNames must be a list")
        names = []
        for item in raw_names:
            if isinstance(item, str):
                names.append(DeclaredName(item, "variable"))
                continue
            if not isinstance(item, Mapping) or not isinstance(item.get("name"), str):
                raise ValueError("declared name entries need a string 'name'")
            kind = item.get("kind") or "variable"
            names.append(DeclaredName(item["name"], str(kind).lower()))
        return cls(tuple(clean_imports), tuple(names))


@dataclass(frozen=True)
class FileEntry:
    path: str
    name: str
    extension: str
    extracted_symbols: ExtractedSymbols | None = None

    @property
    def directory(self) -> str:
        return posixpath.dirname(self.path)


@dataclass(frozen=True)
class DirectoryEntry:
    path: str
    name: str
    depth: int


@dataclass(frozen=True)
class ProjectModel:
    """Files and directories of one scanned project."""

    files: tuple[FileEntry, ...] = ()
    directories: tuple[DirectoryEntry, ...] = ()
    root_name: str = ""
    diagnostics: tuple[Diagnostic, ...] = field(default=(), compare=False)

    @property
    def file_count(self) -> int:
        return len(self.files)

    def sorted_files(self) -> list[FileEntry]:
        return sorted(self.files, key=lambda f: f.path)

    def file_paths(self) -> list[str]:
        return sorted(f.path for f in self.files)

    def to_dict(self) -> dict[str, Any]:
        """Scanner-shaped (camelCase) dict; ``from_dict`` reads it back."""
        files = []
        for f in self.sorted_files():
            entry: dict[str, Any] = {"path": f.path, "name": f.name, "extension": f.extension}
            if f.extracted_symbols is not None:
                entry["extractedSymbols"] = {
                    "imports": list(f.extracted_symbols.imports),
                    "declaredNames": [
                        {"name": d.name, "kind": d.kind}
                        for d in f.extracted_symbols.declared_names
                    ],
                }
            files.append(entry)
        return {
            "name": self.root_name,
            "files": files,
            "directories": [
                {"path": d.path, "name": d.name, "depth": d.depth}
                for d in sorted(self.directories, key=lambda d: d.path)
            ],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ProjectModel":
        """Build a validated model from the scanner's JSON shape.

        Accepts camelCase (``extractedSymbols``) or snake_case keys.  A
        non-object model, non-list ``files``/``directories`` or duplicate
        paths raise :class:`MalformedInputError`; a single file with a bad
        symbols payload is kept without symbols and reported.
        """
        if isinstance(data, ProjectModel):
            return data
        if not isinstance(data, Mapping):
            raise MalformedInputError("model", f"expected an object, got {type(data).__name__}")

        raw_files = data.get("files", [])
        raw_dirs = data.get("directories")
        if not isinstance(raw_files, (list, tuple)):
            raise MalformedInputError("model", "'files' must be a list")
        if raw_dirs is not None and not isinstance(raw_dirs, (list, tuple)):
            raise MalformedInputError("model", "'directories' must be a list")

        diagnostics: list[Diagnostic] = []
        files: list[FileEntry] = []
        seen: set[str] = set()
        for i, raw in enumerate(raw_files):
            if isinstance(raw, str):
                raw = {"path": raw}
            if not isinstance(raw, Mapping) or not isinstance(raw.get("path"), str):
                raise MalformedInputError("model", f"file entry {i} has no string 'path'")
            path = normalize_path(raw["path"])
            if not path:
                raise MalformedInputError("model", f"file entry {i} has an empty path")
            if path in seen:
                raise MalformedInputError("model", f"duplicate file path: {path}")
            seen.add(path)

            name = raw.get("name") or posixpath.basename(path)
            extension = raw.get("extension")
            if extension is None:
                extension = posixpath.splitext(name)[1]
            extension = str(extension).lower()
            if extension and not extension.startswith("."):
                extension = "." + extension

            symbols = None
            raw_symbols = raw.get("extractedSymbols", raw.get("extracted_symbols"))
            if raw_symbols is not None:
                try:
                    symbols = ExtractedSymbols.from_dict(raw_symbols)
                except ValueError as exc:
                    log.warning("skipping symbols of %s: %s", path, exc)
                    diagnostics.append(SkippedFileWarning(
                        f"could not read extracted symbols of {path}",
                        path=path, reason=str(exc),
                    ))
            files.append(FileEntry(path, str(name), extension, symbols))

        if raw_dirs is None:
            directories = derive_directories(f.path for f in files)
        else:
            directories = []
            for i, raw in enumerate(raw_dirs):
                if isinstance(raw, str):
                    raw = {"path": raw}
                if not isinstance(raw, Mapping) or not isinstance(raw.get("path"), str):
                    raise MalformedInputError("model", f"directory entry {i} has no string 'path'")
                path = normalize_path(raw["path"])
                depth = raw.get("depth")
                if depth is None:
                    depth = path.count("/") if path else 0
                if not isinstance(depth, int) or isinstance(depth, bool) or depth < 0:
                    raise MalformedInputError("model", f"directory {path!r} has an invalid depth")
                name = raw.get("name") or posixpath.basename(path)
                directories.append(DirectoryEntry(path, str(name), depth))

        root_name = data.get("name") or data.get("projectName") or data.get("root_name") or ""
        return cls(
            tuple(sorted(files, key=lambda f: f.path)),
            tuple(sorted(directories, key=lambda d: d.path)),
            str(root_name),
            tuple(diagnostics),
        )


def derive_directories(paths) -> list[DirectoryEntry]:
    """Every ancestor directory of *paths*, depth 0 for top-level ones."""
    dirs: dict[str, DirectoryEntry] = {}
    for path in paths:
        parent = posixpath.dirname(path)
        while parent and parent not in dirs:
            dirs[parent] = DirectoryEntry(parent, posixpath.basename(parent), parent.count("/"))
            parent = posixpath.dirname(parent)
    return sorted(dirs.values(), key=lambda d: d.path)


def coerce_model(data: Any, stage: str) -> ProjectModel:
    """Return *data* as a ProjectModel or raise MalformedInputError for *stage*."""
    if isinstance(data, ProjectModel):
        return data
    if isinstance(data, Mapping):
        return ProjectModel.from_dict(data)
    raise MalformedInputError(stage, f"expected a project model, got {type(data).__name__}")
