"""Language detection and symbol-extractor lookup."""

from __future__ import annotations

import logging
from typing import Callable, Mapping

from ruleforge.diagnostics import Diagnostic, SkippedFileWarning
from ruleforge.extract.base import SymbolExtractor
from ruleforge.model import FileEntry, ProjectModel

log = logging.getLogger(__name__)

# Extension -> language name.  Used for language detection even when no
# extractor is registered for the language.
EXTENSION_MAP: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".vue": "vue",
    ".svelte": "svelte",
    ".astro": "astro",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".scala": "scala",
    ".swift": "swift",
    ".m": "objective-c",
    ".c": "c",
    ".h": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".rb": "ruby",
    ".php": "php",
    ".dart": "dart",
    ".ex": "elixir",
    ".exs": "elixir",
    ".lua": "lua",
    ".sh": "shell",
}

# Extensions whose files can take part in the module graph.
SOURCE_EXTENSIONS: tuple[str, ...] = tuple(sorted(EXTENSION_MAP))


def detect_language(file: FileEntry) -> str | None:
    return EXTENSION_MAP.get(file.extension)


class ExtractorRegistry:
    """Maps languages to extractor instances.

    A registry is a plain value: build one per call (or share one the
    caller owns).  Plugin-registered extractors are added by
    :meth:`with_plugins`.
    """

    def __init__(self, extractors: Mapping[str, SymbolExtractor] | None = None,
                 extensions: Mapping[str, str] | None = None):
        self._extractors: dict[str, SymbolExtractor] = dict(extractors or {})
        self._extensions: dict[str, str] = dict(EXTENSION_MAP)
        for extractor in self._extractors.values():
            for ext in extractor.file_extensions:
                self._extensions[ext.lower()] = extractor.language_name
        self._extensions.update(extensions or {})

    @classmethod
    def with_plugins(cls) -> "ExtractorRegistry":
        """Built-in extractors plus any registered by plugins."""
        from ruleforge.extract.python_lang import PythonExtractor
        from ruleforge.plugins import (
            get_plugin_extractor_extensions,
            get_plugin_extractor_factories,
        )

        extractors: dict[str, SymbolExtractor] = {"python": PythonExtractor()}
        for lang, factory in sorted(get_plugin_extractor_factories().items()):
            try:
                extractors[lang] = factory()
            except Exception as exc:
                log.warning("extractor factory for %s failed: %s", lang, exc)
        return cls(extractors, get_plugin_extractor_extensions())

    def register(self, extractor: SymbolExtractor) -> None:
        self._extractors[extractor.language_name] = extractor
        for ext in extractor.file_extensions:
            self._extensions[ext.lower()] = extractor.language_name

    def language_for(self, file: FileEntry) -> str | None:
        return self._extensions.get(file.extension)

    def extractor_for(self, file: FileEntry) -> SymbolExtractor | None:
        lang = self.language_for(file)
        if lang is None:
            return None
        return self._extractors.get(lang)

    @property
    def languages(self) -> list[str]:
        return sorted(self._extractors)


def attach_symbols(
    model: ProjectModel,
    read_source: Callable[[str], str],
    registry: ExtractorRegistry | None = None,
) -> ProjectModel:
    """Fill in ``extracted_symbols`` for files that arrived without them.

    *read_source* maps a project-relative path to its text; reading is the
    caller's job.  Files that cannot be read or extracted keep
    ``extracted_symbols=None`` and are reported as skipped.
    """
    registry = registry or ExtractorRegistry.with_plugins()
    diagnostics: list[Diagnostic] = list(model.diagnostics)
    files: list[FileEntry] = []
    for file in model.sorted_files():
        if file.extracted_symbols is not None:
            files.append(file)
            continue
        extractor = registry.extractor_for(file)
        if extractor is None:
            files.append(file)
            continue
        try:
            source = read_source(file.path)
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("cannot read %s: %s", file.path, exc)
            diagnostics.append(SkippedFileWarning(
                f"unreadable file {file.path}", path=file.path, reason=str(exc),
            ))
            files.append(file)
            continue
        try:
            symbols = extractor.extract_symbols(file, source)
        except Exception as exc:  # extractor bugs and syntax errors alike
            log.warning("%s extractor failed on %s: %s", extractor.language_name, file.path, exc)
            diagnostics.append(SkippedFileWarning(
                f"symbol extraction failed for {file.path}", path=file.path, reason=str(exc),
            ))
            files.append(file)
            continue
        files.append(FileEntry(file.path, file.name, file.extension, symbols))

    return ProjectModel(tuple(files), model.directories, model.root_name, tuple(diagnostics))
