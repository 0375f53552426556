from __future__ import annotations

from abc import ABC, abstractmethod

from ruleforge.model import DeclaredName, ExtractedSymbols, FileEntry


class SymbolExtractor(ABC):
    """Base class for language-specific symbol extraction.

    Python ships built in; other languages come from plugins or from a
    scanner that fills ``extractedSymbols`` itself.
    """

    @property
    @abstractmethod
    def language_name(self) -> str: ...

    @property
    @abstractmethod
    def file_extensions(self) -> list[str]: ...

    @abstractmethod
    def extract_symbols(self, file: FileEntry, source: str) -> ExtractedSymbols:
        """Return the imports and declared names found in *source*."""
        ...

    def _make_symbols(self, imports: list[str], names: list[tuple[str, str]]) -> ExtractedSymbols:
        return ExtractedSymbols(
            tuple(i for i in imports if i),
            tuple(DeclaredName(n, k) for n, k in names if n),
        )
