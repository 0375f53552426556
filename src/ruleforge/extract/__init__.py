"""Pluggable symbol extraction (one strategy per source language)."""

from ruleforge.extract.base import SymbolExtractor
from ruleforge.extract.python_lang import PythonExtractor
from ruleforge.extract.registry import (
    EXTENSION_MAP,
    SOURCE_EXTENSIONS,
    ExtractorRegistry,
    attach_symbols,
    detect_language,
)

__all__ = [
    "SymbolExtractor",
    "PythonExtractor",
    "ExtractorRegistry",
    "attach_symbols",
    "detect_language",
    "EXTENSION_MAP",
    "SOURCE_EXTENSIONS",
]
