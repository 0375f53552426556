"""Naming-convention, architectural-pattern and code-idiom detection."""

from ruleforge.patterns.architecture import (
    ArchitecturalPatternScore,
    ArchitecturePattern,
    Signal,
)
from ruleforge.patterns.detector import DetectOptions, PatternReport, detect_patterns
from ruleforge.patterns.naming import classify_name

__all__ = [
    "ArchitecturalPatternScore",
    "ArchitecturePattern",
    "Signal",
    "DetectOptions",
    "PatternReport",
    "classify_name",
    "detect_patterns",
]
