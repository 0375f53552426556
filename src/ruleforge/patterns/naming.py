"""Naming-convention detection over declared names, files and directories."""

from __future__ import annotations

import re
from collections import Counter, defaultdict
from dataclasses import dataclass, field

from ruleforge.model import ProjectModel


# ---------------------------------------------------------------------------
# Case-style classification
# ---------------------------------------------------------------------------

# Declaration order doubles as the tie-break for the dominant style.
BUCKETS: tuple[str, ...] = (
    "camelCase",
    "snake_case",
    "PascalCase",
    "kebab-case",
    "UPPER_SNAKE_CASE",
)

_CASE_PATTERNS = {
    "snake_case":       re.compile(r'^[a-z][a-z0-9]*(_[a-z0-9]+)+$'),
    "camelCase":        re.compile(r'^[a-z][a-zA-Z0-9]*[A-Z][a-zA-Z0-9]*$'),
    "PascalCase":       re.compile(r'^[A-Z][a-zA-Z0-9]*[a-z][a-zA-Z0-9]*$'),
    "UPPER_SNAKE_CASE": re.compile(r'^[A-Z][A-Z0-9]*(_[A-Z0-9]+)+$'),
    "kebab-case":       re.compile(r'^[a-z][a-z0-9]*(-[a-z0-9]+)+$'),
}

# Single-word names match several conventions at once.
_SINGLE_LOWER = re.compile(r'^[a-z][a-z0-9]*$')
_SINGLE_UPPER = re.compile(r'^[A-Z][A-Z0-9]*$')
_SINGLE_PASCAL = re.compile(r'^[A-Z][a-z0-9]+$')

_MIN_NAME_LEN = 2

_SKIP_NAMES = frozenset({
    "constructor", "toString", "valueOf", "toJSON", "render",
})

CATEGORIES: tuple[str, ...] = (
    "variables",
    "functions",
    "classes",
    "constants",
    "interfaces",
    "types",
    "components",
    "files",
    "directories",
    "other",
)

_KIND_GROUPS = {
    "variable":  "variables",
    "var":       "variables",
    "let":       "variables",
    "property":  "variables",
    "field":     "variables",
    "parameter": "variables",
    "function":  "functions",
    "method":    "functions",
    "async function": "functions",
    "async method":   "functions",
    "hook":      "functions",
    "class":     "classes",
    "struct":    "classes",
    "trait":     "classes",
    "enum":      "classes",
    "constant":  "constants",
    "const":     "constants",
    "interface": "interfaces",
    "protocol":  "interfaces",
    "type":      "types",
    "typealias": "types",
    "type_alias": "types",
    "component": "components",
}


def classify_name(name: str) -> str | None:
    """Return the case style of *name*, or None when it is ambiguous.

    Leading ``_``/``$`` are ignored.  Dunder names and single lowercase
    words (``index``, ``value``) could be several styles at once and stay
    unclassified.
    """
    if not name or (name.startswith("__") and name.endswith("__")):
        return None
    bare = name.lstrip("_$")
    if len(bare) < _MIN_NAME_LEN or bare in _SKIP_NAMES:
        return None

    for style, pattern in _CASE_PATTERNS.items():
        if pattern.match(bare):
            return style

    if _SINGLE_PASCAL.match(bare):
        return "PascalCase"
    if _SINGLE_UPPER.match(bare):
        return "UPPER_SNAKE_CASE"
    return None


def category_for_kind(kind: str) -> str:
    return _KIND_GROUPS.get((kind or "").lower(), "other")


def file_stem(name: str) -> str:
    """File name up to its first dot: ``user-service.test.ts`` -> ``user-service``.

    Dotfiles keep their leading dot stripped first (``.eslintrc.js`` ->
    ``eslintrc``).
    """
    return name.lstrip(".").split(".", 1)[0]


def build_profile(counts: Counter, unclassified: int = 0) -> dict:
    """Summarize one category's style counts."""
    full = {b: int(counts.get(b, 0)) for b in BUCKETS}
    total = sum(full.values())
    if total == 0:
        return {
            "counts": full,
            "dominant": None,
            "confidence": 0.0,
            "total": 0,
            "unclassified": unclassified,
        }
    dominant = max(BUCKETS, key=lambda b: full[b])
    return {
        "counts": full,
        "dominant": dominant,
        "confidence": round(full[dominant] / total, 4),
        "total": total,
        "unclassified": unclassified,
    }


# ---------------------------------------------------------------------------
# Prefix / suffix detection
# ---------------------------------------------------------------------------

def detect_affixes(names: list[str], min_count: int = 5,
                   min_ratio: float = 0.03) -> dict:
    """Detect common prefixes and suffixes from a list of names."""
    prefix_counter: Counter = Counter()
    suffix_counter: Counter = Counter()

    for name in names:
        parts = name.split("_")
        if len(parts) >= 2 and len(parts[0]) >= 2:
            prefix_counter[parts[0] + "_"] += 1
        m = re.match(r'^([a-z]+)[A-Z]', name)
        if m and len(m.group(1)) >= 2:
            prefix_counter[m.group(1)] += 1

        if len(parts) >= 2 and len(parts[-1]) >= 2:
            suffix_counter["_" + parts[-1]] += 1
        m = re.search(r'[a-z]([A-Z][a-z]+)$', name)
        if m and len(m.group(1)) >= 3:
            suffix_counter[m.group(1)] += 1

    total = max(len(names), 1)
    threshold = max(min_count, int(total * min_ratio))

    def _top(counter: Counter) -> list[dict]:
        ranked = sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))[:10]
        return [
            {"affix": a, "count": c, "percent": round(100 * c / total, 1)}
            for a, c in ranked
            if c >= threshold
        ]

    return {"prefixes": _top(prefix_counter), "suffixes": _top(suffix_counter)}


# ---------------------------------------------------------------------------
# Project-level analysis
# ---------------------------------------------------------------------------

@dataclass
class NamingAnalysis:
    profiles: dict[str, dict] = field(default_factory=dict)
    outliers: dict[str, list[dict]] = field(default_factory=dict)
    affixes: dict[str, dict] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "profiles": self.profiles,
            "outliers": self.outliers,
            "affixes": self.affixes,
        }


def collect_names(model: ProjectModel) -> dict[str, list[tuple[str, str]]]:
    """``{category: [(name, where)]}`` for every observed name, path order."""
    names: dict[str, list[tuple[str, str]]] = defaultdict(list)
    for file in model.sorted_files():
        names["files"].append((file_stem(file.name), file.path))
        if file.extracted_symbols is None:
            continue
        for decl in file.extracted_symbols.declared_names:
            names[category_for_kind(decl.kind)].append((decl.name, file.path))
    for d in sorted(model.directories, key=lambda d: d.path):
        if d.name:
            names["directories"].append((d.name, d.path))
    return names


def detect_naming_conventions(model: ProjectModel, max_outliers: int = 10) -> NamingAnalysis:
    """Classify every name per category and report the consensus style."""
    names = collect_names(model)
    profiles: dict[str, dict] = {}
    outliers: dict[str, list[dict]] = {}

    for category in CATEGORIES:
        entries = names.get(category, [])
        counts: Counter = Counter()
        unclassified = 0
        styled: list[tuple[str, str, str]] = []
        for name, where in entries:
            style = classify_name(name)
            if style is None:
                unclassified += 1
                continue
            counts[style] += 1
            styled.append((name, where, style))
        profile = build_profile(counts, unclassified)
        profiles[category] = profile

        dominant = profile["dominant"]
        if dominant is None:
            continue
        off = sorted(
            {(where, name, style) for name, where, style in styled if style != dominant}
        )
        if off:
            outliers[category] = [
                {"name": name, "style": style, "path": where}
                for where, name, style in off[:max_outliers]
            ]

    affixes = {}
    for category in ("functions", "classes"):
        values = [n for n, _ in names.get(category, [])]
        if values:
            affixes[category] = detect_affixes(values)

    return NamingAnalysis(profiles, outliers, affixes)


def overall_consistency(profiles: dict[str, dict]) -> float:
    """Mean confidence weighted by each category's classified total."""
    weighted = sum(p["confidence"] * p["total"] for p in profiles.values())
    total = sum(p["total"] for p in profiles.values())
    if total == 0:
        return 0.0
    return round(min(1.0, max(0.0, weighted / total)), 4)


def outlier_count(profiles: dict[str, dict]) -> int:
    """Classified names that do not follow their category's dominant style."""
    return sum(
        p["total"] - p["counts"][p["dominant"]]
        for p in profiles.values()
        if p["dominant"] is not None
    )
