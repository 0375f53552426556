"""Consistency metrics: how uniformly the project follows its own habits."""

from __future__ import annotations

from collections import Counter

from ruleforge.graph.resolver import ImportResolver
from ruleforge.model import ProjectModel
from ruleforge.patterns.code import is_barrel, match_test_pattern
from ruleforge.patterns.naming import NamingAnalysis, outlier_count, overall_consistency


def analyze_test_layout(paths: list[str]) -> dict:
    """Test file naming patterns and the top-level directories that hold tests."""
    pattern_counts: Counter = Counter()
    dir_counts: Counter = Counter()
    colocated = 0
    total = 0
    for p in paths:
        pattern = match_test_pattern(p)
        if pattern is None:
            continue
        total += 1
        pattern_counts[pattern] += 1
        parts = p.split("/")
        if len(parts) > 1:
            dir_counts[parts[0] + "/"] += 1
        if not any(seg in ("test", "tests", "__tests__", "spec", "specs") for seg in parts[:-1]):
            colocated += 1

    def _top(counter: Counter, key: str) -> list[dict]:
        ranked = sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))[:5]
        return [{key: k, "count": c} for k, c in ranked]

    if total == 0:
        organization = "none"
    elif colocated == total:
        organization = "colocated"
    elif colocated == 0:
        organization = "separate"
    else:
        organization = "mixed"

    return {
        "test_file_count": total,
        "test_patterns": _top(pattern_counts, "pattern"),
        "test_dirs": _top(dir_counts, "dir"),
        "organization": organization,
    }


def analyze_import_style(model: ProjectModel, resolver: ImportResolver) -> dict:
    """Classify every import reference as relative, alias, module or external."""
    counts = Counter({"relative": 0, "alias": 0, "module": 0, "external": 0})
    for file in model.sorted_files():
        if file.extracted_symbols is None:
            continue
        for ref in file.extracted_symbols.imports:
            if ref.startswith("."):
                counts["relative"] += 1
                continue
            res = resolver.resolve(file.path, ref)
            if res.kind == "external":
                counts["external"] += 1
            elif resolver.is_alias(ref):
                counts["alias"] += 1
            else:
                counts["module"] += 1

    internal = counts["relative"] + counts["alias"] + counts["module"]
    if internal == 0:
        style = "unknown"
    else:
        winner = max(("relative", "alias", "module"), key=lambda k: counts[k])
        style = winner if counts[winner] / internal >= 0.6 else "mixed"
    return {
        "relative": counts["relative"],
        "alias": counts["alias"],
        "module": counts["module"],
        "external": counts["external"],
        "internal_style": style,
    }


def consistency_metrics(model: ProjectModel, naming: NamingAnalysis,
                        resolver: ImportResolver) -> dict:
    paths = model.file_paths()
    per_category = {
        category: profile["confidence"]
        for category, profile in naming.profiles.items()
        if profile["total"]
    }
    return {
        "naming_consistency": overall_consistency(naming.profiles),
        "per_category": per_category,
        "naming_outliers": outlier_count(naming.profiles),
        "tests": analyze_test_layout(paths),
        "imports": analyze_import_style(model, resolver),
        "barrel_files": sum(1 for p in paths if is_barrel(p)),
        "affixes": naming.affixes,
    }
