"""Tests for tech-stack inference, signature composition and the analysis pipeline."""

from __future__ import annotations

import pytest

from conftest import make_file, make_model
from ruleforge.cache import AnalysisCache, fingerprint
from ruleforge.exit_codes import MalformedInputError
from ruleforge.graph import GraphOptions, build_module_graph
from ruleforge.model import ProjectModel
from ruleforge.patterns import DetectOptions
from ruleforge.pipeline import analyze_project
from ruleforge.signature import (
    ProjectSignature,
    categorize_complexity,
    categorize_project_size,
    complexity_score,
    compose_signature,
)
from ruleforge.stack import TechStack, infer_tech_stack, merge_tech_stack


# ===========================================================================
# Tech stack
# ===========================================================================


class TestInferTechStack:
    def test_react_project(self, react_model):
        model = ProjectModel.from_dict(react_model)
        stack = infer_tech_stack(model, build_module_graph(model))
        assert stack.languages == ["typescript"]
        assert stack.frameworks == ["react"]
        assert stack.testing_frameworks == ["vitest", "testing-library"]
        assert stack.build_tools == ["vite", "npm"]
        assert stack.libraries == ["vite"]

    def test_python_project_with_graph(self, layered_model):
        model = ProjectModel.from_dict(layered_model)
        stack = infer_tech_stack(model, build_module_graph(model))
        assert stack.languages == ["python"]
        assert stack.frameworks == ["flask"]
        assert stack.testing_frameworks == ["pytest"]
        assert stack.libraries == ["sqlalchemy"]
        assert stack.build_tools == ["pip"]

    def test_prefix_match_respects_segments(self):
        model = ProjectModel.from_dict(make_model({"a.ts": ["nextra", "next/router"]}))
        assert infer_tech_stack(model).frameworks == ["next.js"]
        model = ProjectModel.from_dict(make_model({"a.ts": ["nextra"]}))
        assert infer_tech_stack(model).frameworks == []

    def test_framework_from_file_marker(self):
        model = ProjectModel.from_dict(make_model([make_file("manage.py", ["os"], [])]))
        stack = infer_tech_stack(model)
        assert "django" in stack.frameworks
        assert stack.libraries == []

    def test_languages_ordered_by_file_count(self):
        model = ProjectModel.from_dict(make_model({
            "a.go": [], "b.go": [], "c.py": [], "d.rs": [],
        }))
        assert infer_tech_stack(model).languages == ["go", "python", "rust"]


def test_merge_keeps_declared_order_first():
    inferred = TechStack(languages=["typescript"], frameworks=["react"])
    merged = merge_tech_stack({"languages": ["JavaScript"], "testingFrameworks": ["jest"]}, inferred)
    assert merged.languages == ["JavaScript", "typescript"]
    assert merged.frameworks == ["react"]
    assert merged.testing_frameworks == ["jest"]


def test_merge_is_case_insensitive():
    merged = merge_tech_stack(TechStack(frameworks=["React"]), TechStack(frameworks=["react"]))
    assert merged.frameworks == ["React"]


def test_declared_stack_must_be_lists():
    with pytest.raises(ValueError):
        TechStack.from_dict({"languages": 3})


# ===========================================================================
# Signature
# ===========================================================================


@pytest.mark.parametrize("count,label", [
    (0, "small"), (49, "small"), (50, "medium"), (199, "medium"),
    (200, "large"), (999, "large"), (1000, "enterprise"),
])
def test_project_size(count, label):
    assert categorize_project_size(count) == label


def test_complexity_caps_libraries():
    assert complexity_score(1, 1, 100) == 25
    assert categorize_complexity(9.9) == "simple"
    assert categorize_complexity(10) == "moderate"
    assert categorize_complexity(25) == "complex"
    assert categorize_complexity(50) == "highly-complex"


def test_compose_signature_without_graph_or_report():
    sig = compose_signature(None, None, TechStack(languages=["go"]), file_count=3)
    assert sig.primary_language == "go"
    assert sig.primary_pattern is None
    assert sig.key_modules == ()
    assert sig.complexity_score == 2


def test_signature_round_trip():
    sig = ProjectSignature(
        languages=("python",), frameworks=("flask",), patterns=("Layered",),
        naming={"functions": "snake_case"}, project_size="medium", file_count=120,
    )
    assert ProjectSignature.from_dict(sig.to_dict()) == sig


def test_signature_accepts_camel_case():
    sig = ProjectSignature.from_dict({"testingFrameworks": ["jest"], "projectSize": "large"})
    assert sig.testing_frameworks == ("jest",)
    assert sig.project_size == "large"


@pytest.mark.parametrize("data", [
    {"languages": "python"},
    {"key_modules": [None]},
    {"file_count": "many"},
    {"file_count": -1},
    {"complexity_score": "high"},
    {"project_size": 3},
    {"naming": {"functions": 1}},
    ["python"],
])
def test_signature_rejects_wrong_types(data):
    with pytest.raises(ValueError):
        ProjectSignature.from_dict(data)


# ===========================================================================
# Pipeline
# ===========================================================================


class TestAnalyzeProject:
    def test_layered_signature(self, layered_model):
        sig = analyze_project(layered_model).signature
        assert sig.to_dict() == {
            "project_name": "layered",
            "languages": ["python"],
            "frameworks": ["flask"],
            "libraries": ["sqlalchemy"],
            "testing_frameworks": ["pytest"],
            "build_tools": ["pip"],
            "patterns": ["Layered"],
            "naming": {"functions": "snake_case", "classes": "PascalCase", "files": "snake_case"},
            "project_size": "small",
            "complexity": "simple",
            "complexity_score": 5.5,
            "file_count": 6,
            "key_modules": [
                "src/services/users.py",
                "src/repositories/user_repo.py",
                "src/api/routes.py",
                "src/db/session.py",
                "tests/test_users.py",
            ],
            "cycle_count": 0,
            "layer_count": 4,
        }

    def test_cycle_counts_in_signature(self, cycle_model):
        sig = analyze_project(cycle_model).signature
        assert sig.cycle_count == 1
        assert sig.layer_count == 2

    def test_declared_stack_merged(self, react_model):
        analysis = analyze_project(react_model, declared_stack={"frameworks": ["Next.js"]})
        assert analysis.tech_stack.frameworks == ["Next.js", "react"]

    def test_diagnostics_collected(self):
        analysis = analyze_project(make_model([make_file("README.md")]))
        assert analysis.diagnostic_counts() == {"unresolved-pattern": 1}

    def test_malformed_model_raises(self):
        with pytest.raises(MalformedInputError):
            analyze_project([1, 2, 3])

    def test_deterministic(self, react_model):
        first = analyze_project(react_model).to_dict()
        second = analyze_project(dict(react_model, files=list(reversed(react_model["files"])))).to_dict()
        assert first == second


class TestAnalysisCache:
    def test_hit_returns_equal_copy(self, layered_model):
        cache = AnalysisCache()
        first = analyze_project(layered_model, cache=cache)
        second = analyze_project(layered_model, cache=cache)
        assert first is not second
        assert first.to_dict() == second.to_dict()
        assert (cache.hits, cache.misses) == (1, 1)

    def test_mutating_a_result_leaves_the_cache_intact(self, layered_model):
        cache = AnalysisCache()
        first = analyze_project(layered_model, cache=cache)
        expected = first.to_dict()
        first.diagnostics.append(None)
        first.graph.edges.clear()
        first.graph.graph.add_edge("x.py", "y.py", weight=1)
        second = analyze_project(layered_model, cache=cache)
        second.graph.cycles.append(["z.py"])
        assert analyze_project(layered_model, cache=cache).to_dict() == expected

    def test_options_change_the_key(self, layered_model):
        cache = AnalysisCache()
        analyze_project(layered_model, cache=cache)
        analyze_project(layered_model, cache=cache, graph_options=GraphOptions(max_files_to_parse=2))
        analyze_project(layered_model, cache=cache, detect_options=DetectOptions(sample_size=1))
        assert len(cache) == 3

    def test_lru_eviction(self):
        cache = AnalysisCache(max_entries=2)
        for key in ("a", "b", "c"):
            cache.put(key, key)
        assert "a" not in cache
        assert cache.get("c") == "c"

    def test_fingerprint_ignores_key_order(self):
        assert fingerprint({"a": 1, "b": 2}) == fingerprint({"b": 2, "a": 1})
        assert fingerprint({"a": 1}) != fingerprint({"a": 1}, {"x": 1})

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            AnalysisCache(max_entries=0)
