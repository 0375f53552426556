"""Tests for naming, architecture, code-idiom and consistency detection."""

from __future__ import annotations

import pytest

from conftest import make_file, make_model
from ruleforge.diagnostics import SkippedFileWarning, UnresolvedPatternWarning
from ruleforge.graph import build_module_graph
from ruleforge.model import ProjectModel
from ruleforge.patterns import ArchitecturePattern, DetectOptions, Signal, classify_name, detect_patterns
from ruleforge.patterns.architecture import detect_architecture, pattern_registry
from ruleforge.patterns.code import detect_code_patterns, is_barrel, match_test_pattern
from ruleforge.patterns.consistency import analyze_test_layout
from ruleforge.patterns.naming import (
    detect_affixes,
    detect_naming_conventions,
    file_stem,
    overall_consistency,
)


# ===========================================================================
# Naming
# ===========================================================================


@pytest.mark.parametrize("name,expected", [
    ("getUser", "camelCase"),
    ("get_user", "snake_case"),
    ("UserService", "PascalCase"),
    ("User", "PascalCase"),
    ("MAX_RETRIES", "UPPER_SNAKE_CASE"),
    ("URL", "UPPER_SNAKE_CASE"),
    ("user-card", "kebab-case"),
    ("_privateField", "camelCase"),
    ("index", None),
    ("__init__", None),
    ("x", None),
    ("render", None),
])
def test_classify_name(name, expected):
    assert classify_name(name) == expected


def test_eight_camel_two_snake():
    camel = ["getUser", "setUser", "fetchData", "parseInput", "loadConfig",
             "saveState", "buildQuery", "formatDate"]
    snake = ["get_user", "load_data"]
    model = ProjectModel.from_dict(make_model([
        make_file("src/api.ts", [], [(n, "function") for n in camel + snake]),
    ]))
    analysis = detect_naming_conventions(model)
    functions = analysis.profiles["functions"]
    assert functions["dominant"] == "camelCase"
    assert functions["confidence"] == 0.8
    assert functions["counts"]["snake_case"] == 2
    assert [o["name"] for o in analysis.outliers["functions"]] == ["get_user", "load_data"]


def test_empty_category_has_no_dominant():
    analysis = detect_naming_conventions(ProjectModel.from_dict(make_model([])))
    assert analysis.profiles["classes"] == {
        "counts": {"camelCase": 0, "snake_case": 0, "PascalCase": 0,
                   "kebab-case": 0, "UPPER_SNAKE_CASE": 0},
        "dominant": None,
        "confidence": 0.0,
        "total": 0,
        "unclassified": 0,
    }


def test_tie_goes_to_declaration_order():
    model = ProjectModel.from_dict(make_model([
        make_file("a.ts", [], [("fooBar", "function"), ("foo_bar", "function")]),
    ]))
    assert detect_naming_conventions(model).profiles["functions"]["dominant"] == "camelCase"


def test_files_and_directories_are_profiled():
    model = ProjectModel.from_dict(make_model({
        "src/user-card/user-card.tsx": [],
        "src/nav-bar/nav-bar.tsx": [],
    }))
    profiles = detect_naming_conventions(model).profiles
    assert profiles["files"]["dominant"] == "kebab-case"
    assert profiles["directories"]["dominant"] == "kebab-case"


def test_file_stem():
    assert file_stem("user-service.test.ts") == "user-service"
    assert file_stem(".eslintrc.js") == "eslintrc"


def test_overall_consistency_is_bounded():
    profiles = {
        "a": {"confidence": 1.0, "total": 3, "dominant": "camelCase", "counts": {}},
        "b": {"confidence": 0.5, "total": 1, "dominant": "snake_case", "counts": {}},
    }
    assert overall_consistency(profiles) == 0.875
    assert overall_consistency({}) == 0.0


def test_affixes():
    names = [f"handle{n}" for n in ("Click", "Submit", "Change", "Blur", "Focus")]
    prefixes = detect_affixes(names)["prefixes"]
    assert prefixes[0]["affix"] == "handle"
    assert prefixes[0]["count"] == 5


# ===========================================================================
# Architecture
# ===========================================================================


class TestArchitecture:
    def test_layered_with_graph(self, layered_model):
        model = ProjectModel.from_dict(layered_model)
        graph = build_module_graph(model)
        patterns, diagnostics = detect_architecture(model, graph)
        assert [(p.name, p.confidence) for p in patterns] == [("Layered", 1.0)]
        assert diagnostics == []

    def test_layered_without_graph_lacks_layer_signal(self, layered_model):
        patterns, _ = detect_architecture(ProjectModel.from_dict(layered_model))
        assert patterns[0].name == "Layered"
        assert patterns[0].confidence == 0.75

    def test_component_based(self, react_model):
        patterns, _ = detect_architecture(ProjectModel.from_dict(react_model))
        assert patterns[0].name == "Component-Based"
        assert patterns[0].confidence == pytest.approx(0.6667)
        assert "components/ directory" in patterns[0].evidence

    def test_mvc_sorted_before_lower_scores(self):
        model = ProjectModel.from_dict(make_model({
            "app/models/user.rb": [],
            "app/views/users/index.erb": [],
            "app/controllers/users_controller.rb": [],
            "app/services/billing.rb": [],
        }))
        patterns, _ = detect_architecture(model)
        assert patterns[0].name == "MVC"
        assert patterns[0].confidence == 1.0
        confidences = [p.confidence for p in patterns]
        assert confidences == sorted(confidences, reverse=True)

    def test_confidences_within_bounds(self, react_model, layered_model):
        for raw in (react_model, layered_model):
            patterns, _ = detect_architecture(ProjectModel.from_dict(raw), min_confidence=0.0)
            assert all(0.0 < p.confidence <= 1.0 for p in patterns)

    def test_nothing_clears_threshold(self):
        model = ProjectModel.from_dict(make_model([make_file("README.md")]))
        patterns, diagnostics = detect_architecture(model)
        assert patterns == []
        assert len(diagnostics) == 1
        warning = diagnostics[0]
        assert isinstance(warning, UnresolvedPatternWarning)
        assert warning.best_candidate is None
        assert warning.threshold == 0.3

    def test_best_candidate_named_below_threshold(self):
        model = ProjectModel.from_dict(make_model({"services/a.py": []}))
        patterns, diagnostics = detect_architecture(model, min_confidence=0.9)
        assert patterns == []
        assert diagnostics[0].best_candidate == "Layered"
        assert diagnostics[0].best_confidence == 0.25

    def test_threshold_is_exclusive(self):
        model = ProjectModel.from_dict(make_model({"services/a.py": []}))
        at_threshold, diagnostics = detect_architecture(model, min_confidence=0.25)
        assert at_threshold == []
        assert diagnostics[0].best_candidate == "Layered"
        below, diagnostics = detect_architecture(model, min_confidence=0.2)
        assert ("Layered", 0.25) in [(p.name, p.confidence) for p in below]
        assert diagnostics == []

    def test_extra_pattern_registered(self):
        extra = ArchitecturePattern("Plugins", (
            Signal("plugins/ directory", lambda lo: lo.has_dir("plugins")),
        ))
        model = ProjectModel.from_dict(make_model({"plugins/x.py": []}))
        patterns, _ = detect_architecture(model, patterns=pattern_registry([extra]))
        assert [p.name for p in patterns] == ["Plugins"]

    def test_duplicate_pattern_name_ignored(self):
        dup = ArchitecturePattern("MVC", ())
        assert len(pattern_registry([dup])) == len(pattern_registry())


# ===========================================================================
# Code idioms and consistency
# ===========================================================================


@pytest.mark.parametrize("path,expected", [
    ("tests/test_users.py", "test_*.py"),
    ("pkg/users_test.go", "*_test.go"),
    ("src/Button.test.tsx", "*.test.tsx"),
    ("src/api.spec.ts", "*.spec.ts"),
    ("src/app.ts", None),
])
def test_match_test_pattern(path, expected):
    assert match_test_pattern(path) == expected


def test_is_barrel():
    assert is_barrel("src/components/index.ts")
    assert is_barrel("pkg/__init__.py")
    assert not is_barrel("src/components/Button.tsx")


def test_code_patterns_react(react_model):
    model = ProjectModel.from_dict(react_model)
    result = detect_code_patterns(model.sorted_files())
    assert result["sampled_files"] == 8
    assert result["component_style"] == "function"
    assert result["idioms"]["function_components"]["count"] == 3
    assert result["idioms"]["hooks"]["examples"] == ["src/hooks/useTheme.ts"]
    assert result["idioms"]["barrel_files"]["count"] == 1
    assert result["idioms"]["test_files"]["count"] == 1


def test_code_patterns_services_and_errors():
    model = ProjectModel.from_dict(make_model([
        make_file("src/user.service.ts", ["tsyringe"], [("UserService", "class")]),
        make_file("src/errors.ts", [], [("NotFoundError", "class"), ("createClient", "function")]),
    ]))
    idioms = detect_code_patterns(model.sorted_files())["idioms"]
    assert set(idioms) == {"services", "error_types", "factories", "dependency_injection"}


def test_test_layout_organization():
    assert analyze_test_layout(["tests/test_a.py", "tests/test_b.py"])["organization"] == "separate"
    assert analyze_test_layout(["src/a.test.ts"])["organization"] == "colocated"
    assert analyze_test_layout(["src/a.ts"])["organization"] == "none"


# ===========================================================================
# detect_patterns
# ===========================================================================


class TestDetectPatterns:
    def test_report_for_layered_project(self, layered_model):
        graph = build_module_graph(layered_model)
        report = detect_patterns(layered_model, graph)
        assert report.primary_pattern == "Layered"
        assert report.dominant_naming() == {
            "functions": "snake_case",
            "classes": "PascalCase",
            "files": "snake_case",
        }
        metrics = report.consistency_metrics
        assert metrics["tests"]["organization"] == "separate"
        assert metrics["imports"]["internal_style"] == "module"
        assert 0.0 <= metrics["naming_consistency"] <= 1.0

    def test_react_imports_are_relative(self, react_model):
        report = detect_patterns(react_model)
        imports = report.consistency_metrics["imports"]
        assert imports["relative"] == 5
        assert imports["alias"] == 1
        assert imports["internal_style"] == "relative"
        assert report.consistency_metrics["barrel_files"] == 1

    def test_sample_size_limits_code_patterns(self, react_model):
        report = detect_patterns(react_model, options=DetectOptions(sample_size=2))
        assert report.code_patterns["sampled_files"] == 2

    def test_malformed_model_degrades(self):
        report = detect_patterns(42)
        assert report.architectural_patterns == []
        assert len(report.diagnostics) == 1
        assert isinstance(report.diagnostics[0], SkippedFileWarning)

    def test_invalid_options(self):
        with pytest.raises(ValueError):
            DetectOptions(min_confidence=1.5)
        with pytest.raises(ValueError):
            DetectOptions(sample_size=-1)

    def test_to_dict_serializable(self, react_model):
        data = detect_patterns(react_model).to_dict()
        assert data["architectural_patterns"][0]["name"] == "Component-Based"
        assert set(data) == {
            "naming_conventions", "architectural_patterns", "code_patterns",
            "consistency_metrics", "naming_outliers", "diagnostics",
        }
