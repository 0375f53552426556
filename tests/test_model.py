"""Tests for scanner model parsing and normalization."""

from __future__ import annotations

import pytest

from conftest import make_file, make_model
from ruleforge.diagnostics import SkippedFileWarning
from ruleforge.exit_codes import EXIT_MALFORMED_INPUT, MalformedInputError
from ruleforge.model import ProjectModel, coerce_model, derive_directories, normalize_path


class TestNormalizePath:
    def test_backslashes_and_dot_prefix(self):
        assert normalize_path(".\\src\\app.ts") == "src/app.ts"

    def test_trailing_slash_and_dot_segments(self):
        assert normalize_path("./src/lib/../util/") == "src/util"

    def test_root(self):
        assert normalize_path(".") == ""


class TestFromDict:
    def test_camel_case_symbols(self):
        model = ProjectModel.from_dict(make_model([
            make_file("src/App.tsx", ["react"], [("App", "function")]),
        ]))
        f = model.files[0]
        assert f.extension == ".tsx"
        assert f.extracted_symbols.imports == ("react",)
        assert f.extracted_symbols.declared_names[0].name == "App"

    def test_snake_case_symbols(self):
        model = ProjectModel.from_dict({
            "files": [{"path": "a.py", "extracted_symbols": {"imports": ["os"], "declared_names": []}}],
        })
        assert model.files[0].extracted_symbols.imports == ("os",)

    def test_files_sorted_and_directories_derived(self):
        model = ProjectModel.from_dict(make_model({"z/b.py": [], "a/x/c.py": []}))
        assert model.file_paths() == ["a/x/c.py", "z/b.py"]
        assert [d.path for d in model.directories] == ["a", "a/x", "z"]
        assert [d.depth for d in model.directories] == [0, 1, 0]

    def test_bad_symbols_payload_is_a_diagnostic(self):
        model = ProjectModel.from_dict({
            "files": [{"path": "a.py", "extractedSymbols": {"imports": "os"}}],
        })
        assert model.files[0].extracted_symbols is None
        assert len(model.diagnostics) == 1
        assert isinstance(model.diagnostics[0], SkippedFileWarning)

    def test_duplicate_paths_rejected(self):
        with pytest.raises(MalformedInputError) as exc:
            ProjectModel.from_dict({"files": [{"path": "a.py"}, {"path": "./a.py"}]})
        assert exc.value.stage == "model"
        assert exc.value.exit_code == EXIT_MALFORMED_INPUT

    def test_files_must_be_a_list(self):
        with pytest.raises(MalformedInputError):
            ProjectModel.from_dict({"files": "a.py"})

    def test_to_dict_round_trip(self):
        original = ProjectModel.from_dict(make_model([
            make_file("src/a.py", ["os"], [("run", "function")]),
            make_file("README.md"),
        ]))
        assert ProjectModel.from_dict(original.to_dict()) == original


def test_coerce_model_rejects_non_mappings():
    with pytest.raises(MalformedInputError) as exc:
        coerce_model(["a.py"], "graph")
    assert exc.value.stage == "graph"
    assert "list" in exc.value.detail


def test_derive_directories_nested():
    dirs = derive_directories(["a/b/c/d.py"])
    assert [(d.path, d.name, d.depth) for d in dirs] == [
        ("a", "a", 0), ("a/b", "b", 1), ("a/b/c", "c", 2),
    ]
