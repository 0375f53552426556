"""End-to-end CLI tests through click's CliRunner."""

from __future__ import annotations

import json

import pytest

from conftest import (
    assert_json_envelope,
    invoke_cli,
    make_file,
    make_model,
    parse_json_output,
    write_rule_files,
)
from ruleforge.exit_codes import EXIT_MALFORMED_INPUT, EXIT_PARTIAL, EXIT_USAGE

CORE_RULE = """---
description: Core coding standards
category: core
alwaysApply: true
---
# Core Standards

- Prefer small, pure functions.
"""

TS_RULE = """---
description: TypeScript strictness
category: language
globs: ["**/*.ts", "**/*.tsx"]
---
# TypeScript

- Enable strict mode in every package.
"""


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def layered_file(workdir, layered_model):
    path = workdir / "layered.json"
    path.write_text(json.dumps(layered_model), encoding="utf-8")
    return str(path)


@pytest.fixture
def rules_dir(workdir):
    return str(write_rule_files(workdir / "rules", {"core.md": CORE_RULE, "ts.md": TS_RULE}))


# ===========================================================================
# Top level
# ===========================================================================


def test_help_lists_categories(cli_runner):
    result = invoke_cli(cli_runner, ["--help"])
    assert result.exit_code == 0
    assert "Analysis:" in result.output
    assert "adapt" in result.output


def test_version(cli_runner):
    result = invoke_cli(cli_runner, ["--version"])
    assert result.exit_code == 0
    assert "version" in result.output


class TestPlatforms:
    def test_text(self, cli_runner):
        result = invoke_cli(cli_runner, ["platforms"])
        assert result.exit_code == 0
        assert "github-copilot" in result.output
        assert "per_guideline=600" in result.output

    def test_json(self, cli_runner):
        data = parse_json_output(invoke_cli(cli_runner, ["platforms"], json_mode=True), "platforms")
        assert_json_envelope(data, "platforms")
        assert data["summary"] == {"platforms": 4}
        assert [p["id"] for p in data["platforms"]] == ["claude", "cursor", "github-copilot", "windsurf"]


# ===========================================================================
# analyze / signature
# ===========================================================================


class TestAnalyze:
    def test_json(self, cli_runner, layered_file):
        data = parse_json_output(invoke_cli(cli_runner, ["analyze", layered_file], json_mode=True), "analyze")
        assert_json_envelope(data, "analyze")
        assert data["summary"]["files"] == 6
        assert data["summary"]["layers"] == 4
        assert data["summary"]["primary_pattern"] == "Layered"
        assert data["graph"]["cycles"] == []
        assert data["signature"]["frameworks"] == ["flask"]

    def test_text(self, cli_runner, layered_file):
        result = invoke_cli(cli_runner, ["analyze", layered_file])
        assert result.exit_code == 0
        assert "Project: layered" in result.output
        assert "Layered" in result.output
        assert "Key modules:" in result.output

    def test_cycles_in_text(self, cli_runner, workdir, cycle_model):
        path = workdir / "cycle.json"
        path.write_text(json.dumps(cycle_model), encoding="utf-8")
        result = invoke_cli(cli_runner, ["analyze", str(path)])
        assert "src/a.ts -> src/b.ts -> src/c.ts" in result.output

    def test_max_files_flag(self, cli_runner, layered_file):
        data = parse_json_output(
            invoke_cli(cli_runner, ["analyze", layered_file, "--max-files", "100", "--sample-size", "2"],
                       json_mode=True),
        )
        assert data["summary"]["files_parsed"] == 6
        assert data["patterns"]["code_patterns"]["sampled_files"] == 2

    def test_declared_stack(self, cli_runner, workdir, layered_file):
        stack = workdir / "stack.json"
        stack.write_text(json.dumps({"frameworks": ["Celery"]}), encoding="utf-8")
        data = parse_json_output(
            invoke_cli(cli_runner, ["analyze", layered_file, "--stack", str(stack)], json_mode=True),
        )
        assert data["tech_stack"]["frameworks"] == ["Celery", "flask"]

    def test_source_root_extraction(self, cli_runner, workdir):
        src = workdir / "proj"
        (src / "pkg").mkdir(parents=True)
        (src / "pkg" / "core.py").write_text("def run():\n    pass\n", encoding="utf-8")
        (src / "pkg" / "cli.py").write_text("from pkg.core import run\n", encoding="utf-8")
        model = workdir / "model.json"
        model.write_text(json.dumps({"files": ["pkg/core.py", "pkg/cli.py"]}), encoding="utf-8")
        data = parse_json_output(
            invoke_cli(cli_runner, ["analyze", str(model), "--source-root", str(src)], json_mode=True),
        )
        assert data["graph"]["edges"] == [{"source": "pkg/cli.py", "target": "pkg/core.py", "weight": 1}]

    def test_malformed_model_exit_code(self, cli_runner, workdir):
        path = workdir / "bad.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        result = invoke_cli(cli_runner, ["analyze", str(path)])
        assert result.exit_code == EXIT_MALFORMED_INPUT
        assert "malformed input" in result.output

    def test_invalid_json_exit_code(self, cli_runner, workdir):
        path = workdir / "bad.json"
        path.write_text("{nope", encoding="utf-8")
        assert invoke_cli(cli_runner, ["analyze", str(path)]).exit_code == EXIT_MALFORMED_INPUT

    def test_strict_exit_code(self, cli_runner, workdir):
        path = workdir / "readme.json"
        path.write_text(json.dumps(make_model([make_file("README.md")])), encoding="utf-8")
        result = invoke_cli(cli_runner, ["--json", "--strict", "analyze", str(path)])
        assert result.exit_code == EXIT_PARTIAL

    def test_bad_env_is_usage_error(self, cli_runner, layered_file, monkeypatch):
        monkeypatch.setenv("RULEFORGE_MAX_FILES", "lots")
        assert invoke_cli(cli_runner, ["analyze", layered_file]).exit_code == EXIT_USAGE


class TestSignature:
    def test_raw(self, cli_runner, layered_file):
        result = invoke_cli(cli_runner, ["signature", layered_file, "--raw"])
        assert result.exit_code == 0
        sig = json.loads(result.stdout)
        assert sig["patterns"] == ["Layered"]
        assert sig["key_modules"][0] == "src/services/users.py"

    def test_json(self, cli_runner, layered_file):
        data = parse_json_output(invoke_cli(cli_runner, ["signature", layered_file], json_mode=True))
        assert_json_envelope(data, "signature")
        assert data["summary"]["primary_language"] == "python"

    def test_text(self, cli_runner, layered_file):
        result = invoke_cli(cli_runner, ["signature", layered_file])
        assert "project_size" in result.output
        assert "small" in result.output


# ===========================================================================
# adapt
# ===========================================================================


class TestAdapt:
    def test_json(self, cli_runner, rules_dir):
        data = parse_json_output(invoke_cli(cli_runner, ["adapt", rules_dir, "-p", "cursor"], json_mode=True))
        assert_json_envelope(data, "adapt")
        assert data["summary"]["total_files"] == 2
        assert [f["path"] for f in data["files"]] == [
            ".cursor/rules/always-core-coding-standards.mdc",
            ".cursor/rules/auto-typescript-strictness.mdc",
        ]
        assert data["written"] == []
        assert data["diagnostic_counts"] == {}

    def test_text(self, cli_runner, rules_dir):
        result = invoke_cli(cli_runner, ["adapt", rules_dir, "--platform", "claude"])
        assert result.exit_code == 0
        assert "Platform: Claude Code (claude)" in result.output
        assert "CLAUDE.md" in result.output

    def test_signature_file(self, cli_runner, workdir, rules_dir, layered_file):
        sig = invoke_cli(cli_runner, ["signature", layered_file], json_mode=True)
        (workdir / "sig.json").write_text(sig.stdout, encoding="utf-8")
        data = parse_json_output(invoke_cli(
            cli_runner, ["adapt", rules_dir, "-p", "claude", "--signature", "sig.json"], json_mode=True,
        ))
        memory = next(f for f in data["files"] if f["path"] == "CLAUDE.md")
        assert memory["content"].startswith("# layered - Project Memory")
        assert "- Architecture: Layered" in memory["content"]

    def test_malformed_signature_file(self, cli_runner, workdir, rules_dir):
        (workdir / "sig.json").write_text(json.dumps({"file_count": "many"}), encoding="utf-8")
        result = invoke_cli(cli_runner, ["adapt", rules_dir, "-p", "claude", "--signature", "sig.json"])
        assert result.exit_code == EXIT_MALFORMED_INPUT
        assert "file_count" in result.output

    def test_model_option(self, cli_runner, rules_dir, layered_file):
        data = parse_json_output(invoke_cli(
            cli_runner, ["adapt", rules_dir, "-p", "claude", "--model", layered_file,
                         "--project-name", "api"], json_mode=True,
        ))
        memory = next(f for f in data["files"] if f["path"] == "CLAUDE.md")
        assert memory["content"].startswith("# api - Project Memory")

    def test_signature_and_model_conflict(self, cli_runner, rules_dir, layered_file):
        result = invoke_cli(cli_runner, ["adapt", rules_dir, "-p", "claude",
                                         "--model", layered_file, "--signature", layered_file])
        assert result.exit_code == EXIT_USAGE

    def test_write_output(self, cli_runner, workdir, rules_dir):
        result = invoke_cli(cli_runner, ["adapt", rules_dir, "-p", "claude", "-o", "out", "--home", "home"])
        assert result.exit_code == 0
        assert (workdir / "out" / "CLAUDE.md").is_file()
        assert (workdir / "home" / ".claude" / "CLAUDE.md").is_file()

    def test_project_only(self, cli_runner, workdir, rules_dir):
        data = parse_json_output(invoke_cli(
            cli_runner, ["adapt", rules_dir, "-p", "claude", "-o", "out", "--home", "home", "--project-only"],
            json_mode=True,
        ))
        assert not (workdir / "home").exists()
        project_files = [f for f in data["files"] if f["scope"] != "global"]
        assert len(data["written"]) == len(project_files)
        assert (workdir / "out" / "CLAUDE.md").is_file()

    def test_platform_from_config(self, cli_runner, workdir, rules_dir):
        (workdir / ".ruleforge.json").write_text(json.dumps({"platform": "windsurf"}), encoding="utf-8")
        data = parse_json_output(invoke_cli(cli_runner, ["adapt", rules_dir], json_mode=True))
        assert data["summary"]["platform"] == "windsurf"

    def test_missing_platform(self, cli_runner, rules_dir):
        assert invoke_cli(cli_runner, ["adapt", rules_dir]).exit_code == EXIT_USAGE

    def test_unknown_platform(self, cli_runner, rules_dir):
        result = invoke_cli(cli_runner, ["adapt", rules_dir, "-p", "notepad"])
        assert result.exit_code == EXIT_USAGE
        assert "known:" in result.output
