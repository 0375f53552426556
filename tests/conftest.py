"""Shared test fixtures and helpers for ruleforge tests.

Provides:
- Model builders: make_file(), make_model() for scanner-shaped input
- Ready-made projects: cycle_model, layered_model, react_model
- Rule helpers: make_rule(), write_rule_files()
- CliRunner fixtures: cli_runner, invoke_cli()
- JSON validation helpers: parse_json_output(), assert_json_envelope()
"""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

# ===========================================================================
# Model builders
# ===========================================================================


def make_file(path, imports=None, names=None):
    """One scanner file entry.  ``names`` is a list of (name, kind) pairs.

    Passing ``imports=None`` and ``names=None`` yields a file without
    extracted symbols.
    """
    entry = {"path": path}
    if imports is not None or names is not None:
        entry["extractedSymbols"] = {
            "imports": list(imports or []),
            "declaredNames": [{"name": n, "kind": k} for n, k in (names or [])],
        }
    return entry


def make_model(files, name="demo"):
    """A scanner model from make_file() entries or ``{path: imports}``."""
    if isinstance(files, dict):
        files = [make_file(p, imports) for p, imports in files.items()]
    return {"name": name, "files": list(files)}


@pytest.fixture
def cycle_model():
    """A -> B -> C -> A plus D -> A."""
    return make_model({
        "src/a.ts": ["./b"],
        "src/b.ts": ["./c"],
        "src/c.ts": ["./a"],
        "src/d.ts": ["./a"],
    })


@pytest.fixture
def layered_model():
    """api -> services -> repositories -> db, no cycles."""
    return make_model([
        make_file("src/api/routes.py", ["src.services.users", "flask"], [("register_routes", "function")]),
        make_file("src/services/users.py", ["src.repositories.user_repo"], [("UserService", "class")]),
        make_file("src/repositories/user_repo.py", ["src.db.session", "sqlalchemy"],
                  [("UserRepository", "class")]),
        make_file("src/db/session.py", ["sqlalchemy.orm"], [("make_session", "function")]),
        make_file("tests/test_users.py", ["pytest", "src.services.users"], [("test_create_user", "function")]),
        make_file("pyproject.toml"),
    ], name="layered")


@pytest.fixture
def react_model():
    return make_model([
        make_file("package.json"),
        make_file("vite.config.ts", ["vite"], []),
        make_file("src/components/Button.tsx", ["react", "./Button.module.css"],
                  [("Button", "function"), ("handleClick", "function")]),
        make_file("src/components/Card.tsx", ["react", "@/hooks/useTheme"],
                  [("Card", "function"), ("cardTitle", "variable")]),
        make_file("src/components/Modal.tsx", ["react", "react-dom"],
                  [("Modal", "function"), ("isOpen", "variable")]),
        make_file("src/components/index.ts", ["./Button", "./Card", "./Modal"], []),
        make_file("src/hooks/useTheme.ts", ["react"], [("useTheme", "function")]),
        make_file("src/components/Button.test.tsx", ["vitest", "@testing-library/react", "./Button"],
                  [("renderButton", "function")]),
    ], name="ui-kit")


# ===========================================================================
# Rule helpers
# ===========================================================================


def make_rule(description="", category="general", globs=None, always_apply=False,
              framework="", body=None):
    frontmatter = {"description": description, "category": category, "alwaysApply": always_apply}
    if globs is not None:
        frontmatter["globs"] = globs
    if framework:
        frontmatter["framework"] = framework
    if body is None:
        title = description or category
        body = f"# {title}\n\n- Follow the {category} conventions of this project.\n"
    return {"frontmatter": frontmatter, "content": body}


def write_rule_files(directory, files):
    """Write ``{relative_name: text}`` under *directory*; returns the directory."""
    directory.mkdir(parents=True, exist_ok=True)
    for name, text in files.items():
        path = directory / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return directory


@pytest.fixture(autouse=True)
def _isolated_plugins(monkeypatch):
    """Fresh plugin registry and no ruleforge env overrides per test."""
    from ruleforge.plugins import _reset_plugin_state_for_tests

    for var in ("RULEFORGE_PLUGIN_MODULES", "RULEFORGE_MAX_FILES", "RULEFORGE_SAMPLE_SIZE"):
        monkeypatch.delenv(var, raising=False)
    _reset_plugin_state_for_tests()
    yield
    _reset_plugin_state_for_tests()


# ===========================================================================
# CLI helpers
# ===========================================================================


@pytest.fixture
def cli_runner():
    """Provide a Click CliRunner for in-process CLI testing."""
    return CliRunner()


def invoke_cli(runner, args, json_mode=False):
    """Invoke the ruleforge CLI via CliRunner.

    Args:
        runner: CliRunner instance
        args: list of CLI arguments (e.g. ["platforms"])
        json_mode: if True, prepend --json flag
    Returns:
        click.testing.Result
    """
    from ruleforge.cli import cli

    full_args = []
    if json_mode:
        full_args.append("--json")
    full_args.extend(args)
    return runner.invoke(cli, full_args, catch_exceptions=False)


def parse_json_output(result, command=None):
    """Parse JSON from a CliRunner result, failing with context."""
    assert result.exit_code == 0, f"Command {command or '?'} failed (exit {result.exit_code}):\n{result.output}"
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        pytest.fail(f"Invalid JSON from {command or '?'}: {e}\nOutput was:\n{result.stdout[:500]}")


def assert_json_envelope(data, command=None):
    """Validate the ruleforge envelope contract: schema, command, version, summary."""
    assert isinstance(data, dict), f"Expected dict, got {type(data)}"
    for key in ("schema", "schema_version", "command", "version", "summary"):
        assert key in data, f"Missing '{key}' key in envelope"
    assert "_meta" not in data
    if command:
        assert data["command"] == command, f"Expected command={command}, got {data['command']}"
    assert isinstance(data["summary"], dict)
