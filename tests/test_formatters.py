"""Unit tests for ruleforge.output.formatter: pure functions, no fixtures needed."""

from __future__ import annotations

import json

from ruleforge.output.formatter import (
    ENVELOPE_SCHEMA_NAME,
    format_table,
    json_envelope,
    pct,
    section,
    to_json,
    truncate_lines,
)

# ── section ──────────────────────────────────────────────────────────


class TestSection:
    def test_no_budget(self):
        assert section("Title:", ["a", "b"]) == "Title:\na\nb"

    def test_budget_truncates(self):
        out = section("T", ["1", "2", "3"], budget=2)
        assert out.splitlines() == ["T", "1", "2", "  (+1 more)"]


# ── small helpers ────────────────────────────────────────────────────


def test_truncate_lines():
    assert truncate_lines(["a", "b", "c"], 2) == ["a", "b", "(+1 more)"]
    assert truncate_lines(["a"], 2) == ["a"]


def test_pct():
    assert pct(0.8) == "80%"
    assert pct(1.0) == "100%"


# ── format_table ─────────────────────────────────────────────────────


class TestFormatTable:
    def test_empty(self):
        assert format_table(["A"], []) == "(none)"

    def test_columns_aligned(self):
        out = format_table(["Id", "Name"], [["cursor", "Cursor"], ["claude", "Claude Code"]])
        lines = out.splitlines()
        assert lines[0] == "Id      Name"
        assert lines[1] == "------  -----------"
        assert lines[3] == "claude  Claude Code"

    def test_budget(self):
        out = format_table(["N"], [[str(i)] for i in range(5)], budget=2)
        assert out.splitlines()[-1] == "(+3 more)"


# ── JSON ─────────────────────────────────────────────────────────────


class TestJson:
    def test_sorted_keys(self):
        assert list(json.loads(to_json({"b": 1, "a": {"d": 1, "c": 2}}))) == ["a", "b"]
        assert to_json({"b": 1, "a": 2}) == to_json({"a": 2, "b": 1})

    def test_envelope(self):
        env = json_envelope("adapt", summary={"total_files": 2}, files=[])
        assert env["schema"] == ENVELOPE_SCHEMA_NAME
        assert env["schema_version"] == "1.0.0"
        assert env["command"] == "adapt"
        assert env["summary"] == {"total_files": 2}
        assert env["files"] == []
        assert "timestamp" not in json.dumps(env)

    def test_envelope_default_summary(self):
        assert json_envelope("platforms")["summary"] == {}
