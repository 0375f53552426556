"""Load rule files (``*.md`` / ``*.mdc`` with YAML front matter) from disk."""

from __future__ import annotations

import logging
from pathlib import Path

from ruleforge.adapt.rules import Rule, RuleFrontmatter, split_frontmatter
from ruleforge.diagnostics import SkippedFileWarning
from ruleforge.exit_codes import RuleMetadataError

log = logging.getLogger(__name__)

RULE_SUFFIXES = (".md", ".mdc")


def iter_rule_files(rules_dir: Path) -> list[Path]:
    """Rule files under *rules_dir*, recursively, sorted by relative path."""
    rules_dir = Path(rules_dir)
    files = [
        p for p in rules_dir.rglob("*")
        if p.is_file() and p.suffix.lower() in RULE_SUFFIXES
        and not any(part.startswith(".") for part in p.relative_to(rules_dir).parts)
    ]
    return sorted(files, key=lambda p: p.relative_to(rules_dir).as_posix())


def load_rules(rules_dir) -> tuple[list[Rule], list[SkippedFileWarning]]:
    """Parse every rule file under *rules_dir*.

    Unreadable files and files with broken front matter are skipped and
    reported; ``source`` on each rule is its path relative to *rules_dir*.
    """
    rules_dir = Path(rules_dir)
    if not rules_dir.is_dir():
        raise FileNotFoundError(f"rules directory not found: {rules_dir}")

    rules: list[Rule] = []
    skipped: list[SkippedFileWarning] = []
    for path in iter_rule_files(rules_dir):
        rel = path.relative_to(rules_dir).as_posix()
        try:
            text = path.read_text(encoding="utf-8")
            data, _ = split_frontmatter(text)
            rules.append(Rule(RuleFrontmatter.from_dict(data), text, rel))
        except (OSError, UnicodeDecodeError, RuleMetadataError) as exc:
            log.warning("skipping rule file %s: %s", rel, exc)
            skipped.append(SkippedFileWarning(f"rule file {rel} skipped: {exc}", path=rel, reason=str(exc)))
    log.debug("loaded %d rules from %s", len(rules), rules_dir)
    return rules, skipped
