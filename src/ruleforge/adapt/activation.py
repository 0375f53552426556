"""Activation classes: how a rule is triggered on a platform."""

from __future__ import annotations

from ruleforge.adapt.rules import Rule, RuleFrontmatter

ALWAYS = "always"
AUTO_ATTACHED = "auto-attached"
AGENT_REQUESTED = "agent-requested"
MANUAL = "manual"

ACTIVATION_CLASSES: tuple[str, ...] = (ALWAYS, AUTO_ATTACHED, AGENT_REQUESTED, MANUAL)

# Cursor file-name prefixes
FILE_PREFIX = {
    ALWAYS: "always",
    AUTO_ATTACHED: "auto",
    AGENT_REQUESTED: "agent",
    MANUAL: "manual",
}


def classify(rule: Rule | RuleFrontmatter) -> str:
    """Exactly one class per rule, decided by its metadata alone."""
    fm = rule.frontmatter if isinstance(rule, Rule) else rule
    if fm.always_apply:
        return ALWAYS
    if fm.globs:
        return AUTO_ATTACHED
    if fm.description:
        return AGENT_REQUESTED
    return MANUAL


def windsurf_trigger(rule: Rule) -> str:
    """Windsurf's own trigger names; task rules are always manual there."""
    fm = rule.frontmatter
    if fm.category == "task":
        return "manual"
    activation = classify(fm)
    if activation == ALWAYS:
        return "always_on"
    if activation == AUTO_ATTACHED:
        return "glob"
    return "model_decision"


def group_by_activation(rules: list[Rule]) -> dict[str, list[Rule]]:
    groups: dict[str, list[Rule]] = {c: [] for c in ACTIVATION_CLASSES}
    for rule in rules:
        groups[classify(rule)].append(rule)
    return groups
