"""Envelope renderers: turn validated rules into platform artifacts.

One renderer per envelope style.  Renderers never truncate; each artifact
names the character limit it falls under in ``metadata["limit"]`` and the
engine enforces it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import yaml

from ruleforge.adapt.activation import FILE_PREFIX, classify, windsurf_trigger
from ruleforge.adapt.platforms import PlatformDescriptor
from ruleforge.adapt.rules import Rule, command_name, extract_key_points, slugify

ARTIFACT_TYPES = ("memory", "command", "rule", "instructions")
ARTIFACT_SCOPES = ("global", "project", "user", "workspace")

CATEGORY_TAGS = {
    "core": "development-standards",
    "language": "language-standards",
    "technology": "technology-guidelines",
    "framework": "technology-guidelines",
    "testing": "testing-patterns",
    "task": "task-workflow",
    "assistant": "ai-assistance",
}
DEFAULT_TAG = "rule"

_TECH_CATEGORIES = frozenset({"technology", "framework", "language"})
_PROJECT_COMMANDS = frozenset({"task"})
_USER_COMMANDS = frozenset({"assistant", "workflow"})

_CONSOLIDATE_MIN_RULES = 3


def category_tag(category: str) -> str:
    return CATEGORY_TAGS.get(category, DEFAULT_TAG)


@dataclass(frozen=True)
class PlatformArtifact:
    path: str
    content: str
    type: str
    scope: str
    metadata: dict[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        if self.type not in ARTIFACT_TYPES:
            raise ValueError(f"unknown artifact type {self.type!r}")
        if self.scope not in ARTIFACT_SCOPES:
            raise ValueError(f"unknown artifact scope {self.scope!r}")

    @property
    def limit_kind(self) -> str | None:
        return self.metadata.get("limit")

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "content": self.content,
            "type": self.type,
            "scope": self.scope,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class RenderContext:
    platform: PlatformDescriptor
    project_name: str = "project"
    signature: Any = None


Renderer = Callable[[list[Rule], RenderContext], list[PlatformArtifact]]
RENDERERS: dict[str, Renderer] = {}


def _renderer(style: str):
    def decorator(fn: Renderer) -> Renderer:
        RENDERERS[style] = fn
        return fn
    return decorator


def render(rules: list[Rule], ctx: RenderContext) -> list[PlatformArtifact]:
    try:
        fn = RENDERERS[ctx.platform.envelope_style]
    except KeyError:
        raise ValueError(f"no renderer for envelope style {ctx.platform.envelope_style!r}") from None
    return fn(rules, ctx)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _body_without_title(rule: Rule) -> str:
    """Rule body minus its leading ``# title`` line."""
    lines = rule.body.splitlines()
    for i, line in enumerate(lines):
        if line.strip():
            if line.startswith("# "):
                return "\n".join(lines[i + 1:]).strip()
            break
    return rule.body


def _join_path(directory: str, name: str) -> str:
    if not directory:
        return name
    return f"{directory.rstrip('/')}/{name}"


def _front_matter(data: dict[str, Any]) -> str:
    dumped = yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True)
    return f"---\n{dumped}---\n"


def _rule_metadata(rule: Rule, **extra: Any) -> dict[str, Any]:
    meta = {
        "rules": [rule.slug],
        "category": rule.frontmatter.category,
        "activation": classify(rule),
    }
    meta.update(extra)
    return meta


def _group_metadata(rules: list[Rule], **extra: Any) -> dict[str, Any]:
    meta = {"rules": [r.slug for r in rules]}
    meta.update(extra)
    return meta


def _section(rule: Rule, level: int = 2) -> str:
    body = _body_without_title(rule)
    heading = "#" * level + " " + rule.title
    return f"{heading}\n\n{body}".rstrip() if body else heading


def _join_list(values, empty: str = "none detected") -> str:
    values = list(values or ())
    return ", ".join(values) if values else empty


def _overview_lines(signature) -> list[str]:
    if signature is None:
        return []
    lines = [
        f"- Languages: {_join_list(signature.languages)}",
        f"- Frameworks: {_join_list(signature.frameworks)}",
        f"- Architecture: {signature.primary_pattern or 'not determined'}",
    ]
    if signature.testing_frameworks:
        lines.append(f"- Testing: {_join_list(signature.testing_frameworks)}")
    if signature.naming:
        naming = ", ".join(f"{k}: {v}" for k, v in sorted(signature.naming.items()))
        lines.append(f"- Naming: {naming}")
    lines.append(
        f"- Size: {signature.project_size} ({signature.file_count} files), "
        f"complexity {signature.complexity}"
    )
    return lines


# ---------------------------------------------------------------------------
# claude-memory: CLAUDE.md hierarchy plus slash commands
# ---------------------------------------------------------------------------

def _command_artifact(rule: Rule, directory: str, scope: str) -> PlatformArtifact:
    name = command_name(rule.frontmatter.description) if rule.frontmatter.description else rule.slug
    content = f"# {name}\n\n{rule.body}\n\nArguments: $ARGUMENTS\n"
    return PlatformArtifact(
        path=_join_path(directory, f"{name}.md"),
        content=content,
        type="command",
        scope=scope,
        metadata=_rule_metadata(rule, command=name, limit="per_command"),
    )


@_renderer("claude-memory")
def render_claude(rules: list[Rule], ctx: RenderContext) -> list[PlatformArtifact]:
    core, patterns, project_cmds, user_cmds = [], [], [], []
    for rule in rules:
        fm = rule.frontmatter
        is_core = fm.category == "core" or fm.always_apply
        if is_core:
            core.append(rule)
        if fm.category in _PROJECT_COMMANDS:
            project_cmds.append(rule)
        elif fm.category in _USER_COMMANDS:
            user_cmds.append(rule)
        elif not is_core:
            patterns.append(rule)

    artifacts: list[PlatformArtifact] = []

    global_rules = [r for r in core if r.frontmatter.category == "core" and r.frontmatter.always_apply]
    if global_rules:
        parts = ["# Global Development Standards"]
        parts.extend(_section(r) for r in global_rules)
        artifacts.append(PlatformArtifact(
            path="~/.claude/CLAUDE.md",
            content="\n\n".join(parts) + "\n",
            type="memory",
            scope="global",
            metadata=_group_metadata(global_rules, limit="global_memory"),
        ))

    project_memory = bool(core or patterns)
    if core:
        parts = [f"# {ctx.project_name} - Project Memory"]
        overview = _overview_lines(ctx.signature)
        if overview:
            parts.append("## Project Overview\n\n" + "\n".join(overview))
        imports = []
        if patterns:
            imports.append("- @CLAUDE-patterns.md")
        imports.append("- @CLAUDE-personal.md")
        parts.append("## Memory Hierarchy\n\n" + "\n".join(imports))
        parts.append("## Development Standards")
        parts.extend(_section(r, level=3) for r in core)
        artifacts.append(PlatformArtifact(
            path="CLAUDE.md",
            content="\n\n".join(parts) + "\n",
            type="memory",
            scope="project",
            metadata=_group_metadata(core, limit="per_file"),
        ))

    if patterns:
        grouped: dict[str, list[Rule]] = {}
        for rule in patterns:
            key = rule.frontmatter.framework or rule.frontmatter.category
            grouped.setdefault(key, []).append(rule)
        parts = [f"# {ctx.project_name} - Technology Patterns"]
        for key in sorted(grouped):
            parts.append(f"## {key}")
            parts.extend(_section(r, level=3) for r in grouped[key])
        artifacts.append(PlatformArtifact(
            path="CLAUDE-patterns.md",
            content="\n\n".join(parts) + "\n",
            type="memory",
            scope="project",
            metadata=_group_metadata(patterns, limit="per_file"),
        ))

    if project_memory:
        artifacts.append(PlatformArtifact(
            path="CLAUDE-personal.md",
            content=(
                "# Personal Preferences\n\n"
                "@~/.claude/CLAUDE.md\n\n"
                "Add personal, untracked preferences for this project below.\n"
            ),
            type="memory",
            scope="project",
            metadata={"rules": [], "limit": "per_file"},
        ))

    for rule in project_cmds:
        artifacts.append(_command_artifact(rule, ".claude/commands", "project"))
    for rule in user_cmds:
        artifacts.append(_command_artifact(rule, "~/.claude/commands", "user"))
    return artifacts


# ---------------------------------------------------------------------------
# cursor-mdc: one .mdc per rule with activation front matter
# ---------------------------------------------------------------------------

@_renderer("cursor-mdc")
def render_cursor(rules: list[Rule], ctx: RenderContext) -> list[PlatformArtifact]:
    directory = ctx.platform.output_dir or ".cursor/rules"
    artifacts = []
    for rule in rules:
        fm = rule.frontmatter
        activation = classify(rule)
        header: dict[str, Any] = {}
        if fm.description:
            header["description"] = fm.description
        if fm.globs:
            header["globs"] = ",".join(fm.globs)
        header["alwaysApply"] = fm.always_apply
        artifacts.append(PlatformArtifact(
            path=_join_path(directory, f"{FILE_PREFIX[activation]}-{rule.slug}.mdc"),
            content=_front_matter(header) + "\n" + rule.body + "\n",
            type="rule",
            scope="project",
            metadata=_rule_metadata(rule, limit="per_file"),
        ))
    return artifacts


# ---------------------------------------------------------------------------
# windsurf-xml: global memory, workspace rules, consolidated summary
# ---------------------------------------------------------------------------

def _xml_block(rule: Rule) -> str:
    tag = category_tag(rule.frontmatter.category)
    return f"<{tag}>\n{rule.body}\n</{tag}>"


def _consolidated(rules: list[Rule]) -> str:
    grouped: dict[str, list[str]] = {}
    for rule in rules:
        points = extract_key_points(rule.body) or [rule.title]
        grouped.setdefault(category_tag(rule.frontmatter.category), []).extend(points)
    parts = ["# Workspace Rules Summary"]
    for tag in sorted(grouped):
        bullets = "\n".join(f"- {p}" for p in grouped[tag])
        parts.append(f"<{tag}>\n{bullets}\n</{tag}>")
    return "\n\n".join(parts) + "\n"


@_renderer("windsurf-xml")
def render_windsurf(rules: list[Rule], ctx: RenderContext) -> list[PlatformArtifact]:
    directory = ctx.platform.output_dir or ".windsurf/rules"
    global_rules = [r for r in rules if r.frontmatter.category == "core" or r.frontmatter.always_apply]
    workspace_rules = [r for r in rules if not (r.frontmatter.category == "core" or r.frontmatter.always_apply)]

    artifacts: list[PlatformArtifact] = []
    if global_rules:
        parts = ["# Global Development Standards"]
        parts.extend(_xml_block(r) for r in global_rules)
        artifacts.append(PlatformArtifact(
            path="~/.codeium/windsurf/memories/global_rules.md",
            content="\n\n".join(parts) + "\n",
            type="memory",
            scope="global",
            metadata=_group_metadata(global_rules, limit="global_memory"),
        ))

    for rule in workspace_rules:
        fm = rule.frontmatter
        trigger = windsurf_trigger(rule)
        header: dict[str, Any] = {"trigger": trigger}
        if fm.description:
            header["description"] = fm.description
        if trigger == "glob":
            header["globs"] = ",".join(fm.globs)
        name = slugify(fm.framework or fm.category) or rule.slug
        artifacts.append(PlatformArtifact(
            path=_join_path(directory, f"{name}.md"),
            content=_front_matter(header) + "\n" + _xml_block(rule) + "\n",
            type="rule",
            scope="workspace",
            metadata=_rule_metadata(rule, trigger=trigger, limit="per_file"),
        ))

    if len(workspace_rules) > _CONSOLIDATE_MIN_RULES:
        content = _consolidated(workspace_rules)
        limit = ctx.platform.character_limits.per_file
        if limit is None or len(content) <= limit:
            artifacts.append(PlatformArtifact(
                path=".windsurfrules.md",
                content=content,
                type="rule",
                scope="project",
                metadata=_group_metadata(workspace_rules, limit="per_file"),
            ))
    return artifacts


# ---------------------------------------------------------------------------
# copilot-instructions: one instructions file per guideline
# ---------------------------------------------------------------------------

@_renderer("copilot-instructions")
def render_copilot(rules: list[Rule], ctx: RenderContext) -> list[PlatformArtifact]:
    directory = ctx.platform.output_dir or ".github/instructions"
    artifacts = []
    for rule in rules:
        fm = rule.frontmatter
        apply_to = ",".join(fm.globs) if fm.globs else "**"
        parts = [f"# {rule.title}"]
        if fm.description and fm.description != rule.title:
            parts.append(fm.description)
        body = _body_without_title(rule)
        if body:
            parts.append(body)
        artifacts.append(PlatformArtifact(
            path=_join_path(directory, f"{rule.slug}.instructions.md"),
            content=_front_matter({"applyTo": apply_to}) + "\n" + "\n\n".join(parts) + "\n",
            type="instructions",
            scope="project",
            metadata=_rule_metadata(rule, apply_to=apply_to, limit="per_guideline"),
        ))
    return artifacts


# ---------------------------------------------------------------------------
# markdown: generic envelope for descriptor-only platforms
# ---------------------------------------------------------------------------

@_renderer("markdown")
def render_markdown(rules: list[Rule], ctx: RenderContext) -> list[PlatformArtifact]:
    directory = ctx.platform.output_dir or f".{ctx.platform.id}/rules"
    artifacts = []
    for rule in rules:
        artifacts.append(PlatformArtifact(
            path=_join_path(directory, f"{rule.slug}.md"),
            content=_section(rule, level=1) + "\n",
            type="rule",
            scope="project",
            metadata=_rule_metadata(rule, limit="per_file"),
        ))
    return artifacts
