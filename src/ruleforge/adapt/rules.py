"""Rule and front-matter records consumed by the adaptation engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping

import yaml

from ruleforge.exit_codes import RuleMetadataError

_FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)', re.DOTALL)

# front-matter keys the engine understands; everything else lands in ``extra``
_KNOWN_KEYS = frozenset({
    "description", "category", "globs", "alwaysApply", "always_apply", "framework",
})

DEFAULT_CATEGORY = "general"


def split_frontmatter(text: str) -> tuple[dict, str]:
    """Split ``---``-delimited YAML front matter from *text*.

    Returns ``({}, text)`` when there is none.  Raises RuleMetadataError
    when the block is not valid YAML or not a mapping.
    """
    m = _FRONTMATTER_RE.match(text)
    if not m:
        return {}, text
    try:
        data = yaml.safe_load(m.group(1))
    except yaml.YAMLError as exc:
        raise RuleMetadataError(f"invalid YAML front matter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise RuleMetadataError("front matter must be a mapping")
    return data, text[m.end():]


def strip_frontmatter(text: str) -> str:
    """Body text without any leading front-matter block, trimmed."""
    m = _FRONTMATTER_RE.match(text)
    if m:
        text = text[m.end():]
    return text.strip()


def slugify(text: str, max_length: int = 60) -> str:
    slug = re.sub(r'[^a-z0-9\s-]', '', text.lower())
    slug = re.sub(r'[\s_-]+', '-', slug).strip('-')
    return slug[:max_length].rstrip('-')


def command_name(description: str) -> str:
    """Slash-command name: the first three words of *description*."""
    words = re.sub(r'[^A-Za-z0-9\s]', '', description).split()
    return slugify(" ".join(words[:3])) or "command"


def extract_title(body: str) -> str | None:
    for line in body.splitlines():
        if line.startswith("# "):
            return line[2:].strip() or None
    return None


def extract_key_points(body: str, min_length: int = 10) -> list[str]:
    """Bullet-list items of *body*, without their markers."""
    points = []
    for line in body.splitlines():
        stripped = line.strip()
        if stripped.startswith(("-", "*")) and not stripped.startswith(("---", "***")):
            point = re.sub(r'^[-*]\s*', '', stripped).strip()
            if len(point) > min_length:
                points.append(point)
    return points


_PLACEHOLDER_RE = re.compile(r'\$\{\s*(\w+)\s*\}')


def template_variables(signature, project_name: str | None = None) -> dict[str, str]:
    """Values for ``${name}`` placeholders; fields the signature lacks are omitted."""
    variables: dict[str, str] = {}
    name = project_name or (signature.project_name if signature is not None else "")
    if name:
        variables["projectName"] = name
    if signature is None:
        return variables
    for key, values in (("languages", signature.languages),
                        ("frameworks", signature.frameworks),
                        ("libraries", signature.libraries)):
        if values:
            variables[key] = ", ".join(values)
    if signature.primary_language:
        variables["primaryLanguage"] = signature.primary_language
    if signature.primary_pattern:
        variables["architecturalPattern"] = signature.primary_pattern
    return variables


def apply_templating(content: str, signature, project_name: str | None = None) -> str:
    """Substitute ``${projectName}``-style placeholders in *content*.

    Unknown placeholders, and ones whose value is missing, are left as written.
    """
    variables = template_variables(signature, project_name)
    if not variables or "${" not in content:
        return content
    return _PLACEHOLDER_RE.sub(lambda m: variables.get(m.group(1), m.group(0)), content)


def _coerce_globs(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(g.strip() for g in value.split(",") if g.strip())
    if isinstance(value, (list, tuple)):
        globs = []
        for g in value:
            if not isinstance(g, str):
                raise RuleMetadataError(f"glob entries must be strings, got {type(g).__name__}")
            if g.strip():
                globs.append(g.strip())
        return tuple(globs)
    raise RuleMetadataError(f"globs must be a list or a comma-separated string, got {type(value).__name__}")


def _coerce_str(data: Mapping[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    if value is None:
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise RuleMetadataError(f"{key} must be a string, got {type(value).__name__}")
    return value.strip()


@dataclass(frozen=True)
class RuleFrontmatter:
    description: str = ""
    category: str = DEFAULT_CATEGORY
    globs: tuple[str, ...] = ()
    always_apply: bool = False
    framework: str = ""
    extra: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "RuleFrontmatter":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise RuleMetadataError(f"frontmatter must be a mapping, got {type(data).__name__}")

        always = data.get("alwaysApply", data.get("always_apply", False))
        if always is None:
            always = False
        if isinstance(always, str) and always.strip().lower() in ("true", "false"):
            always = always.strip().lower() == "true"
        if not isinstance(always, bool):
            raise RuleMetadataError(f"alwaysApply must be a boolean, got {always!r}")

        category = _coerce_str(data, "category", DEFAULT_CATEGORY).lower() or DEFAULT_CATEGORY
        return cls(
            description=_coerce_str(data, "description"),
            category=category,
            globs=_coerce_globs(data.get("globs")),
            always_apply=always,
            framework=_coerce_str(data, "framework"),
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "description": self.description,
            "category": self.category,
            "globs": list(self.globs),
            "alwaysApply": self.always_apply,
        }
        if self.framework:
            data["framework"] = self.framework
        return data


@dataclass(frozen=True)
class Rule:
    """A platform-agnostic rule: validated front matter plus markdown body."""

    frontmatter: RuleFrontmatter
    content: str
    source: str | None = None

    @property
    def body(self) -> str:
        return strip_frontmatter(self.content)

    @property
    def title(self) -> str:
        return extract_title(self.body) or self.frontmatter.description or self.slug

    @property
    def slug(self) -> str:
        fm = self.frontmatter
        return (
            slugify(fm.description)
            or slugify(fm.framework)
            or slugify(fm.category)
            or "rule"
        )

    @classmethod
    def from_dict(cls, data: Any) -> "Rule":
        """Validate a ``{frontmatter, content}`` mapping.

        When ``frontmatter`` is absent the content's own ``---`` block is
        parsed instead.
        """
        if isinstance(data, Rule):
            return data
        if not isinstance(data, Mapping):
            raise RuleMetadataError(f"rule must be a mapping, got {type(data).__name__}")
        content = data.get("content", "")
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise RuleMetadataError(f"content must be a string, got {type(content).__name__}")
        raw_fm = data.get("frontmatter")
        if raw_fm is None:
            raw_fm, _ = split_frontmatter(content)
        source = data.get("source")
        if source is not None and not isinstance(source, str):
            raise RuleMetadataError("source must be a string")
        return cls(RuleFrontmatter.from_dict(raw_fm), content, source)

    def to_dict(self) -> dict[str, Any]:
        data = {"frontmatter": self.frontmatter.to_dict(), "content": self.content}
        if self.source:
            data["source"] = self.source
        return data
