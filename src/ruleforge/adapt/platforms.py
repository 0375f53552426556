"""Platform descriptors: output conventions and character limits per assistant.

Adding a platform means adding a descriptor, either here or through a
plugin (see :mod:`ruleforge.plugins`); the engine itself never branches
on platform ids, only on ``envelope_style``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

ENVELOPE_STYLES = (
    "claude-memory",
    "cursor-mdc",
    "windsurf-xml",
    "copilot-instructions",
    "markdown",
)

_LIMIT_KEYS = {
    "per_file": "perFile",
    "per_guideline": "perGuideline",
    "per_command": "perCommand",
    "total_workspace": "totalWorkspace",
    "global_memory": "globalMemory",
    "max_count": "maxCount",
}


def _optional_int(value: Any, key: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"character limit {key} must be a non-negative integer, got {value!r}")
    return value


def _lowered(values: Any, key: str) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        raise ValueError(f"{key} must be a list of strings, got {type(values).__name__}")
    if not all(isinstance(v, str) for v in values):
        raise ValueError(f"{key} must be a list of strings")
    return tuple(v.lower() for v in values)


@dataclass(frozen=True)
class CharacterLimits:
    per_file: int | None = None
    per_guideline: int | None = None
    per_command: int | None = None
    total_workspace: int | None = None
    global_memory: int | None = None
    max_count: int | None = None

    def get(self, kind: str | None) -> int | None:
        if not kind:
            return None
        return getattr(self, kind, None)

    @property
    def headline(self) -> int | None:
        """The single limit reported in summaries."""
        for kind in ("total_workspace", "per_file", "per_guideline", "per_command", "global_memory"):
            value = getattr(self, kind)
            if value is not None:
                return value
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "CharacterLimits":
        data = data or {}
        if not isinstance(data, Mapping):
            raise ValueError(f"character limits must be an object, got {type(data).__name__}")
        kwargs = {}
        for key, camel in _LIMIT_KEYS.items():
            kwargs[key] = _optional_int(data.get(key, data.get(camel)), key)
        return cls(**kwargs)

    def to_dict(self) -> dict[str, int | None]:
        return {key: getattr(self, key) for key in _LIMIT_KEYS}


@dataclass(frozen=True)
class PlatformDescriptor:
    id: str
    name: str
    character_limits: CharacterLimits = field(default_factory=CharacterLimits)
    envelope_style: str = "markdown"
    output_dir: str = ""
    aliases: tuple[str, ...] = ()
    excluded_categories: tuple[str, ...] = ()

    def __post_init__(self):
        if not self.id or not self.id.strip():
            raise ValueError("platform id must be non-empty")
        if self.envelope_style not in ENVELOPE_STYLES:
            raise ValueError(
                f"unknown envelope style {self.envelope_style!r} "
                f"(expected one of: {', '.join(ENVELOPE_STYLES)})"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlatformDescriptor":
        """Build a descriptor from snake_case or camelCase keys.

        Raises KeyError without an ``id`` and ValueError for wrongly typed fields.
        """
        limits = data.get("character_limits", data.get("characterLimits"))
        name = data.get("name") or str(data["id"])
        output_dir = data.get("output_dir", data.get("outputDir", "")) or ""
        for key, value in (("name", name), ("output_dir", output_dir)):
            if not isinstance(value, str):
                raise ValueError(f"{key} must be a string, got {type(value).__name__}")
        aliases = _lowered(data.get("aliases"), "aliases")
        excluded = _lowered(data.get("excluded_categories", data.get("excludedCategories")),
                            "excluded_categories")
        return cls(
            id=str(data["id"]).strip().lower(),
            name=name,
            character_limits=(
                limits if isinstance(limits, CharacterLimits) else CharacterLimits.from_dict(limits)
            ),
            envelope_style=data.get("envelope_style", data.get("envelopeStyle", "markdown")),
            output_dir=output_dir,
            aliases=aliases,
            excluded_categories=excluded,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "character_limits": self.character_limits.to_dict(),
            "envelope_style": self.envelope_style,
            "output_dir": self.output_dir,
            "aliases": list(self.aliases),
            "excluded_categories": list(self.excluded_categories),
        }


# ---------------------------------------------------------------------------
# Built-in platforms
# ---------------------------------------------------------------------------

BUILTIN_PLATFORMS: dict[str, PlatformDescriptor] = {
    "claude": PlatformDescriptor(
        id="claude",
        name="Claude Code",
        character_limits=CharacterLimits(per_command=10000),
        envelope_style="claude-memory",
        output_dir=".claude",
        aliases=("claude-code",),
    ),
    "cursor": PlatformDescriptor(
        id="cursor",
        name="Cursor",
        envelope_style="cursor-mdc",
        output_dir=".cursor/rules",
        aliases=("cursor-ai",),
    ),
    "windsurf": PlatformDescriptor(
        id="windsurf",
        name="Windsurf",
        character_limits=CharacterLimits(
            per_file=6000, global_memory=6000, total_workspace=12000,
        ),
        envelope_style="windsurf-xml",
        output_dir=".windsurf/rules",
        aliases=("codeium",),
    ),
    "github-copilot": PlatformDescriptor(
        id="github-copilot",
        name="GitHub Copilot",
        character_limits=CharacterLimits(per_guideline=600, max_count=6),
        envelope_style="copilot-instructions",
        output_dir=".github/instructions",
        aliases=("copilot",),
        excluded_categories=("assistant",),
    ),
}


def _all_platforms() -> dict[str, PlatformDescriptor]:
    from ruleforge.plugins import discover_plugins, get_plugin_platforms

    discover_plugins()
    merged = dict(BUILTIN_PLATFORMS)
    for pid, descriptor in get_plugin_platforms().items():
        if pid in merged:
            continue
        merged[pid] = descriptor
    return merged


def list_platforms() -> list[PlatformDescriptor]:
    """Built-in and plugin platforms, sorted by id."""
    platforms = _all_platforms()
    return [platforms[pid] for pid in sorted(platforms)]


def get_platform(id_or_alias: str) -> PlatformDescriptor:
    """Look a platform up by id or alias (case-insensitive).

    Raises ValueError listing the known ids when nothing matches.
    """
    key = (id_or_alias or "").strip().lower()
    platforms = _all_platforms()
    if key in platforms:
        return platforms[key]
    for pid in sorted(platforms):
        if key in platforms[pid].aliases:
            return platforms[pid]
    raise ValueError(
        f"unknown platform {id_or_alias!r} (known: {', '.join(sorted(platforms))})"
    )


def register_platform(descriptor: PlatformDescriptor | Mapping[str, Any]) -> PlatformDescriptor:
    """Register an extra platform descriptor for this process."""
    from ruleforge.plugins import PluginAPI

    if not isinstance(descriptor, PlatformDescriptor):
        descriptor = PlatformDescriptor.from_dict(descriptor)
    if descriptor.id in BUILTIN_PLATFORMS:
        raise ValueError(f"cannot replace built-in platform: {descriptor.id}")
    PluginAPI().register_platform(descriptor)
    return descriptor
