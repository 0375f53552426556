"""Plugin discovery and extension registration for ruleforge.

Plugins can be discovered in two ways:
1) Python entry points under group ``ruleforge.plugins``
2) Environment variable ``RULEFORGE_PLUGIN_MODULES`` (comma-separated modules)

Each plugin should expose either:
- a callable that accepts ``PluginAPI``, or
- an object/module with a callable ``register(api)`` function.

Plugins extend configuration only (platforms, symbol extractors,
architecture patterns); no analysis result is ever stored here.
"""

from __future__ import annotations

import importlib
import logging
import os
from importlib import metadata as importlib_metadata
from typing import Any, Callable

log = logging.getLogger(__name__)

_discovered = False
_errors: list[str] = []
_platforms: dict[str, Any] = {}
_extractor_factories: dict[str, Callable[[], Any]] = {}
_extractor_extensions: dict[str, str] = {}
_patterns: list[Any] = []


def _normalize_extension(ext: str) -> str:
    ext = (ext or "").strip().lower()
    if not ext:
        return ""
    if not ext.startswith("."):
        return f".{ext}"
    return ext


class PluginAPI:
    """Registration surface exposed to third-party ruleforge plugins."""

    def register_platform(self, descriptor: Any) -> None:
        platform_id = (getattr(descriptor, "id", "") or "").strip().lower()
        if not platform_id:
            raise ValueError("platform descriptor needs a non-empty id")
        if platform_id in _platforms:
            raise ValueError(f"duplicate plugin platform: {platform_id}")
        _platforms[platform_id] = descriptor

    def register_symbol_extractor(
        self,
        language: str,
        extractor_factory: Callable[[], Any],
        *,
        extensions: list[str] | tuple[str, ...] | None = None,
    ) -> None:
        lang = (language or "").strip().lower()
        if not lang:
            raise ValueError("language must be non-empty")
        if not callable(extractor_factory):
            raise TypeError("extractor_factory must be callable")

        _extractor_factories[lang] = extractor_factory
        for ext in extensions or ():
            norm = _normalize_extension(ext)
            if norm:
                _extractor_extensions[norm] = lang

    def register_architecture_pattern(self, pattern: Any) -> None:
        name = (getattr(pattern, "name", "") or "").strip()
        if not name:
            raise ValueError("architecture pattern needs a non-empty name")
        if any(p.name == name for p in _patterns):
            raise ValueError(f"duplicate plugin pattern: {name}")
        _patterns.append(pattern)


def _register_target(target: Any, source_label: str, api: PluginAPI) -> None:
    try:
        if callable(target):
            target(api)
            return

        register_fn = getattr(target, "register", None)
        if callable(register_fn):
            register_fn(api)
            return

        raise TypeError("plugin target must be callable or expose register(api)")
    except Exception as exc:
        log.warning("plugin %s failed to register: %s", source_label, exc)
        _errors.append(f"{source_label}: {exc}")


def _discover_env_modules(api: PluginAPI) -> None:
    modules_raw = os.environ.get("RULEFORGE_PLUGIN_MODULES", "")
    if not modules_raw:
        return

    for module_name in [m.strip() for m in modules_raw.split(",") if m.strip()]:
        try:
            module = importlib.import_module(module_name)
        except Exception as exc:
            _errors.append(f"module:{module_name}: import failed: {exc}")
            continue
        _register_target(module, f"module:{module_name}", api)


def _entry_points_for_group(group: str):
    eps = importlib_metadata.entry_points()
    if hasattr(eps, "select"):
        return list(eps.select(group=group))
    if isinstance(eps, dict):
        return list(eps.get(group, []))
    return []


def _discover_entry_points(api: PluginAPI) -> None:
    try:
        entries = _entry_points_for_group("ruleforge.plugins")
    except Exception as exc:
        _errors.append(f"entry_points: discovery failed: {exc}")
        return

    for ep in entries:
        try:
            target = ep.load()
        except Exception as exc:
            _errors.append(f"entry_point:{ep.name}: load failed: {exc}")
            continue
        _register_target(target, f"entry_point:{ep.name}", api)


def discover_plugins() -> None:
    """Discover and register plugins once per process."""
    global _discovered
    if _discovered:
        return
    _discovered = True

    api = PluginAPI()
    _discover_env_modules(api)
    _discover_entry_points(api)


def get_plugin_platforms() -> dict[str, Any]:
    discover_plugins()
    return dict(_platforms)


def get_plugin_extractor_factories() -> dict[str, Callable[[], Any]]:
    discover_plugins()
    return dict(_extractor_factories)


def get_plugin_extractor_extensions() -> dict[str, str]:
    discover_plugins()
    return dict(_extractor_extensions)


def get_plugin_patterns() -> list[Any]:
    discover_plugins()
    return list(_patterns)


def get_plugin_errors() -> list[str]:
    discover_plugins()
    return list(_errors)


def _reset_plugin_state_for_tests() -> None:
    """Reset global plugin state (test-only helper)."""
    global _discovered
    _discovered = False
    _errors.clear()
    _platforms.clear()
    _extractor_factories.clear()
    _extractor_extensions.clear()
    _patterns.clear()
