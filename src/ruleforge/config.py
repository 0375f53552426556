"""Project configuration: discovery, loading, validation.

An optional ``.ruleforge.json`` supplies defaults for the CLI::

    {
      "max_files_to_parse": 500,
      "sample_size": 50,
      "min_confidence": 0.3,
      "aliases": {"@app/": "src/app/"},
      "platform": "cursor"
    }

Precedence: CLI flags, then ``RULEFORGE_MAX_FILES`` / ``RULEFORGE_SAMPLE_SIZE``,
then the config file, then built-in defaults.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

CONFIG_NAME = ".ruleforge.json"

_INT_KEYS = ("max_files_to_parse", "sample_size")
_KNOWN_KEYS = frozenset({*_INT_KEYS, "min_confidence", "aliases", "platform"})

_ENV_OVERRIDES = {
    "RULEFORGE_MAX_FILES": "max_files_to_parse",
    "RULEFORGE_SAMPLE_SIZE": "sample_size",
}


def find_config_root(start: str = ".") -> Path | None:
    """Walk up from *start* looking for a .ruleforge.json file.

    Returns the directory containing the config, or None.
    """
    current = Path(start).resolve()
    while True:
        if (current / CONFIG_NAME).is_file():
            return current
        if current == current.parent:
            return None
        current = current.parent


def load_config(root: Path) -> dict[str, Any]:
    """Read and validate .ruleforge.json from *root*.

    Raises FileNotFoundError or ValueError on problems.
    """
    config_path = Path(root) / CONFIG_NAME
    if not config_path.exists():
        raise FileNotFoundError(f"No ruleforge config at {config_path}")
    text = config_path.read_text(encoding="utf-8")
    try:
        cfg = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{config_path}: invalid JSON: {exc}") from exc
    _validate_config(cfg)
    return cfg


def _validate_config(cfg: Any) -> None:
    """Raise ValueError if the config is structurally invalid."""
    if not isinstance(cfg, dict):
        raise ValueError("ruleforge config must be a JSON object")
    unknown = sorted(set(cfg) - _KNOWN_KEYS)
    if unknown:
        log.warning("ignoring unknown config keys: %s", ", ".join(unknown))
    for key in _INT_KEYS:
        if key in cfg:
            value = cfg[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"'{key}' must be a positive integer")
    if "min_confidence" in cfg:
        value = cfg["min_confidence"]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 1:
            raise ValueError("'min_confidence' must be a number between 0 and 1")
    if "aliases" in cfg:
        aliases = cfg["aliases"]
        if not isinstance(aliases, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in aliases.items()
        ):
            raise ValueError("'aliases' must map prefix strings to path strings")
    if "platform" in cfg and not isinstance(cfg["platform"], str):
        raise ValueError("'platform' must be a string")


def _env_overrides(environ) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for var, key in _ENV_OVERRIDES.items():
        raw = environ.get(var, "").strip()
        if not raw:
            continue
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"{var} must be an integer, got {raw!r}") from None
        if value < 1:
            raise ValueError(f"{var} must be positive, got {value}")
        overrides[key] = value
    return overrides


def resolve_settings(start: str = ".", environ=None, **cli_values) -> dict[str, Any]:
    """Merge config file, environment and CLI values (``None`` means unset)."""
    environ = os.environ if environ is None else environ
    settings: dict[str, Any] = {}
    root = find_config_root(start)
    if root is not None:
        settings.update(load_config(root))
        log.debug("loaded %s from %s", CONFIG_NAME, root)
    settings.update(_env_overrides(environ))
    settings.update({k: v for k, v in cli_values.items() if v is not None})
    return settings
