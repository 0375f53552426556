"""Write adapted artifacts to disk (the CLI's job, never the engine's)."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path

from ruleforge.adapt.renderers import PlatformArtifact

log = logging.getLogger(__name__)

HOME_PREFIX = "~/"


def resolve_target(artifact_path: str, root: Path, home: Path) -> Path:
    """Absolute destination for *artifact_path*.

    ``~/`` paths land under *home*, everything else under *root*.  Paths
    that would escape their base directory raise ValueError.
    """
    if artifact_path.startswith(HOME_PREFIX):
        base, rel = home, artifact_path[len(HOME_PREFIX):]
    else:
        base, rel = root, artifact_path
    norm = posixpath.normpath(rel)
    if norm.startswith("../") or norm == ".." or posixpath.isabs(norm):
        raise ValueError(f"artifact path escapes its base directory: {artifact_path}")
    return Path(base) / norm


def write_artifacts(
    artifacts: list[PlatformArtifact],
    root,
    home=None,
    *,
    scopes: tuple[str, ...] | None = None,
) -> list[Path]:
    """Write *artifacts* and return the written paths, in artifact order.

    With *scopes*, only artifacts whose scope is listed are written.
    """
    root = Path(root)
    home = Path(home) if home is not None else Path.home()
    written = []
    for artifact in artifacts:
        if scopes is not None and artifact.scope not in scopes:
            log.debug("not writing %s (scope %s)", artifact.path, artifact.scope)
            continue
        target = resolve_target(artifact.path, root, home)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(artifact.content, encoding="utf-8")
        log.info("wrote %s", target)
        written.append(target)
    return written
