"""Rule adaptation: rules + platform descriptor + signature -> artifacts.

Nothing here touches the filesystem; callers decide where (and whether)
to write the returned artifacts.
"""

from __future__ import annotations

import logging
import posixpath
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from ruleforge.adapt.activation import group_by_activation
from ruleforge.adapt.platforms import PlatformDescriptor, get_platform
from ruleforge.adapt.renderers import (
    ARTIFACT_SCOPES,
    ARTIFACT_TYPES,
    PlatformArtifact,
    RenderContext,
    render,
)
from ruleforge.adapt.rules import Rule, apply_templating
from ruleforge.adapt.truncate import enforce_limit, shrink_to_total
from ruleforge.diagnostics import (
    Diagnostic,
    DroppedRuleWarning,
    SkippedFileWarning,
    TruncationWarning,
    count_by_kind,
)
from ruleforge.exit_codes import MalformedInputError, RuleMetadataError
from ruleforge.signature import ProjectSignature

log = logging.getLogger(__name__)

CATEGORY_WEIGHTS = {
    "core": 10,
    "language": 8,
    "technology": 8,
    "stack": 6,
    "task": 4,
}
GLOB_BONUS = 3
ALWAYS_APPLY_BONUS = 2


@dataclass
class AdaptationResult:
    platform: str
    files: list[PlatformArtifact] = field(default_factory=list)
    summary: dict[str, Any] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "files": [f.to_dict() for f in self.files],
            "summary": dict(self.summary),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "diagnostic_counts": count_by_kind(self.diagnostics),
        }


# ---------------------------------------------------------------------------
# Priority and capping
# ---------------------------------------------------------------------------

def priority(rule: Rule) -> int:
    fm = rule.frontmatter
    score = CATEGORY_WEIGHTS.get(fm.category, 0)
    if fm.globs:
        score += GLOB_BONUS
    if fm.always_apply:
        score += ALWAYS_APPLY_BONUS
    return score


def select_top(rules: list[Rule], max_count: int | None) -> tuple[list[Rule], list[Rule]]:
    """Split *rules* into ``(kept, dropped)`` under *max_count*.

    Ranking is priority descending, then slug, then input position.  Kept
    rules come back in input order.
    """
    if max_count is None or len(rules) <= max_count:
        return list(rules), []
    ranked = sorted(range(len(rules)), key=lambda i: (-priority(rules[i]), rules[i].slug, i))
    keep = set(ranked[:max_count])
    kept = [r for i, r in enumerate(rules) if i in keep]
    dropped = [rules[i] for i in ranked[max_count:]]
    return kept, dropped


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _rule_label(raw: Any, index: int) -> str:
    source = None
    if isinstance(raw, Rule):
        source = raw.source
    elif isinstance(raw, Mapping):
        source = raw.get("source")
    return source if isinstance(source, str) and source else f"rules[{index}]"


def _split_name(name: str) -> tuple[str, str]:
    """``("x", ".instructions.md")`` for ``x.instructions.md``; dotfiles keep their dot."""
    start = 1 if name.startswith(".") else 0
    dot = name.find(".", start)
    if dot < 0:
        return name, ""
    return name[:dot], name[dot:]


def _dedupe_paths(artifacts: list[PlatformArtifact]) -> list[PlatformArtifact]:
    seen: set[str] = set()
    result = []
    for artifact in artifacts:
        path = artifact.path
        if path in seen:
            directory, name = posixpath.split(path)
            stem, suffix = _split_name(name)
            n = 2
            while True:
                candidate = posixpath.join(directory, f"{stem}-{n}{suffix}")
                if candidate not in seen:
                    break
                n += 1
            log.debug("renamed colliding artifact %s -> %s", path, candidate)
            artifact = replace(artifact, path=candidate)
            path = candidate
        seen.add(path)
        result.append(artifact)
    return result


def _coerce_platform(target: Any) -> PlatformDescriptor:
    if isinstance(target, PlatformDescriptor):
        return target
    if isinstance(target, Mapping):
        try:
            return PlatformDescriptor.from_dict(target)
        except (KeyError, TypeError, ValueError) as exc:
            raise MalformedInputError("adapt", f"invalid platform descriptor: {exc}") from exc
    if isinstance(target, str):
        try:
            return get_platform(target)
        except ValueError as exc:
            raise MalformedInputError("adapt", str(exc)) from exc
    raise MalformedInputError("adapt", f"target must be a platform id or descriptor, got {type(target).__name__}")


def _coerce_signature(signature: Any) -> ProjectSignature | None:
    if signature is None or isinstance(signature, ProjectSignature):
        return signature
    if isinstance(signature, Mapping):
        try:
            return ProjectSignature.from_dict(signature)
        except ValueError as exc:
            raise MalformedInputError("adapt", f"invalid signature: {exc}") from exc
    raise MalformedInputError("adapt", f"signature must be a mapping, got {type(signature).__name__}")


def _truncate_one(artifact: PlatformArtifact, result, diagnostics: list[Diagnostic]) -> PlatformArtifact:
    log.warning(
        "truncated %s from %d to %d characters (limit %d)",
        artifact.path, result.original_length, result.final_length, result.limit,
    )
    diagnostics.append(TruncationWarning(
        f"{artifact.path} exceeded {result.limit} characters",
        path=artifact.path,
        limit=result.limit,
        original_length=result.original_length,
        final_length=result.final_length,
    ))
    meta = dict(artifact.metadata)
    meta["truncated"] = True
    return replace(artifact, content=result.content, metadata=meta)


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def adapt_rules(rules, target, signature=None, *, project_name: str | None = None) -> AdaptationResult:
    """Render *rules* for the *target* platform.

    *rules* is a list of :class:`Rule` objects or ``{frontmatter, content}``
    mappings.  A rule with bad metadata is skipped with a
    :class:`SkippedFileWarning`; only a non-list *rules* or an unknown
    *target* raises :class:`MalformedInputError`.
    """
    if isinstance(rules, (str, bytes)) or not isinstance(rules, (list, tuple)):
        raise MalformedInputError("adapt", f"rules must be a list, got {type(rules).__name__}")
    platform = _coerce_platform(target)
    signature = _coerce_signature(signature)
    limits = platform.character_limits
    diagnostics: list[Diagnostic] = []

    valid: list[Rule] = []
    for i, raw in enumerate(rules):
        label = _rule_label(raw, i)
        try:
            valid.append(Rule.from_dict(raw))
        except RuleMetadataError as exc:
            log.warning("skipping rule %s: %s", label, exc)
            diagnostics.append(SkippedFileWarning(
                f"rule {label} skipped: {exc}", path=label, reason=str(exc),
            ))
    skipped = len(diagnostics)

    eligible: list[Rule] = []
    dropped = 0
    for rule in valid:
        if rule.frontmatter.category in platform.excluded_categories:
            log.info("dropping %s: category %s not supported on %s",
                     rule.slug, rule.frontmatter.category, platform.id)
            diagnostics.append(DroppedRuleWarning(
                f"category {rule.frontmatter.category!r} is excluded on {platform.id}",
                rule=rule.slug, reason="excluded-category",
            ))
            dropped += 1
            continue
        eligible.append(rule)

    kept, over = select_top(eligible, limits.max_count)
    for rule in over:
        log.info("dropping %s: over the %d-rule limit of %s", rule.slug, limits.max_count, platform.id)
        diagnostics.append(DroppedRuleWarning(
            f"{platform.id} accepts at most {limits.max_count} rules",
            rule=rule.slug, reason="over-limit",
        ))
    dropped += len(over)

    templated = []
    for rule in kept:
        content = apply_templating(rule.content, signature, project_name)
        if content != rule.content:
            log.debug("applied templating to %s", rule.slug)
            rule = replace(rule, content=content)
        templated.append(rule)
    kept = templated

    name = project_name or (signature.project_name if signature is not None else "") or "project"
    artifacts = _dedupe_paths(render(kept, RenderContext(platform, name, signature)))

    truncated_paths: set[str] = set()
    for i, artifact in enumerate(artifacts):
        result = enforce_limit(artifact.content, limits.get(artifact.limit_kind))
        if result.truncated:
            artifacts[i] = _truncate_one(artifact, result, diagnostics)
            truncated_paths.add(artifact.path)

    workspace = [i for i, a in enumerate(artifacts) if a.scope == "workspace"]
    if workspace and limits.total_workspace is not None:
        shrunk = shrink_to_total([artifacts[i].content for i in workspace], limits.total_workspace)
        for i, result in zip(workspace, shrunk):
            if result.truncated:
                artifacts[i] = _truncate_one(artifacts[i], result, diagnostics)
                truncated_paths.add(artifacts[i].path)

    activations = group_by_activation(kept)
    by_scope = Counter(a.scope for a in artifacts)
    by_type = Counter(a.type for a in artifacts)
    summary = {
        "platform": platform.id,
        "total_files": len(artifacts),
        "by_scope": {s: by_scope[s] for s in ARTIFACT_SCOPES if by_scope[s]},
        "by_type": {t: by_type[t] for t in ARTIFACT_TYPES if by_type[t]},
        "by_activation": {c: len(group) for c, group in activations.items()},
        "total_characters": sum(len(a.content) for a in artifacts),
        "character_limit": limits.headline,
        "truncated": len(truncated_paths),
        "dropped": dropped,
        "skipped": skipped,
    }
    log.debug("adapted %d rules for %s into %d files", len(kept), platform.id, len(artifacts))
    return AdaptationResult(platform.id, artifacts, summary, diagnostics)
