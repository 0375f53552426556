"""Rule adaptation: render platform-agnostic rules for each assistant."""

from ruleforge.adapt.activation import ACTIVATION_CLASSES, classify
from ruleforge.adapt.engine import AdaptationResult, adapt_rules, priority, select_top
from ruleforge.adapt.loader import load_rules
from ruleforge.adapt.platforms import (
    BUILTIN_PLATFORMS,
    CharacterLimits,
    PlatformDescriptor,
    get_platform,
    list_platforms,
    register_platform,
)
from ruleforge.adapt.renderers import CATEGORY_TAGS, PlatformArtifact, category_tag
from ruleforge.adapt.rules import Rule, RuleFrontmatter, strip_frontmatter
from ruleforge.adapt.truncate import TRUNCATION_MARKER, TruncationResult, enforce_limit, shrink_to_total

__all__ = [
    "ACTIVATION_CLASSES",
    "AdaptationResult",
    "BUILTIN_PLATFORMS",
    "CATEGORY_TAGS",
    "CharacterLimits",
    "PlatformArtifact",
    "PlatformDescriptor",
    "Rule",
    "RuleFrontmatter",
    "TRUNCATION_MARKER",
    "TruncationResult",
    "adapt_rules",
    "category_tag",
    "classify",
    "enforce_limit",
    "get_platform",
    "list_platforms",
    "load_rules",
    "priority",
    "register_platform",
    "select_top",
    "shrink_to_total",
    "strip_frontmatter",
]
