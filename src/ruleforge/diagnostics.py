"""Non-fatal diagnostics collected during analysis and adaptation.

Fatal problems raise :class:`ruleforge.exit_codes.MalformedInputError`.
Everything else degrades to partial results plus one of these records, so
downstream consumers always get *some* output for sparse or unusual projects.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Diagnostic:
    """Base record; ``kind`` is filled in by each subclass."""

    message: str

    kind = "diagnostic"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind
        return data


@dataclass(frozen=True)
class SkippedFileWarning(Diagnostic):
    """A file (or rule) could not be parsed/classified and was skipped."""

    path: str = ""
    reason: str = ""

    kind = "skipped-file"


@dataclass(frozen=True)
class TruncationWarning(Diagnostic):
    """Content exceeded a platform limit and was shortened."""

    path: str = ""
    limit: int = 0
    original_length: int = 0
    final_length: int = 0

    kind = "truncation"


@dataclass(frozen=True)
class UnresolvedPatternWarning(Diagnostic):
    """No architectural pattern cleared the confidence threshold."""

    threshold: float = 0.0
    best_candidate: str | None = None
    best_confidence: float = 0.0

    kind = "unresolved-pattern"


@dataclass(frozen=True)
class DroppedRuleWarning(Diagnostic):
    """A rule was deliberately not emitted (count cap, excluded category)."""

    rule: str = ""
    reason: str = ""

    kind = "dropped-rule"


def count_by_kind(diagnostics: list[Diagnostic]) -> dict[str, int]:
    """Return ``{kind: count}`` sorted by kind, for summaries."""
    counts = Counter(d.kind for d in diagnostics)
    return {k: counts[k] for k in sorted(counts)}
