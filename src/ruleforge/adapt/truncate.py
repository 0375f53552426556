"""Boundary-aware truncation under platform character limits."""

from __future__ import annotations

import math
from dataclasses import dataclass

TRUNCATION_MARKER = "\n\n*Truncated due to character limit*"

_MIN_BUFFER = 50
_BUFFER_RATIO = 0.05
_MIN_RETAINED = 0.7

# (separator, characters of the separator kept, label) in priority order
_BOUNDARIES = (
    ("\n\n", 0, "paragraph"),
    (".\n", 1, "sentence-newline"),
    (". ", 1, "sentence"),
    ("\n", 0, "line"),
)


@dataclass(frozen=True)
class TruncationResult:
    content: str
    truncated: bool
    original_length: int
    final_length: int
    boundary: str = "none"
    limit: int | None = None


def buffer_for(limit: int) -> int:
    return max(_MIN_BUFFER, int(limit * _BUFFER_RATIO))


def find_truncation_point(text: str, limit: int) -> tuple[int, str]:
    """Return ``(cut, boundary)`` for cutting *text* under *limit*.

    The cut never passes ``limit - max(buffer, len(marker))``.  Boundaries
    are tried in priority order and the latest occurrence of the first
    one that keeps at least 70% of *limit* wins; otherwise the cut is hard.
    """
    target = limit - max(buffer_for(limit), len(TRUNCATION_MARKER))
    floor = _MIN_RETAINED * limit
    for sep, keep, label in _BOUNDARIES:
        idx = text.rfind(sep, 0, max(0, target - keep + len(sep)))
        if idx < 0:
            continue
        cut = idx + keep
        if floor <= cut <= target:
            return cut, label
    return target, "hard"


def enforce_limit(text: str, limit: int | None) -> TruncationResult:
    """Shorten *text* to at most *limit* characters, marker included.

    The result (minus the marker) is always a prefix of *text*.  Limits too
    small to hold the marker get a plain hard cut.
    """
    original = len(text)
    if limit is None or original <= limit:
        return TruncationResult(text, False, original, original, limit=limit)
    if limit <= 0:
        return TruncationResult("", True, original, 0, "hard", limit)

    target = limit - max(buffer_for(limit), len(TRUNCATION_MARKER))
    if target <= 0:
        content = text[:limit]
        return TruncationResult(content, True, original, len(content), "hard", limit)

    cut, boundary = find_truncation_point(text, limit)
    content = text[:cut].rstrip() + TRUNCATION_MARKER
    return TruncationResult(content, True, original, len(content), boundary, limit)


def shrink_to_total(contents: list[str], total_limit: int | None) -> list[TruncationResult]:
    """Proportionally shrink *contents* so their sum fits *total_limit*.

    Every entry gets ``floor(len * target_total / current_total)`` as its
    new limit, where ``target_total`` keeps the usual buffer below the
    aggregate limit; the same boundary-aware cut is then re-applied.
    """
    current = sum(len(c) for c in contents)
    if total_limit is None or current <= total_limit:
        return [TruncationResult(c, False, len(c), len(c), limit=total_limit) for c in contents]

    target_total = total_limit - buffer_for(total_limit)
    ratio = max(0, target_total) / current
    results = []
    for c in contents:
        new_limit = math.floor(len(c) * ratio)
        results.append(enforce_limit(c, new_limit))
    return results
