"""Caller-owned memoization for repeated analyses.

Nothing in ruleforge caches on its own.  A caller that analyses the same
project repeatedly (a watch loop, an editor integration) can create one
:class:`AnalysisCache` and pass it to :func:`ruleforge.pipeline.analyze_project`;
entries are keyed by a fingerprint of the model plus the options, so two
different projects can never see each other's results.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from typing import Any

log = logging.getLogger(__name__)


def fingerprint(model_dict: dict, options: dict | None = None) -> str:
    """sha256 over the canonical JSON of the model and the options."""
    payload = json.dumps(
        {"model": model_dict, "options": options or {}},
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class AnalysisCache:
    """Bounded LRU map from fingerprint to analysis result."""

    def __init__(self, max_entries: int = 16):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Any | None:
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self.hits += 1
                return self._entries[key]
            self.misses += 1
            return None

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                log.debug("evicted analysis %s", evicted[:12])

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
