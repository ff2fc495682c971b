"""In-memory result cache: bounded, insertion-ordered, content-hash keyed."""

from __future__ import annotations

import hashlib
import logging
from collections import OrderedDict
from datetime import datetime, timezone

from inkwell.models.analysis import AnalysisResult

logger = logging.getLogger(__name__)


class ResultCache:
    """IResultCache holding at most ``max_entries`` results.

    Entries are evicted oldest-inserted first. Reads do not refresh an entry;
    re-inserting an existing key moves it to the newest position.
    """

    def __init__(self, max_entries: int = 100) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, AnalysisResult] = OrderedDict()

    @property
    def capacity(self) -> int:
        return self._max_entries

    def key_for(self, text: str) -> str:
        return hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()

    def get(self, key: str) -> AnalysisResult | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        return entry.model_copy(deep=True)

    def put(self, key: str, result: AnalysisResult) -> AnalysisResult:
        stored = result.model_copy(
            deep=True, update={"cached": True, "cached_at": datetime.now(timezone.utc)},
        )
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = stored

        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cache entry %s", evicted[:12])
        return stored

    def keys(self) -> list[str]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Result cache cleared")

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
