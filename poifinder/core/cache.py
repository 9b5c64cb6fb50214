from __future__ import annotations

import asyncio
from collections import OrderedDict
from typing import Hashable, Optional

from .workflow_types import AggregationResult


class ResultCache:
    """
    Bounded in-memory LRU of aggregation results, keyed by plan fingerprint.
    Access is serialized with an asyncio.Lock; entries are immutable.
    """

    def __init__(self, max_entries: int = 10):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._entries: "OrderedDict[Hashable, AggregationResult]" = OrderedDict()
        self._lock = asyncio.Lock()

    async def get(self, key: Hashable) -> Optional[AggregationResult]:
        async with self._lock:
            result = self._entries.get(key)
            if result is not None:
                self._entries.move_to_end(key)
            return result

    async def put(self, key: Hashable, result: AggregationResult) -> None:
        async with self._lock:
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries
