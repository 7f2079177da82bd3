"""Cache Key — deterministic fingerprint of a feed request.

Invariants:
    - Same token set (any insertion order) + same query + cursor + mode → same key
    - Cursors only ever appear inside the key of the criteria that produced them
    - Keys are hashable and compare by value; fingerprint is a stable string
"""

import json
from dataclasses import dataclass

from courtside.core.domain_types import FeedMode
from courtside.core.filter_state import FilterCriteria


@dataclass(frozen=True)
class CacheKey:
    filters: tuple[str, ...]
    search: str
    cursor: str | None
    mode: FeedMode

    @property
    def chain_key(self) -> "CacheKey":
        """Key of the first page of the same query (cursor stripped)."""
        return CacheKey(self.filters, self.search, None, self.mode)

    @property
    def fingerprint(self) -> str:
        return json.dumps(
            ["feed", self.mode.value, list(self.filters), self.search, self.cursor],
            ensure_ascii=False, separators=(",", ":"),
        )

    def __str__(self) -> str:
        return self.fingerprint


def make_cache_key(
    criteria: FilterCriteria,
    cursor: str | None = None,
    mode: FeedMode = FeedMode.SINGLE,
) -> CacheKey:
    return CacheKey(
        filters=tuple(criteria.sorted_filters),
        search=criteria.search_query,
        cursor=cursor,
        mode=mode,
    )
