"""Feed Session — keeps the visible page chain in step with the current filters.

Invariants:
    - Every filter change that alters the criteria resets the visible chain
    - Responses fetched under superseded criteria are returned to their caller
      but never applied to the visible chain
    - Concurrent load_more calls append a given page at most once
    - load_more on a terminated chain returns END_OF_FEED without a network call
"""

import logging

from courtside.core.cache_key import CacheKey, make_cache_key
from courtside.core.domain_types import FeedMode
from courtside.core.filter_state import FilterCriteria, FilterState
from courtside.schemas.feed import FeedItem, FeedPage
from courtside.services.feed_cache import END_OF_FEED, EndOfFeed, FeedCacheClient, PageChain

logger = logging.getLogger(__name__)


class FeedSession:
    """UI-facing feed: current criteria, visible chain, refresh and load-more."""

    def __init__(self, filter_state: FilterState, cache: FeedCacheClient):
        self.filter_state = filter_state
        self.cache = cache
        self._criteria = filter_state.snapshot
        self.chain = PageChain(self._criteria)
        self._unsubscribe = filter_state.subscribe(self._on_filters_changed)

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def cache_key(self) -> CacheKey:
        return make_cache_key(self._criteria, None, FeedMode.INFINITE)

    @property
    def items(self) -> list[FeedItem]:
        return self.chain.items

    async def refresh(self, *, force: bool = False) -> PageChain:
        """Load (or replay from cache) the chain for the current criteria."""
        criteria = self._criteria
        chain = await self.cache.get_chain(criteria, force_refresh=force)
        if criteria == self._criteria:
            self.chain = chain
        else:
            logger.debug("Discarding chain for superseded filters")
        return chain

    async def load_more(self) -> FeedPage | EndOfFeed:
        if self.chain.terminal:
            return END_OF_FEED
        if not self.chain.pages:
            chain = await self.refresh()
            return chain.pages[-1]

        chain = self.chain
        length = len(chain)
        result = await self.cache.get_next_page(chain)
        if chain is self.chain and len(chain) == length:
            chain.extend(result)
        return result

    def close(self) -> None:
        self._unsubscribe()

    def _on_filters_changed(self, criteria: FilterCriteria) -> None:
        if criteria == self._criteria:
            return
        self._criteria = criteria
        self.chain = PageChain(criteria)
        logger.debug(
            "Feed filters changed", extra={"cache_key": self.cache_key.fingerprint},
        )
