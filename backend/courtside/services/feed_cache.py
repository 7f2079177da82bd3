"""Feed Cache — cursor-paginated feed pages keyed by filter fingerprint.

Invariants:
    - At most one network call in flight per CacheKey; every waiter gets the same result or error
    - A waiter being cancelled never cancels the shared request for the others
    - Fresh entries (younger than stale_after_seconds) are served without a network call
    - Changing filters changes the key: old entries stay cached but are never reached
    - Failed fetches never write, evict, or touch entries of any key
    - get_next_page on a page with has_more=False returns END_OF_FEED with no network call
    - get_next_page on an empty or terminated chain raises InvalidStateError
    - Cache holds at most max_entries keys; least recently used key evicted first
    - get_chain replay visits each cursor at most once

Design Decisions:
    - Explicit CacheKey → entry map over an implicit query-library cache
    - Each fetch runs in its own task behind a shared Future (asyncio.shield for waiters)
    - invalidate() detaches in-flight requests instead of cancelling them: current waiters
      still get their page, but the response is not written back
"""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from courtside.core.cache_key import CacheKey, make_cache_key
from courtside.core.domain_types import FeedMode
from courtside.core.errors import ErrorContext, InvalidStateError
from courtside.core.filter_state import FilterCriteria
from courtside.schemas.feed import FeedItem, FeedPage

logger = logging.getLogger(__name__)


class EndOfFeed(Enum):
    """Terminal signal for a page chain — not an error."""
    END_OF_FEED = "end_of_feed"


END_OF_FEED = EndOfFeed.END_OF_FEED


class FeedSource(Protocol):
    """Anything that can fetch one feed page — implemented by FeedApi."""
    async def get_feed(
        self, criteria: FilterCriteria, cursor: str | None = None,
    ) -> FeedPage: ...


@dataclass
class CacheEntry:
    page: FeedPage
    fetched_at: float


@dataclass
class _Flight:
    """One in-flight request shared by every waiter on its key."""
    future: asyncio.Future
    store: bool = True


@dataclass
class PageChain:
    """Ordered pages fetched for one FilterCriteria under infinite mode."""

    criteria: FilterCriteria
    pages: list[FeedPage] = field(default_factory=list)
    terminal: bool = False

    def __len__(self) -> int:
        return len(self.pages)

    def __iter__(self) -> Iterator[FeedPage]:
        return iter(self.pages)

    def __getitem__(self, index: int) -> FeedPage:
        return self.pages[index]

    @property
    def items(self) -> list[FeedItem]:
        return [item for page in self.pages for item in page.items]

    @property
    def has_more(self) -> bool:
        return bool(self.pages) and self.pages[-1].has_more and not self.terminal

    @property
    def next_cursor(self) -> str | None:
        if not self.pages:
            return None
        return self.pages[-1].next_cursor

    def extend(self, result: FeedPage | EndOfFeed) -> None:
        """Record the outcome of get_next_page."""
        if result is END_OF_FEED:
            self.terminal = True
        else:
            self.pages.append(result)


class FeedCacheClient:
    """Deduplicating, staleness-aware cache in front of a FeedSource."""

    def __init__(
        self,
        source: FeedSource,
        stale_after_seconds: float = 30.0,
        max_entries: int = 64,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.stale_after_seconds = stale_after_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self._in_flight: dict[CacheKey, _Flight] = {}
        self._tasks: set[asyncio.Task] = set()

    # ─── Reads ──────────────────────────────────────────────────

    async def get_page(
        self,
        criteria: FilterCriteria,
        cursor: str | None = None,
        mode: FeedMode = FeedMode.SINGLE,
        *,
        force_refresh: bool = False,
    ) -> FeedPage:
        """Return one page, from cache when fresh, else via a shared request."""
        key = make_cache_key(criteria, cursor, mode)
        if not force_refresh:
            entry = self._fresh_entry(key)
            if entry is not None:
                logger.debug("Feed cache hit", extra={"cache_key": key.fingerprint})
                return entry.page
        return await self._fetch_shared(key, criteria, cursor)

    async def get_next_page(self, chain: PageChain) -> FeedPage | EndOfFeed:
        """Fetch the page after the chain's last page, or END_OF_FEED."""
        context = ErrorContext(
            cache_key=make_cache_key(chain.criteria, None, FeedMode.INFINITE).fingerprint,
        )
        if not chain.pages:
            raise InvalidStateError(
                "Cannot fetch the next page of an empty chain", context=context,
            )
        if chain.terminal:
            raise InvalidStateError(
                "Page chain has already reached the end of the feed",
                context=context,
            )
        last = chain.pages[-1]
        if not last.has_more:
            return END_OF_FEED
        return await self.get_page(
            chain.criteria, last.next_cursor, FeedMode.INFINITE,
        )

    async def get_chain(
        self, criteria: FilterCriteria, *, force_refresh: bool = False,
    ) -> PageChain:
        """First infinite-mode page plus every fresh cached page after it."""
        first = await self.get_page(
            criteria, None, FeedMode.INFINITE, force_refresh=force_refresh,
        )
        chain = PageChain(criteria, [first])
        if force_refresh:
            return chain
        first_key = make_cache_key(criteria, None, FeedMode.INFINITE)
        # Cursors are item ids; a re-ranked page can point back into the chain
        visited: set[str] = set()
        while chain.has_more:
            cursor = chain.next_cursor
            if cursor in visited:
                logger.warning(
                    f"Cursor {cursor!r} repeats in cached chain; stopping replay",
                    extra={"cache_key": first_key.fingerprint},
                )
                break
            visited.add(cursor)
            entry = self._fresh_entry(make_cache_key(criteria, cursor, FeedMode.INFINITE))
            if entry is None:
                break
            chain.pages.append(entry.page)
        return chain

    def peek(
        self,
        criteria: FilterCriteria,
        cursor: str | None = None,
        mode: FeedMode = FeedMode.SINGLE,
    ) -> FeedPage | None:
        """Fresh cached page for a key without fetching; None on miss."""
        entry = self._fresh_entry(make_cache_key(criteria, cursor, mode))
        return entry.page if entry else None

    # ─── Maintenance ────────────────────────────────────────────

    def invalidate(self, criteria: FilterCriteria | None = None) -> int:
        """Drop cached pages (all, or one query's pages in both modes).

        In-flight requests keep running for their waiters but are detached:
        new callers start a fresh request and the old response is not stored.
        Returns the number of entries dropped.
        """
        def affected(key: CacheKey) -> bool:
            if criteria is None:
                return True
            probe = make_cache_key(criteria, None, key.mode)
            return key.chain_key == probe

        dropped = [k for k in self._entries if affected(k)]
        for key in dropped:
            del self._entries[key]
        for key in [k for k in self._in_flight if affected(k)]:
            self._in_flight.pop(key).store = False
        logger.info(f"Feed cache invalidated {len(dropped)} entries")
        return len(dropped)

    async def aclose(self) -> None:
        """Cancel outstanding fetch tasks (waiters see CancelledError)."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._in_flight.clear()

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def __len__(self) -> int:
        return len(self._entries)

    # ─── Internals ──────────────────────────────────────────────

    def _fresh_entry(self, key: CacheKey) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.stale_after_seconds:
            return None
        self._entries.move_to_end(key)
        return entry

    async def _fetch_shared(
        self, key: CacheKey, criteria: FilterCriteria, cursor: str | None,
    ) -> FeedPage:
        flight = self._in_flight.get(key)
        if flight is None:
            future = asyncio.get_running_loop().create_future()
            # Mark the exception retrieved even if every waiter went away
            future.add_done_callback(lambda f: f.cancelled() or f.exception())
            flight = _Flight(future)
            self._in_flight[key] = flight
            task = asyncio.create_task(self._run_fetch(key, criteria, cursor, flight))
            self._tasks.add(task)
            task.add_done_callback(
                lambda t, k=key, f=flight: self._on_fetch_done(t, k, f),
            )
            logger.info("Feed fetch started", extra={"cache_key": key.fingerprint})
        else:
            logger.debug("Joined in-flight feed fetch", extra={"cache_key": key.fingerprint})
        return await asyncio.shield(flight.future)

    async def _run_fetch(
        self,
        key: CacheKey,
        criteria: FilterCriteria,
        cursor: str | None,
        flight: _Flight,
    ) -> None:
        try:
            page = await self.source.get_feed(criteria, cursor)
        except Exception as e:
            logger.warning(
                f"Feed fetch failed: {e}", extra={"cache_key": key.fingerprint},
            )
            flight.future.set_exception(e)
        else:
            if flight.store:
                self._store(key, page)
            flight.future.set_result(page)

    def _on_fetch_done(self, task: asyncio.Task, key: CacheKey, flight: _Flight) -> None:
        """Release the key and settle the future even if the task never ran."""
        self._tasks.discard(task)
        if self._in_flight.get(key) is flight:
            del self._in_flight[key]
        if not flight.future.done():
            flight.future.cancel()

    def _store(self, key: CacheKey, page: FeedPage) -> None:
        self._entries[key] = CacheEntry(page, self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Feed cache evicted", extra={"cache_key": evicted.fingerprint})
        logger.info(
            "Feed page cached",
            extra={"cache_key": key.fingerprint, "item_count": len(page.items)},
        )
