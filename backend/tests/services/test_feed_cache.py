"""Feed Cache Client — dedup, staleness, pagination chain, eviction.

Tests cover:
    - Concurrent requests for one key share a single network call
    - Cancelling one waiter leaves the shared request and other waiters intact
    - Fresh entries served from cache; stale entries refetched
    - Keys isolated by filters, search, cursor, and mode
    - Failed fetches never write or disturb other entries
    - get_next_page: END_OF_FEED without a network call, InvalidStateError misuse
    - get_chain replays fresh successor pages and stops on a repeated cursor
    - LRU eviction, invalidate(), force_refresh, aclose()
"""

import asyncio

import pytest

from courtside.core.domain_types import FeedMode
from courtside.core.errors import FetchFailedError, InvalidStateError
from courtside.core.filter_state import FilterCriteria
from courtside.services.feed_cache import (
    END_OF_FEED, FeedCacheClient, PageChain,
)

BEGINNER = FilterCriteria(("beginner",))
COACHING = FilterCriteria(("coaching",))


# ==============================================================================
# Deduplication
# ==============================================================================


async def test_concurrent_requests_share_one_call(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a", "b"])
    gate = feed_source.hold()
    cache = FeedCacheClient(feed_source)

    first = asyncio.create_task(cache.get_page(BEGINNER))
    second = asyncio.create_task(cache.get_page(BEGINNER))
    await feed_source.started.wait()
    assert cache.in_flight_count == 1
    gate.set()
    page_a, page_b = await asyncio.gather(first, second)

    assert feed_source.call_count == 1
    assert page_a is page_b
    assert cache.in_flight_count == 0


async def test_order_insensitive_filters_share_one_call(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    gate = feed_source.hold()
    cache = FeedCacheClient(feed_source)

    first = asyncio.create_task(cache.get_page(FilterCriteria(("beginner", "coaching"))))
    second = asyncio.create_task(cache.get_page(FilterCriteria(("coaching", "beginner"))))
    await feed_source.started.wait()
    gate.set()
    await asyncio.gather(first, second)

    assert feed_source.call_count == 1


async def test_cancelled_waiter_does_not_cancel_shared_request(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    gate = feed_source.hold()
    cache = FeedCacheClient(feed_source)

    cancelled = asyncio.create_task(cache.get_page(BEGINNER))
    survivor = asyncio.create_task(cache.get_page(BEGINNER))
    await feed_source.started.wait()
    cancelled.cancel()
    gate.set()

    page = await survivor
    with pytest.raises(asyncio.CancelledError):
        await cancelled
    assert [i.id for i in page.items] == ["a"]
    assert cache.peek(BEGINNER) is page


async def test_waiters_share_the_same_error(feed_source):
    feed_source.error = FetchFailedError(RuntimeError("offline"))
    gate = feed_source.hold()
    cache = FeedCacheClient(feed_source)

    first = asyncio.create_task(cache.get_page(BEGINNER))
    second = asyncio.create_task(cache.get_page(BEGINNER))
    await feed_source.started.wait()
    gate.set()
    results = await asyncio.gather(first, second, return_exceptions=True)

    assert feed_source.call_count == 1
    assert results[0] is results[1]
    assert isinstance(results[0], FetchFailedError)


# ==============================================================================
# Freshness and key isolation
# ==============================================================================


async def test_fresh_entry_served_without_network(feed_source, page_factory, clock):
    feed_source.pages[None] = page_factory(["a"])
    cache = FeedCacheClient(feed_source, stale_after_seconds=30, clock=clock)

    await cache.get_page(BEGINNER)
    clock.advance(29)
    await cache.get_page(BEGINNER)

    assert feed_source.call_count == 1


async def test_stale_entry_refetched(feed_source, page_factory, clock):
    feed_source.pages[None] = page_factory(["a"])
    cache = FeedCacheClient(feed_source, stale_after_seconds=30, clock=clock)

    await cache.get_page(BEGINNER)
    clock.advance(30)
    assert cache.peek(BEGINNER) is None
    await cache.get_page(BEGINNER)

    assert feed_source.call_count == 2


async def test_force_refresh_bypasses_fresh_entry(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    cache = FeedCacheClient(feed_source)

    await cache.get_page(BEGINNER)
    await cache.get_page(BEGINNER, force_refresh=True)

    assert feed_source.call_count == 2


async def test_keys_isolated_by_filters_search_cursor_and_mode(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    feed_source.pages["c1"] = page_factory(["b"])
    cache = FeedCacheClient(feed_source)

    await cache.get_page(BEGINNER)
    await cache.get_page(COACHING)
    await cache.get_page(FilterCriteria(("beginner",), "sunset"))
    await cache.get_page(BEGINNER, "c1")
    await cache.get_page(BEGINNER, None, FeedMode.INFINITE)

    assert feed_source.call_count == 5
    assert len(cache) == 5


async def test_failed_fetch_does_not_touch_other_entries(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    cache = FeedCacheClient(feed_source)
    cached = await cache.get_page(BEGINNER)

    feed_source.error = FetchFailedError(RuntimeError("offline"))
    with pytest.raises(FetchFailedError):
        await cache.get_page(COACHING)

    assert len(cache) == 1
    assert cache.peek(BEGINNER) is cached
    assert cache.peek(COACHING) is None
    assert cache.in_flight_count == 0


async def test_failed_fetch_is_retried_on_next_call(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    feed_source.error = FetchFailedError(RuntimeError("offline"))
    cache = FeedCacheClient(feed_source)

    with pytest.raises(FetchFailedError):
        await cache.get_page(BEGINNER)
    feed_source.error = None
    page = await cache.get_page(BEGINNER)

    assert feed_source.call_count == 2
    assert [i.id for i in page.items] == ["a"]


# ==============================================================================
# Pagination chain
# ==============================================================================


async def test_next_page_fetches_by_cursor_in_infinite_mode(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a", "b"], has_more=True, next_cursor="b")
    feed_source.pages["b"] = page_factory(["c"])
    cache = FeedCacheClient(feed_source)

    chain = await cache.get_chain(BEGINNER)
    result = await cache.get_next_page(chain)
    chain.extend(result)

    assert feed_source.calls[-1] == (BEGINNER, "b")
    assert [i.id for i in chain.items] == ["a", "b", "c"]
    assert cache.peek(BEGINNER, "b", FeedMode.INFINITE) is result
    assert not chain.has_more


async def test_next_page_after_last_page_is_end_of_feed(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    cache = FeedCacheClient(feed_source)
    chain = await cache.get_chain(BEGINNER)

    result = await cache.get_next_page(chain)

    assert result is END_OF_FEED
    assert feed_source.call_count == 1
    chain.extend(result)
    assert chain.terminal


async def test_next_page_on_empty_chain_is_invalid(feed_source):
    cache = FeedCacheClient(feed_source)
    with pytest.raises(InvalidStateError):
        await cache.get_next_page(PageChain(BEGINNER))
    assert feed_source.call_count == 0


async def test_next_page_on_terminated_chain_is_invalid(feed_source, page_factory):
    cache = FeedCacheClient(feed_source)
    chain = PageChain(BEGINNER, [page_factory(["a"])], terminal=True)
    with pytest.raises(InvalidStateError) as exc_info:
        await cache.get_next_page(chain)
    assert exc_info.value.code == "INVALID_STATE"
    assert feed_source.call_count == 0


async def test_get_chain_replays_fresh_successors(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"], has_more=True, next_cursor="a")
    feed_source.pages["a"] = page_factory(["b"], has_more=True, next_cursor="b")
    cache = FeedCacheClient(feed_source)

    chain = await cache.get_chain(BEGINNER)
    chain.extend(await cache.get_next_page(chain))
    replayed = await cache.get_chain(BEGINNER)

    assert feed_source.call_count == 2
    assert [i.id for i in replayed.items] == ["a", "b"]
    assert replayed.next_cursor == "b"


async def test_get_chain_stops_on_repeated_cursor(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"], has_more=True, next_cursor="a")
    feed_source.pages["a"] = page_factory(["b"], has_more=True, next_cursor="a")
    cache = FeedCacheClient(feed_source)

    chain = await cache.get_chain(BEGINNER)
    chain.extend(await cache.get_next_page(chain))
    replayed = await cache.get_chain(BEGINNER)

    assert feed_source.call_count == 2
    assert [i.id for i in replayed.items] == ["a", "b"]
    assert len(replayed) == 2


async def test_concurrent_next_page_shares_one_call(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"], has_more=True, next_cursor="a")
    feed_source.pages["a"] = page_factory(["b"])
    cache = FeedCacheClient(feed_source)
    chain = await cache.get_chain(BEGINNER)

    results = await asyncio.gather(cache.get_next_page(chain), cache.get_next_page(chain))

    assert feed_source.call_count == 2
    assert results[0] is results[1]


# ==============================================================================
# Eviction and maintenance
# ==============================================================================


async def test_least_recently_used_entry_evicted(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    cache = FeedCacheClient(feed_source, max_entries=2)
    tournament = FilterCriteria(("tournament",))

    await cache.get_page(BEGINNER)
    await cache.get_page(COACHING)
    assert cache.peek(BEGINNER) is not None
    await cache.get_page(tournament)

    assert len(cache) == 2
    assert cache.peek(COACHING) is None
    assert cache.peek(BEGINNER) is not None


async def test_invalidate_all(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    cache = FeedCacheClient(feed_source)
    await cache.get_page(BEGINNER)
    await cache.get_page(COACHING)

    assert cache.invalidate() == 2
    await cache.get_page(BEGINNER)
    assert feed_source.call_count == 3


async def test_invalidate_one_query_keeps_others(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"], has_more=True, next_cursor="a")
    feed_source.pages["a"] = page_factory(["b"])
    cache = FeedCacheClient(feed_source)
    chain = await cache.get_chain(BEGINNER)
    await cache.get_next_page(chain)
    await cache.get_page(BEGINNER)
    await cache.get_page(COACHING)

    assert cache.invalidate(BEGINNER) == 3
    assert cache.peek(COACHING) is not None


async def test_invalidate_detaches_in_flight_request(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    gate = feed_source.hold()
    cache = FeedCacheClient(feed_source)

    waiter = asyncio.create_task(cache.get_page(BEGINNER))
    await feed_source.started.wait()
    cache.invalidate()
    assert cache.in_flight_count == 0
    gate.set()
    page = await waiter

    assert [i.id for i in page.items] == ["a"]
    assert len(cache) == 0


async def test_aclose_cancels_outstanding_fetch(feed_source, page_factory):
    feed_source.pages[None] = page_factory(["a"])
    feed_source.hold()
    cache = FeedCacheClient(feed_source)

    waiter = asyncio.create_task(cache.get_page(BEGINNER))
    await feed_source.started.wait()
    await cache.aclose()

    with pytest.raises(asyncio.CancelledError):
        await waiter
    assert cache.in_flight_count == 0
    assert len(cache) == 0
