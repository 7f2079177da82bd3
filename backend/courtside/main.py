"""Courtside Core — entry point wiring settings, channel, and services.

Invariants:
    - One SupabaseClient per CourtsideCore; closed by aclose() / the context manager
    - FilterState is owned by the core instance and shared by reference (no module global)
    - Logging configured only when the caller asks (configure_logging=True)

Design Decisions:
    - Async context manager mirrors an app lifespan: open on enter, close on exit
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

import httpx

from courtside.config import Settings, get_settings
from courtside.core.filter_state import FilterState
from courtside.core.pricing import format_price
from courtside.infrastructure.observability import setup_logging
from courtside.infrastructure.supabase_client import SupabaseClient
from courtside.services.checkout import CheckoutOrchestrator
from courtside.services.feed_api import FeedApi
from courtside.services.feed_cache import FeedCacheClient
from courtside.services.feed_session import FeedSession
from courtside.services.membership import MembershipApi

logger = logging.getLogger(__name__)


@dataclass
class CourtsideCore:
    """Everything the UI collaborator talks to."""
    settings: Settings
    channel: SupabaseClient
    filter_state: FilterState
    feed_api: FeedApi
    feed_cache: FeedCacheClient
    feed: FeedSession
    checkout: CheckoutOrchestrator
    memberships: MembershipApi

    def format_price(self, cents: int) -> str:
        """Display string in the configured currency symbol."""
        return format_price(cents, self.settings.currency_symbol)

    async def aclose(self) -> None:
        self.feed.close()
        await self.feed_cache.aclose()
        await self.channel.aclose()
        logger.info("Courtside core closed")


def create_core(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    configure_logging: bool = False,
) -> CourtsideCore:
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_format)

    channel = SupabaseClient(
        settings.supabase_url,
        settings.supabase_anon_key,
        timeout_seconds=settings.request_timeout_seconds,
        transport=transport,
    )
    filter_state = FilterState()
    feed_api = FeedApi(channel, page_size=settings.feed_page_size)
    feed_cache = FeedCacheClient(
        feed_api,
        stale_after_seconds=settings.feed_stale_after_seconds,
        max_entries=settings.feed_cache_max_entries,
    )
    core = CourtsideCore(
        settings=settings,
        channel=channel,
        filter_state=filter_state,
        feed_api=feed_api,
        feed_cache=feed_cache,
        feed=FeedSession(filter_state, feed_cache),
        checkout=CheckoutOrchestrator(channel),
        memberships=MembershipApi(channel),
    )
    logger.info("Courtside core started")
    return core


@asynccontextmanager
async def open_core(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    configure_logging: bool = False,
) -> AsyncIterator[CourtsideCore]:
    """Startup/shutdown lifecycle."""
    core = create_core(settings, transport, configure_logging)
    try:
        yield core
    finally:
        await core.aclose()
