"""Service test fixtures — fake remote channel and controllable feed source.

Invariants:
    - fake_channel records every invoke/select/insert call in `calls`
    - Configured results may be a payload, an exception (raised), or a callable
    - feed_source counts network calls and can hold responses until released

Design Decisions:
    - Flat fake classes (no inheritance): simple, explicit, easy to debug
    - Gate per call instead of sleeps: concurrency tests are deterministic
"""

import asyncio

import pytest

from courtside.core.errors import RemoteFunctionError
from courtside.core.filter_state import FilterCriteria
from courtside.schemas.feed import FeedPage


class FakeChannel:
    """Stands in for SupabaseClient behind the RemoteChannel protocol."""

    def __init__(self):
        self.calls: list[dict] = []
        self.results: dict[str, object] = {}
        self.user_id: str | None = "user-123"

    def _resolve(self, name: str, default):
        r = self.results.get(name, default)
        if callable(r):
            r = r()
        if isinstance(r, BaseException):
            raise r
        return r

    async def invoke(self, function_name, body, *, idempotency_key=None):
        self.calls.append({
            "kind": "invoke", "name": function_name, "body": body,
            "idempotency_key": idempotency_key,
        })
        return self._resolve(function_name, {})

    async def select(self, table, params):
        self.calls.append({"kind": "select", "name": table, "params": params})
        return self._resolve(table, [])

    async def insert(self, table, row):
        self.calls.append({"kind": "insert", "name": table, "row": row})
        self._resolve(table, None)


def remote_error(message: str | None, error_type: str = "http_error") -> RemoteFunctionError:
    return RemoteFunctionError(
        message or "connection refused", error_type, remote_message=message,
    )


def make_page(ids, has_more=False, next_cursor=None, price_cents=2500) -> FeedPage:
    return FeedPage(
        items=[{"id": i, "price_cents": price_cents} for i in ids],
        has_more=has_more,
        next_cursor=next_cursor,
    )


class StubFeedSource:
    """Feed source serving pages by cursor, with call counting and gates."""

    def __init__(self):
        self.calls: list[tuple[FilterCriteria, str | None]] = []
        self.pages: dict[str | None, FeedPage] = {}
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.started = asyncio.Event()

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def hold(self) -> asyncio.Event:
        """Block responses until the returned event is set."""
        self.gate = asyncio.Event()
        return self.gate

    async def get_feed(self, criteria, cursor=None):
        self.calls.append((criteria, cursor))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.pages[cursor]


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
def feed_source():
    return StubFeedSource()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def page_factory():
    return make_page


@pytest.fixture
def remote_error_factory():
    return remote_error
